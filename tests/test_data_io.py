"""Unit tests for data_io.py module."""

import json

import pandas as pd
import pytest

from drift.controller import Capabilities
from drift.data_io import DriftDocument, default_document, results_to_frame, write_results
from drift.errors import ConfigurationError
from drift.harness import ExperimentResult, WindowMetrics
from drift.links import LinkDescriptor


def create_result(name="link/adaptive", coupling=True, adaptation=True, windows=2):
    """Helper function to build a small result with filled windows."""
    metrics = []
    for idx in range(windows):
        window = WindowMetrics(index=idx, targets_reached=idx + 1, total_steps=10, effective_steps=5)
        window.terrain_steps.update({"sand": 10})
        window.terrain_targets.update({"sand": idx + 1})
        metrics.append(window)
    return ExperimentResult(name, Capabilities(coupling, adaptation), tuple(metrics))


class TestDefaultDocument:
    """Test the built-in experiment description."""

    def test_models_and_link(self):
        """Test that the default document wires classifier stage 1 into navigator[4:20]."""
        doc = default_document()
        assert doc.name == "NeuralLinkExperiment"
        assert doc.get_model("classifier")["layers"][0]["input_size"] == 8
        assert doc.get_model("navigator")["layers"][0]["input_size"] == 20
        link = doc.get_links().get("classifier_to_navigator")
        assert (link.source_stage, link.target_offset, link.width) == (1, 4, 16)
        assert link.target_range == range(4, 20)

    def test_training_section(self):
        """Test that default training parameters are present."""
        doc = default_document()
        assert doc.training["neural_link_test"]["duration_seconds"] == 3

    def test_missing_model(self):
        """Test that looking up an unknown model lists the available ones."""
        with pytest.raises(KeyError, match="Model 'pilot' not found"):
            default_document().get_model("pilot")


class TestDocumentIO:
    """Test JSON serialization of documents."""

    def test_save_load_round_trip(self, tmp_path):
        """Test saving to disk and loading back."""
        doc = default_document()
        path = doc.save(tmp_path / "nested" / "drift.json")
        loaded = DriftDocument.load(path)
        assert loaded.to_dict() == doc.to_dict()

    def test_load_missing_file(self, tmp_path):
        """Test that loading a nonexistent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="DRIFT document not found"):
            DriftDocument.load(tmp_path / "missing.json")

    def test_invalid_json(self):
        """Test that malformed JSON is a configuration error."""
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            DriftDocument.from_json("{not json")

    def test_non_object(self):
        """Test that a JSON array is rejected."""
        with pytest.raises(ConfigurationError, match="must be a JSON object"):
            DriftDocument.from_json("[1, 2]")

    def test_missing_name(self):
        """Test that a document without a name is rejected."""
        with pytest.raises(ConfigurationError, match="'name'"):
            DriftDocument.from_dict({"models": {}})

    def test_bad_link_entry(self):
        """Test that an incomplete link entry is rejected on load."""
        payload = default_document().to_dict()
        del payload["links"][0]["target_offset"]
        with pytest.raises(ConfigurationError, match="missing field"):
            DriftDocument.from_dict(payload)

    def test_add_link_rejects_duplicates(self):
        """Test that adding a link under an existing name fails."""
        doc = default_document()
        with pytest.raises(ConfigurationError, match="Duplicate link name"):
            doc.add_link(LinkDescriptor("classifier_to_navigator", "classifier", 0, "navigator", 4, 8))

    def test_add_model_copies_definition(self):
        """Test that later edits to the caller's dict do not leak into the document."""
        definition = {"layers": [{"type": "dense", "input_size": 2, "output_size": 2}]}
        doc = DriftDocument(name="tiny")
        doc.add_model("m", definition)
        definition["layers"][0]["output_size"] = 99
        assert doc.get_model("m")["layers"][0]["output_size"] == 2


class TestResultsExport:
    """Test tabular and JSON export of results."""

    def test_results_to_frame(self):
        """Test one row per sealed window with configuration columns."""
        frame = results_to_frame([create_result(), create_result("no-link/frozen", False, False, windows=1)])
        assert isinstance(frame, pd.DataFrame)
        assert len(frame) == 3
        assert list(frame["configuration"]) == ["link/adaptive", "link/adaptive", "no-link/frozen"]
        assert list(frame["targets_reached"]) == [1, 2, 1]
        assert list(frame["terrain"]) == ["sand", "sand", "sand"]
        assert frame["accuracy"].iloc[0] == pytest.approx(0.5)

    def test_empty_frame_has_columns(self):
        """Test that no results still produce the expected columns."""
        frame = results_to_frame([])
        assert frame.empty
        assert "accuracy" in frame.columns

    def test_write_results(self, tmp_path):
        """Test that JSON and CSV files are written."""
        json_path, csv_path = write_results([create_result()], tmp_path / "out")
        payload = json.loads(json_path.read_text())
        assert payload[0]["total_targets"] == 3
        assert payload[0]["terrain_targets"] == {"sand": 3}
        frame = pd.read_csv(csv_path)
        assert len(frame) == 2
        assert list(frame["window"]) == [0, 1]
