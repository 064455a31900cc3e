"""Pytest configuration: in-repo src path and shared fixtures."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parent / "src"
if SRC_PATH.exists():
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(autouse=True)
def quiet_output(monkeypatch):
    """Keep progress bars and status lines out of test output."""
    monkeypatch.setenv("DRIFT_VERBOSITY", "0")


@pytest.fixture
def config():
    from drift.config import DriftConfig

    return DriftConfig()


@pytest.fixture
def default_models():
    """Freshly initialized classifier and navigator from the default document."""
    import numpy as np

    from drift.data_io import default_document
    from drift.network import build_network

    doc = default_document()
    rng = np.random.default_rng(7)
    return {name: build_network(doc.get_model(name), rng) for name in ("classifier", "navigator")}
