"""Unit tests for links.py module."""

from types import SimpleNamespace

import pytest

from drift.errors import ConfigurationError
from drift.links import LinkDescriptor, LinkSet


def create_link(name="link", offset=4, width=16, stage=1, enabled=True, target="navigator"):
    """Helper function to create a classifier -> navigator link."""
    return LinkDescriptor(
        name=name,
        source_model="classifier",
        source_stage=stage,
        target_model=target,
        target_offset=offset,
        width=width,
        enabled=enabled,
    )


def create_models(target_inputs=20):
    """Helper returning shape-only stand-ins for the two models."""
    return {
        "classifier": SimpleNamespace(input_size=8, output_size=4, num_stages=3),
        "navigator": SimpleNamespace(input_size=target_inputs, output_size=4, num_stages=3),
    }


class TestLinkDescriptor:
    """Test LinkDescriptor validation and serialization."""

    def test_valid_link(self):
        """Test creating a valid link."""
        link = create_link()
        assert link.enabled
        assert link.target_range == range(4, 20)

    def test_zero_width(self):
        """Test that a zero-width link is rejected."""
        with pytest.raises(ValueError, match="width must be positive"):
            create_link(width=0)

    def test_negative_offset(self):
        """Test that a negative offset is rejected."""
        with pytest.raises(ValueError, match="target_offset must be non-negative"):
            create_link(offset=-1)

    def test_negative_stage(self):
        """Test that a negative stage index is rejected."""
        with pytest.raises(ValueError, match="source_stage must be non-negative"):
            create_link(stage=-2)

    def test_empty_name(self):
        """Test that an empty link name is rejected."""
        with pytest.raises(ValueError, match="name must be a non-empty string"):
            create_link(name="")

    def test_dict_round_trip(self):
        """Test that to_dict/from_dict preserve every field."""
        link = create_link(enabled=False)
        assert LinkDescriptor.from_dict(link.to_dict()) == link

    def test_from_dict_missing_field(self):
        """Test that a missing field is reported as a configuration error."""
        payload = create_link().to_dict()
        del payload["width"]
        with pytest.raises(ConfigurationError, match="missing field"):
            LinkDescriptor.from_dict(payload)

    def test_from_dict_enabled_default(self):
        """Test that 'enabled' defaults to True when absent."""
        payload = create_link(enabled=False).to_dict()
        del payload["enabled"]
        assert LinkDescriptor.from_dict(payload).enabled


class TestLinkSet:
    """Test LinkSet bookkeeping."""

    def test_duplicate_names(self):
        """Test that two links with the same name are rejected."""
        links = LinkSet([create_link(name="a")])
        with pytest.raises(ConfigurationError, match="Duplicate link name"):
            links.add(create_link(name="a", offset=10, width=2))

    def test_targeting(self):
        """Test filtering links by target model."""
        links = LinkSet([create_link(name="a"), create_link(name="b", target="other")])
        assert [link.name for link in links.targeting("navigator")] == ["a"]

    def test_get_unknown(self):
        """Test that looking up an unknown link raises KeyError."""
        with pytest.raises(KeyError, match="No link named 'missing'"):
            LinkSet().get("missing")

    def test_list_round_trip(self):
        """Test that to_list/from_list preserve order and content."""
        links = LinkSet([create_link(name="a", width=8), create_link(name="b", offset=12, width=8)])
        restored = LinkSet.from_list(links.to_list())
        assert list(restored) == list(links)


class TestLinkSetValidation:
    """Test validation against constructed models."""

    def test_valid_configuration(self):
        """Test that the default classifier -> navigator link validates."""
        LinkSet([create_link()]).validate(create_models(), feature_width=4)

    def test_unknown_source_model(self):
        """Test that an unknown source model is rejected."""
        link = LinkDescriptor("x", "ghost", 0, "navigator", 4, 4)
        with pytest.raises(ConfigurationError, match="unknown source model 'ghost'"):
            LinkSet([link]).validate(create_models(), feature_width=4)

    def test_unknown_target_model(self):
        """Test that an unknown target model is rejected."""
        with pytest.raises(ConfigurationError, match="unknown target model 'other'"):
            LinkSet([create_link(target="other")]).validate(create_models(), feature_width=4)

    def test_stage_out_of_range(self):
        """Test that reading a stage the source does not have is rejected."""
        with pytest.raises(ConfigurationError, match="has only 3 stages"):
            LinkSet([create_link(stage=3)]).validate(create_models(), feature_width=4)

    def test_exceeds_target_input(self):
        """Test that offset + width beyond the target input is rejected."""
        with pytest.raises(ConfigurationError, match="only accepts 20 inputs"):
            LinkSet([create_link(offset=8, width=16)]).validate(create_models(), feature_width=4)

    def test_overlaps_task_features(self):
        """Test that a link writing over the task features is rejected."""
        with pytest.raises(ConfigurationError, match="inside the 4 task features"):
            LinkSet([create_link(offset=2, width=4)]).validate(create_models(), feature_width=4)

    def test_overlapping_links(self):
        """Test that overlapping ranges on one target are rejected."""
        links = LinkSet([create_link(name="a", offset=4, width=8), create_link(name="b", offset=10, width=6)])
        with pytest.raises(ConfigurationError, match="overlap"):
            links.validate(create_models(), feature_width=4)

    def test_disabled_links_still_checked(self):
        """Test that overlap is rejected even when one link is disabled."""
        links = LinkSet(
            [create_link(name="a", offset=4, width=8), create_link(name="b", offset=6, width=4, enabled=False)]
        )
        with pytest.raises(ConfigurationError, match="overlap"):
            links.validate(create_models(), feature_width=4)

    def test_adjacent_links_allowed(self):
        """Test that touching but non-overlapping ranges validate."""
        links = LinkSet([create_link(name="a", offset=4, width=8), create_link(name="b", offset=12, width=8)])
        links.validate(create_models(), feature_width=4)
