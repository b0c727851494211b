# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Tests for the component graph configuration."""

import pathlib
from typing import Any

import pytest

from frequenz.component_graph import (
    DEFAULT_POLICY_TABLE,
    ComponentCategory,
    ComponentGraphConfig,
    DegreeRange,
    config_from_mapping,
    load_config,
)


class TestConfigFromMapping:
    """Tests for `config_from_mapping`."""

    def test_defaults(self) -> None:
        """An empty mapping gives the default config."""
        assert config_from_mapping({}) == ComponentGraphConfig()

    def test_values(self) -> None:
        """Values are converted to their config types."""
        config = config_from_mapping(
            {
                "allow_island_root": True,
                "island_root_categories": ["meter", "fuse"],
                "allow_unconnected_components": False,
                "exempt_component_ids": [12, "ext-1"],
            }
        )
        assert config.allow_island_root
        assert config.island_root_categories == {
            ComponentCategory.METER,
            ComponentCategory.FUSE,
        }
        assert config.exempt_component_ids == {12, "ext-1"}
        assert config.policies == DEFAULT_POLICY_TABLE

    def test_policy_overrides(self) -> None:
        """Only the given policy fields are changed."""
        config = config_from_mapping(
            {
                "policies": {
                    "load": {"measurable": True, "max_predecessors": 2},
                    "relay": {"subtractive": True, "allowed_successors": ["meter"]},
                }
            }
        )
        load = config.policies.policy(ComponentCategory.LOAD)
        assert load.measurable
        assert load.predecessor_range == DegreeRange(0, 2)
        assert load.successor_range == DegreeRange(0, 0)

        relay = config.policies.policy(ComponentCategory.RELAY)
        assert relay.subtractive
        assert relay.allowed_successors == frozenset({ComponentCategory.METER})
        assert config.policies.policy(ComponentCategory.METER) == (
            DEFAULT_POLICY_TABLE.policy(ComponentCategory.METER)
        )

    @pytest.mark.parametrize(
        "values",
        [
            {"allow_island_root": "yes"},
            {"allow_island_root": 1},
            {"island_root_categories": ["windmill"]},
            {"exempt_component_ids": [1.5]},
            {"policies": {"windmill": {}}},
            {"policies": {"load": {"measurable": "true"}}},
            {"policies": {"load": {"max_successors": -1}}},
            {"policies": {"load": {"colour": "blue"}}},
            {"unknown_option": True},
        ],
    )
    def test_invalid(self, values: dict[str, Any]) -> None:
        """Invalid values are rejected."""
        with pytest.raises(
            ValueError, match="Could not convert component graph config"
        ):
            config_from_mapping(values)


class TestLoadConfig:
    """Tests for `load_config`."""

    def test_load(self, tmp_path: pathlib.Path) -> None:
        """A TOML file is read into a config."""
        config_file = tmp_path / "graph.toml"
        config_file.write_text(
            """
allow_island_root = true
exempt_component_ids = [7]

[policies.hvac]
measurable = false
""",
            encoding="utf-8",
        )
        config = load_config(config_file)
        assert config.allow_island_root
        assert config.exempt_component_ids == {7}
        assert not config.policies.policy(ComponentCategory.HVAC).measurable

    def test_invalid_toml(self, tmp_path: pathlib.Path) -> None:
        """Files that are not TOML are rejected."""
        config_file = tmp_path / "graph.toml"
        config_file.write_text("allow_island_root = = true", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(config_file))

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        """Missing files are reported."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")
