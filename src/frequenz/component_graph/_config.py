# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Options controlling how component graphs are validated."""

import logging
import tomllib
from collections import abc
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    NonNegativeInt,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
)

from ._component import ComponentCategory, ComponentId
from ._policy import DEFAULT_POLICY_TABLE, PolicyTable

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentGraphConfig:
    """Config for component graph validation and formula generation."""

    allow_island_root: bool = False
    """Whether a graph without a grid connection is acceptable.

    When set and no grid component is found, a single component without
    predecessors whose category is one of `island_root_categories` is used as
    the root instead.
    """

    island_root_categories: abc.Set[ComponentCategory] = frozenset(
        {
            ComponentCategory.METER,
            ComponentCategory.RELAY,
            ComponentCategory.VOLTAGE_TRANSFORMER,
        }
    )
    """The categories that can act as the root of an islanded microgrid."""

    allow_unconnected_components: bool = False
    """Whether components that can't be reached from the root are acceptable."""

    exempt_component_ids: abc.Set[ComponentId] = frozenset()
    """Components that don't need to be reachable from the root."""

    policies: PolicyTable = field(default=DEFAULT_POLICY_TABLE)
    """The adjacency, degree and formula rules of each category."""


class _PolicyOverride(BaseModel):
    model_config = ConfigDict(extra="forbid")

    allowed_successors: list[ComponentCategory] | None = None
    min_predecessors: NonNegativeInt | None = None
    max_predecessors: NonNegativeInt | None = None
    min_successors: NonNegativeInt | None = None
    max_successors: NonNegativeInt | None = None
    measurable: StrictBool | None = None
    subtractive: StrictBool | None = None


class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    allow_island_root: StrictBool = False
    island_root_categories: list[ComponentCategory] | None = None
    allow_unconnected_components: StrictBool = False
    exempt_component_ids: list[StrictInt | StrictStr] = []
    policies: dict[ComponentCategory, _PolicyOverride] = {}


def _apply_overrides(
    overrides: abc.Mapping[ComponentCategory, _PolicyOverride]
) -> PolicyTable:
    table = DEFAULT_POLICY_TABLE
    for category, override in overrides.items():
        changes: dict[str, Any] = override.model_dump(exclude_unset=True)
        if "allowed_successors" in changes:
            changes["allowed_successors"] = frozenset(
                override.allowed_successors or ()
            )
        table = table.with_policy(category, replace(table.policy(category), **changes))
    return table


def config_from_mapping(values: abc.Mapping[str, Any]) -> ComponentGraphConfig:
    """Create a config from a mapping, like the contents of a TOML table.

    Categories are given by their value (e.g. `"meter"`).  Policies are given
    per category and only the fields present replace the default rules, for
    example:

    ```toml
    allow_island_root = true
    exempt_component_ids = [12]

    [policies.load]
    measurable = true
    ```

    Args:
        values: the config values.

    Returns:
        The config.

    Raises:
        ValueError: if the values are not a valid config.
    """
    try:
        parsed = _ConfigModel.model_validate(values)
    except ValidationError as err:
        raise ValueError(
            "Could not convert component graph config, err: " + str(err)
        ) from err

    config = ComponentGraphConfig(
        allow_island_root=parsed.allow_island_root,
        allow_unconnected_components=parsed.allow_unconnected_components,
        exempt_component_ids=frozenset(parsed.exempt_component_ids),
        policies=_apply_overrides(parsed.policies),
    )
    if parsed.island_root_categories is not None:
        config = replace(
            config, island_root_categories=frozenset(parsed.island_root_categories)
        )
    return config


def load_config(path: str | Path) -> ComponentGraphConfig:
    """Read a config from a TOML file.

    Args:
        path: the file to read.

    Returns:
        The config.

    Raises:
        ValueError: if the file can't be parsed or is not a valid config.
    """
    config_path = Path(path)
    try:
        with config_path.open("rb") as toml_file:
            data = tomllib.load(toml_file)
    except ValueError as err:
        _logger.error("%s: Can't read config file, err: %s", config_path, err)
        raise

    _logger.debug("Read component graph config from %s", config_path)
    return config_from_mapping(data)
