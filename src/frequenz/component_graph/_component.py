# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Defines the components that can be part of a microgrid component graph."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

ComponentId: TypeAlias = int | str
"""The identifier of a component, stable for the lifetime of a graph."""


class ComponentCategory(Enum):
    """Possible categories of microgrid component."""

    GRID = "grid"
    """Grid connection point, the root of a grid-connected microgrid."""

    METER = "meter"
    """Meter component."""

    INVERTER = "inverter"
    """Inverter component."""

    BATTERY = "battery"
    """Battery component."""

    PV_ARRAY = "pv_array"
    """Array of photovoltaic panels."""

    LOAD = "load"
    """Unmetered consumer of power."""

    EV_CHARGER = "ev_charger"
    """EV charger component."""

    CHP = "chp"
    """Combined heat and power plant."""

    ELECTROLYZER = "electrolyzer"
    """Electrolyzer array."""

    CONVERTER = "converter"
    """DC-DC converter."""

    CRYPTO_MINER = "crypto_miner"
    """Crypto miner."""

    PRECHARGER = "precharger"
    """Precharge module placed in front of a battery."""

    RELAY = "relay"
    """Relay, switching power between its neighbours."""

    FUSE = "fuse"
    """Fuse."""

    VOLTAGE_TRANSFORMER = "voltage_transformer"
    """Voltage transformer."""

    HVAC = "hvac"
    """Heating, ventilation and air conditioning unit."""


@dataclass(frozen=True, eq=False)
class Component:
    """Metadata for a single microgrid component.

    Two components are the same component when their IDs are equal, whatever
    their other attributes.
    """

    component_id: ComponentId
    """The ID of this component."""

    category: ComponentCategory
    """The category of this component."""

    metadata: Mapping[str, Any] | None = None
    """Opaque attributes (ratings, manufacturer, ...), passed through untouched."""

    def __eq__(self, other: object) -> bool:
        """Compare two components by their IDs.

        Args:
            other: the object to compare with.

        Returns:
            Whether `other` is a component with the same ID.
        """
        if not isinstance(other, Component):
            return NotImplemented
        return self.component_id == other.component_id

    def __hash__(self) -> int:
        """Compute a hash of this instance, from the `component_id` field.

        Returns:
            Hash of this instance.
        """
        return hash(self.component_id)

    def __str__(self) -> str:
        """Return a short description of the component.

        Returns:
            The category and ID of the component, e.g. `meter:3`.
        """
        return f"{self.category.value}:{self.component_id}"
