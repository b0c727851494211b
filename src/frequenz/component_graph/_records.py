# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Building component graphs from already deserialized records.

Records are plain mappings, as produced by a JSON or TOML parser or a database
driver, e.g. `{"id": 1, "category": "grid"}` and
`{"source_id": 1, "destination_id": 2}`.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from ._component import Component, ComponentCategory
from ._connection import Connection
from ._exceptions import InvalidRecord
from ._graph import ComponentGraph, build_graph

_logger = logging.getLogger(__name__)


class ComponentRecord(BaseModel):
    """A component, as found in the input records."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    component_id: StrictInt | StrictStr = Field(alias="id")
    """The ID of the component."""

    category: ComponentCategory
    """The category of the component, given by its value."""

    metadata: dict[str, Any] | None = None
    """Attributes of the component that are passed through untouched."""

    def to_component(self) -> Component:
        """Convert the record to a component.

        Returns:
            The component.
        """
        return Component(self.component_id, self.category, self.metadata)


class ConnectionRecord(BaseModel):
    """A connection, as found in the input records."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source_id: StrictInt | StrictStr
    """The ID of the component the connection starts at."""

    destination_id: StrictInt | StrictStr
    """The ID of the component the connection ends at."""

    def to_connection(self) -> Connection:
        """Convert the record to a connection.

        Returns:
            The connection.
        """
        return Connection(self.source_id, self.destination_id)


def components_from_records(records: Iterable[Mapping[str, Any]]) -> list[Component]:
    """Parse component records.

    Args:
        records: the records to parse.

    Returns:
        The components, in record order.

    Raises:
        InvalidRecord: if a record is malformed.
    """
    components: list[Component] = []
    for index, record in enumerate(records):
        try:
            components.append(ComponentRecord.model_validate(record).to_component())
        except ValidationError as err:
            _logger.error("Invalid component record #%d: %s", index, record)
            raise InvalidRecord(f"Invalid component record #{index}: {err}") from err
    return components


def connections_from_records(
    records: Iterable[Mapping[str, Any]]
) -> list[Connection]:
    """Parse connection records.

    Args:
        records: the records to parse.

    Returns:
        The connections, in record order.

    Raises:
        InvalidRecord: if a record is malformed.
    """
    connections: list[Connection] = []
    for index, record in enumerate(records):
        try:
            connections.append(ConnectionRecord.model_validate(record).to_connection())
        except ValidationError as err:
            _logger.error("Invalid connection record #%d: %s", index, record)
            raise InvalidRecord(f"Invalid connection record #{index}: {err}") from err
    return connections


def build_graph_from_records(
    component_records: Iterable[Mapping[str, Any]],
    connection_records: Iterable[Mapping[str, Any]],
) -> ComponentGraph:
    """Build a component graph from component and connection records.

    Args:
        component_records: the component records.
        connection_records: the connection records.

    Returns:
        The component graph.
    """
    return build_graph(
        components_from_records(component_records),
        connections_from_records(connection_records),
    )
