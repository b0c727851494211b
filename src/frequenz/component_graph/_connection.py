# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Defines the connections between microgrid components."""

from typing import NamedTuple

from ._component import ComponentId


class Connection(NamedTuple):
    """A directed connection between two microgrid components.

    Power is considered to flow from the source to the destination.
    """

    source_id: ComponentId
    """The ID of the component at the start of the connection."""

    destination_id: ComponentId
    """The ID of the component at the end of the connection."""

    def is_self_loop(self) -> bool:
        """Check if this connection starts and ends at the same component.

        Returns:
            `True` if `source_id == destination_id`, `False` otherwise.
        """
        return self.source_id == self.destination_id

    def __str__(self) -> str:
        """Return the connection as `source -> destination`.

        Returns:
            A string representation of the connection.
        """
        return f"{self.source_id} -> {self.destination_id}"
