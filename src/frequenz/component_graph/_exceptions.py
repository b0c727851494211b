# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Component graph exceptions."""

from collections.abc import Sequence

from ._component import ComponentId


class GraphError(Exception):
    """The component and connection records don't form a graph.

    Raised while building a graph; no partially built graph is ever returned.
    """


class DuplicateId(GraphError):
    """Two components share the same ID."""

    def __init__(self, component_id: ComponentId) -> None:
        """Create a `DuplicateId` instance.

        Args:
            component_id: the repeated ID.
        """
        super().__init__(f"Duplicate component ID found: {component_id}")
        self.component_id = component_id


class DanglingEdge(GraphError):
    """A connection references a component that is not in the graph."""

    def __init__(
        self,
        source_id: ComponentId,
        destination_id: ComponentId,
        missing_id: ComponentId,
    ) -> None:
        """Create a `DanglingEdge` instance.

        Args:
            source_id: start of the offending connection.
            destination_id: end of the offending connection.
            missing_id: the ID that doesn't match any component.
        """
        super().__init__(
            f"Connection ({source_id}, {destination_id}): "
            f"can't find a component with ID {missing_id}"
        )
        self.source_id = source_id
        self.destination_id = destination_id
        self.missing_id = missing_id


class DuplicateEdge(GraphError):
    """The same connection appears more than once."""

    def __init__(self, source_id: ComponentId, destination_id: ComponentId) -> None:
        """Create a `DuplicateEdge` instance.

        Args:
            source_id: start of the repeated connection.
            destination_id: end of the repeated connection.
        """
        super().__init__(f"Duplicate connection found: ({source_id}, {destination_id})")
        self.source_id = source_id
        self.destination_id = destination_id


class SelfLoop(GraphError):
    """A connection starts and ends at the same component."""

    def __init__(self, component_id: ComponentId) -> None:
        """Create a `SelfLoop` instance.

        Args:
            component_id: the component connected to itself.
        """
        super().__init__(
            f"Connection ({component_id}, {component_id}): "
            "can't connect a component to itself"
        )
        self.component_id = component_id


class InvalidRecord(GraphError):
    """A component or connection record could not be parsed."""


class CycleError(GraphError):
    """The graph contains a directed cycle, so it has no topological order."""

    def __init__(self, path: Sequence[ComponentId]) -> None:
        """Create a `CycleError` instance.

        Args:
            path: the IDs along one cycle, first and last being the same.
        """
        super().__init__("Cycle detected: " + " -> ".join(map(str, path)))
        self.path: tuple[ComponentId, ...] = tuple(path)


class InvalidGraphError(Exception):
    """Exception type that will be thrown if graph data is not valid."""


class FormulaError(Exception):
    """An error encountered during formula generation from the component graph."""


class InvalidRoot(FormulaError):
    """The requested formula root is not a component of the graph."""

    def __init__(self, component_id: ComponentId) -> None:
        """Create an `InvalidRoot` instance.

        Args:
            component_id: the requested root.
        """
        super().__init__(f"Component {component_id} not in graph, cannot be a root!")
        self.component_id = component_id


class GraphNotValidated(FormulaError):
    """Formulas were requested for a graph without a successful validation."""


class ComponentNotFound(FormulaError):
    """A component requested for a formula is not in the graph."""

    def __init__(self, component_id: ComponentId) -> None:
        """Create a `ComponentNotFound` instance.

        Args:
            component_id: the requested component.
        """
        super().__init__(f"Component {component_id} not in graph!")
        self.component_id = component_id
