# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Records describing why a component graph is not a legal microgrid."""

import enum
from dataclasses import dataclass
from typing import ClassVar, Literal

from ._component import ComponentCategory, ComponentId
from ._connection import Connection
from ._policy import DegreeRange


class ViolationKind(enum.Enum):
    """The rule a violation breaks."""

    CYCLE_DETECTED = "cycle_detected"
    """The graph has a directed cycle."""

    MISSING_ROOT = "missing_root"
    """There is no root component."""

    MULTIPLE_ROOTS = "multiple_roots"
    """There is more than one root component."""

    DEGREE_VIOLATION = "degree_violation"
    """A component has too few or too many neighbours."""

    ILLEGAL_ADJACENCY = "illegal_adjacency"
    """Two components are connected although their categories can't be."""

    UNREACHABLE_COMPONENT = "unreachable_component"
    """A component can't be reached from the root."""


@dataclass(frozen=True)
class ValidationViolation:
    """Base class of all violations."""

    kind: ClassVar[ViolationKind]
    """The rule this violation breaks."""


@dataclass(frozen=True)
class CycleDetected(ValidationViolation):
    """The graph has a directed cycle."""

    kind: ClassVar[ViolationKind] = ViolationKind.CYCLE_DETECTED

    path: tuple[ComponentId, ...]
    """The IDs along one cycle, first and last being the same."""

    def __str__(self) -> str:
        """Return a description of the violation.

        Returns:
            A description of the violation.
        """
        return "Cycle detected: " + " -> ".join(map(str, self.path))


@dataclass(frozen=True)
class MissingRoot(ValidationViolation):
    """No component can act as the root of the graph."""

    kind: ClassVar[ViolationKind] = ViolationKind.MISSING_ROOT

    def __str__(self) -> str:
        """Return a description of the violation.

        Returns:
            A description of the violation.
        """
        return "No component without predecessors can act as the root"


@dataclass(frozen=True)
class MultipleRoots(ValidationViolation):
    """More than one component can act as the root of the graph."""

    kind: ClassVar[ViolationKind] = ViolationKind.MULTIPLE_ROOTS

    component_ids: tuple[ComponentId, ...]
    """The IDs of all root candidates, in declaration order."""

    def __str__(self) -> str:
        """Return a description of the violation.

        Returns:
            A description of the violation.
        """
        return f"Multiple root components found: {list(self.component_ids)}"


@dataclass(frozen=True)
class DegreeViolation(ValidationViolation):
    """A component has a number of neighbours its category doesn't allow."""

    kind: ClassVar[ViolationKind] = ViolationKind.DEGREE_VIOLATION

    component_id: ComponentId
    """The offending component."""

    direction: Literal["predecessors", "successors"]
    """Which neighbours are counted."""

    expected: DegreeRange
    """The allowed number of neighbours."""

    actual: int
    """The actual number of neighbours."""

    def __str__(self) -> str:
        """Return a description of the violation.

        Returns:
            A description of the violation.
        """
        return (
            f"Component {self.component_id} has {self.actual} {self.direction}, "
            f"expected {self.expected}"
        )


@dataclass(frozen=True)
class IllegalAdjacency(ValidationViolation):
    """Two components are connected although their categories can't be."""

    kind: ClassVar[ViolationKind] = ViolationKind.ILLEGAL_ADJACENCY

    connection: Connection
    """The offending connection."""

    source_category: ComponentCategory
    """The category of the connection's source."""

    destination_category: ComponentCategory
    """The category of the connection's destination."""

    def __str__(self) -> str:
        """Return a description of the violation.

        Returns:
            A description of the violation.
        """
        return (
            f"Connection {self.connection}: a {self.source_category.value} "
            f"can't be connected to a {self.destination_category.value}"
        )


@dataclass(frozen=True)
class UnreachableComponent(ValidationViolation):
    """A component can't be reached from the root."""

    kind: ClassVar[ViolationKind] = ViolationKind.UNREACHABLE_COMPONENT

    component_id: ComponentId
    """The unreachable component."""

    def __str__(self) -> str:
        """Return a description of the violation.

        Returns:
            A description of the violation.
        """
        return f"Component {self.component_id} is not connected to the root"
