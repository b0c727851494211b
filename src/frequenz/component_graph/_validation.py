# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Validation of component graphs against the rules of a microgrid.

Validation never stops at the first problem: every rule is checked and all
violations are reported, in a fixed order (cycles, root, degrees, adjacency,
connectivity), so the same graph always produces the same report.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from ._component import ComponentCategory, ComponentId
from ._config import ComponentGraphConfig
from ._exceptions import InvalidGraphError
from ._graph import ComponentGraph
from ._policy import DegreeRange
from ._traversal import descendants, find_cycle, islands
from ._violations import (
    CycleDetected,
    DegreeViolation,
    IllegalAdjacency,
    MissingRoot,
    MultipleRoots,
    UnreachableComponent,
    ValidationViolation,
    ViolationKind,
)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    """The outcome of validating a component graph."""

    graph: ComponentGraph
    """The graph that was validated."""

    config: ComponentGraphConfig
    """The config used for validation."""

    violations: tuple[ValidationViolation, ...] = field(default=())
    """All violations found, in report order."""

    root_id: ComponentId | None = None
    """The ID of the root component, or `None` if there isn't exactly one."""

    @property
    def valid(self) -> bool:
        """Whether the graph is a legal microgrid."""
        return not self.violations

    def __bool__(self) -> bool:
        """Check if the graph is a legal microgrid.

        Returns:
            Whether no violations were found.
        """
        return self.valid

    def violations_of(self, kind: ViolationKind) -> list[ValidationViolation]:
        """Get the violations of one kind.

        Args:
            kind: the kind of violations to get.

        Returns:
            The violations of that kind, in report order.
        """
        return [violation for violation in self.violations if violation.kind == kind]

    def raise_on_violations(self) -> None:
        """Raise an exception if the graph is not valid.

        Raises:
            InvalidGraphError: listing every violation, if there are any.
        """
        if not self.violations:
            return
        if len(self.violations) == 1:
            raise InvalidGraphError(str(self.violations[0]))
        raise InvalidGraphError(
            "Multiple validation failures:\n"
            + "\n".join(f"  - {violation}" for violation in self.violations)
        )


def _find_roots(
    graph: ComponentGraph, config: ComponentGraphConfig
) -> list[ComponentId]:
    roots = [
        component.component_id
        for component in graph.components(
            component_categories={ComponentCategory.GRID}
        )
        if graph.in_degree(component.component_id) == 0
    ]
    if roots or not config.allow_island_root:
        return roots

    return [
        component.component_id
        for component in graph.components(
            component_categories=config.island_root_categories
        )
        if graph.in_degree(component.component_id) == 0
    ]


def _check_degrees(
    graph: ComponentGraph, config: ComponentGraphConfig
) -> Iterator[DegreeViolation]:
    for component in graph.components():
        policy = config.policies.policy(component.category)
        cid = component.component_id

        in_degree = graph.in_degree(cid)
        if not policy.predecessor_range.contains(in_degree):
            yield DegreeViolation(
                cid, "predecessors", policy.predecessor_range, in_degree
            )

        out_degree = graph.out_degree(cid)
        if not policy.successor_range.contains(out_degree):
            yield DegreeViolation(cid, "successors", policy.successor_range, out_degree)


def _check_root_successors(
    graph: ComponentGraph, roots: list[ComponentId]
) -> Iterator[DegreeViolation]:
    # The successors of a root are fed by the root alone.
    exclusive = DegreeRange(1, 1)
    for root in roots:
        for cid in graph.successor_ids(root):
            in_degree = graph.in_degree(cid)
            if not exclusive.contains(in_degree):
                yield DegreeViolation(cid, "predecessors", exclusive, in_degree)


def _check_adjacency(
    graph: ComponentGraph, config: ComponentGraphConfig
) -> Iterator[IllegalAdjacency]:
    for connection in graph.connections():
        source = graph.component(connection.source_id).category
        destination = graph.component(connection.destination_id).category
        if not config.policies.is_allowed(source, destination):
            yield IllegalAdjacency(connection, source, destination)


def _check_connectivity(
    graph: ComponentGraph, config: ComponentGraphConfig, roots: list[ComponentId]
) -> Iterator[UnreachableComponent]:
    reachable: set[ComponentId] = set(roots)
    for root in roots:
        reachable |= descendants(graph, root)

    for island in islands(graph):
        if reachable.isdisjoint(island):
            _logger.warning("Components %s are not connected to the root.", island)

    if config.allow_unconnected_components:
        return

    for component in graph.components():
        cid = component.component_id
        if cid not in reachable and cid not in config.exempt_component_ids:
            yield UnreachableComponent(cid)


def validate(
    graph: ComponentGraph, config: ComponentGraphConfig | None = None
) -> ValidationReport:
    """Check a component graph against the rules of a microgrid.

    Args:
        graph: the graph to validate.
        config: the validation options, the defaults if `None`.

    Returns:
        A report with every violation found.
    """
    if config is None:
        config = ComponentGraphConfig()

    violations: list[ValidationViolation] = []

    cycle = find_cycle(graph)
    if cycle is not None:
        violations.append(CycleDetected(cycle))

    roots = _find_roots(graph, config)
    if not roots:
        violations.append(MissingRoot())
    elif len(roots) > 1:
        violations.append(MultipleRoots(tuple(roots)))

    violations.extend(_check_degrees(graph, config))
    violations.extend(_check_root_successors(graph, roots))
    violations.extend(_check_adjacency(graph, config))
    if roots:
        violations.extend(_check_connectivity(graph, config, roots))

    if violations:
        _logger.warning(
            "Component graph has %d validation failure(s): %s",
            len(violations),
            "; ".join(map(str, violations)),
        )
    else:
        _logger.debug("Component graph with %d components is valid.", len(graph))

    return ValidationReport(
        graph=graph,
        config=config,
        violations=tuple(violations),
        root_id=roots[0] if len(roots) == 1 else None,
    )
