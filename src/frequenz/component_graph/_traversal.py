# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Ordering and reachability algorithms over component graphs.

None of these functions assume the graph is acyclic: they are used by the
validator before it knows whether the graph has cycles, so every walk is
guarded by a visited set.  Results are always ordered by the declaration order
of the components, never by hashing order.
"""

import heapq
import logging
from collections.abc import Callable

import networkx as nx

from ._component import Component, ComponentId
from ._exceptions import CycleError
from ._graph import ComponentGraph

_logger = logging.getLogger(__name__)


def _kahn(
    graph: ComponentGraph,
) -> tuple[list[ComponentId], tuple[ComponentId, ...] | None]:
    """Run Kahn's algorithm, breaking ties by declaration order.

    Returns:
        The IDs that could be ordered, and one cycle among the rest, if any.
    """
    in_degrees = {c.component_id: 0 for c in graph.components()}
    for connection in graph.connections():
        in_degrees[connection.destination_id] += 1

    ready = [
        (graph.position(cid), cid) for cid, degree in in_degrees.items() if degree == 0
    ]
    heapq.heapify(ready)

    order: list[ComponentId] = []
    while ready:
        _, cid = heapq.heappop(ready)
        order.append(cid)
        for successor in graph.successor_ids(cid):
            in_degrees[successor] -= 1
            if in_degrees[successor] == 0:
                heapq.heappush(ready, (graph.position(successor), successor))

    if len(order) == len(in_degrees):
        return order, None

    done = set(order)
    remaining = [cid for cid in in_degrees if cid not in done]
    return order, _trace_cycle(graph, remaining)


def _trace_cycle(
    graph: ComponentGraph, remaining: list[ComponentId]
) -> tuple[ComponentId, ...]:
    """Find one cycle among the components Kahn's algorithm couldn't order.

    Every such component still has a predecessor among them, so walking
    predecessors from any of them must eventually revisit a component.

    Args:
        graph: the graph being ordered.
        remaining: the unordered components, in declaration order.

    Returns:
        The cycle in connection direction, first and last IDs being the same.
    """
    left = set(remaining)
    path: list[ComponentId] = [remaining[0]]
    seen: dict[ComponentId, int] = {remaining[0]: 0}
    while True:
        current = path[-1]
        step = next(p for p in graph.predecessor_ids(current) if p in left)
        if step in seen:
            cycle = path[seen[step] :] + [step]
            cycle.reverse()
            return tuple(cycle)
        seen[step] = len(path)
        path.append(step)


def topological_order(graph: ComponentGraph) -> list[ComponentId]:
    """Order all components so that every connection points forward.

    Ties are broken by declaration order, so the result is deterministic.

    Args:
        graph: the graph to order.

    Returns:
        All component IDs, each one after all of its predecessors.

    Raises:
        CycleError: if the graph has a cycle.
    """
    order, cycle = _kahn(graph)
    if cycle is not None:
        err = CycleError(cycle)
        _logger.error("Can't order component graph: %s", err)
        raise err
    return order


def find_cycle(graph: ComponentGraph) -> tuple[ComponentId, ...] | None:
    """Find a cycle in the graph.

    Args:
        graph: the graph to search.

    Returns:
        The IDs along one cycle, first and last being the same, or `None` if the
            graph is acyclic.
    """
    _, cycle = _kahn(graph)
    return cycle


def descendants(graph: ComponentGraph, component_id: ComponentId) -> set[ComponentId]:
    """Get the IDs of all components reachable from a component.

    Args:
        graph: the graph to search.
        component_id: the component to start from; it's not part of the result.

    Returns:
        The IDs of all components below `component_id`.

    Raises:
        KeyError: if `component_id` is not in the graph.
    """
    if component_id not in graph:
        raise KeyError(f"Component {component_id} not in graph!")
    result: set[ComponentId] = nx.descendants(graph.as_networkx(), component_id)
    return result


def ancestors(graph: ComponentGraph, component_id: ComponentId) -> set[ComponentId]:
    """Get the IDs of all components from which a component can be reached.

    Args:
        graph: the graph to search.
        component_id: the component to start from; it's not part of the result.

    Returns:
        The IDs of all components above `component_id`.

    Raises:
        KeyError: if `component_id` is not in the graph.
    """
    if component_id not in graph:
        raise KeyError(f"Component {component_id} not in graph!")
    result: set[ComponentId] = nx.ancestors(graph.as_networkx(), component_id)
    return result


def islands(graph: ComponentGraph) -> list[tuple[ComponentId, ...]]:
    """Split the graph into groups of components connected to each other.

    Connection direction is ignored.

    Args:
        graph: the graph to split.

    Returns:
        The islands, each one in declaration order, ordered by their first
            component.
    """
    groups = [
        tuple(sorted(island, key=graph.position))
        for island in nx.weakly_connected_components(graph.as_networkx())
    ]
    groups.sort(key=lambda island: graph.position(island[0]))
    return groups


def dfs(
    graph: ComponentGraph,
    current_node: Component,
    condition: Callable[[Component], bool],
    visited: set[ComponentId] | None = None,
) -> list[Component]:
    """
    Search for components that fulfill the condition in the Graph.

    DFS is used for searching the graph. The graph traversal is stopped
    once a component fulfills the condition.

    Args:
        graph: the graph to search.
        current_node: The current node to search from.
        condition: The condition function to check for.
        visited: The IDs of the already visited nodes.

    Returns:
        The components that fulfill the condition function, in declaration
            order.
    """
    if visited is None:
        visited = set()

    if current_node.component_id in visited:
        return []

    visited.add(current_node.component_id)

    if condition(current_node):
        return [current_node]

    found: list[Component] = []
    for successor_id in graph.successor_ids(current_node.component_id):
        found.extend(dfs(graph, graph.component(successor_id), condition, visited))

    found.sort(key=lambda c: graph.position(c.component_id))
    return found


def _find(
    graph: ComponentGraph,
    start_id: ComponentId,
    predicate: Callable[[Component], bool],
    neighbours: Callable[[ComponentId], tuple[ComponentId, ...]],
) -> Component | None:
    if start_id not in graph:
        raise KeyError(f"Component {start_id} not in graph!")

    visited = {start_id}
    stack = list(reversed(neighbours(start_id)))
    while stack:
        cid = stack.pop()
        if cid in visited:
            continue
        visited.add(cid)
        component = graph.component(cid)
        if predicate(component):
            return component
        stack.extend(reversed(neighbours(cid)))
    return None


def find_successor(
    graph: ComponentGraph,
    start_id: ComponentId,
    predicate: Callable[[Component], bool],
) -> Component | None:
    """Find the first component below `start_id` that matches a predicate.

    Args:
        graph: the graph to search.
        start_id: the component to start from; it's never returned.
        predicate: the condition to match.

    Returns:
        The first match in depth-first order, following connections in
            declaration order, or `None`.

    Raises:
        KeyError: if `start_id` is not in the graph.
    """
    return _find(graph, start_id, predicate, graph.successor_ids)


def find_predecessor(
    graph: ComponentGraph,
    start_id: ComponentId,
    predicate: Callable[[Component], bool],
) -> Component | None:
    """Find the first component above `start_id` that matches a predicate.

    Args:
        graph: the graph to search.
        start_id: the component to start from; it's never returned.
        predicate: the condition to match.

    Returns:
        The first match in depth-first order, following connections backwards
            in declaration order, or `None`.

    Raises:
        KeyError: if `start_id` is not in the graph.
    """
    return _find(graph, start_id, predicate, graph.predecessor_ids)
