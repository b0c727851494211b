# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Tests for the component graph traversal algorithms."""

# pylint: disable=missing-function-docstring

import pytest

from frequenz.component_graph import (
    Component,
    ComponentCategory,
    ComponentGraph,
    Connection,
    CycleError,
    ancestors,
    build_graph,
    descendants,
    dfs,
    find_cycle,
    find_predecessor,
    find_successor,
    islands,
    topological_order,
)

from .utils import GraphGenerator


def _assert_is_cycle(graph: ComponentGraph, path: tuple[int | str, ...]) -> None:
    assert len(path) >= 3
    assert path[0] == path[-1]
    assert len(set(path[:-1])) == len(path) - 1
    connections = set(graph.connections())
    for source, destination in zip(path, path[1:]):
        assert Connection(source, destination) in connections


@pytest.fixture()
def cyclic_graph() -> ComponentGraph:
    """Create a graph with the cycle 2 -> 3 -> 4 -> 2 below the grid."""
    return build_graph(
        [
            Component(1, ComponentCategory.GRID),
            Component(2, ComponentCategory.METER),
            Component(3, ComponentCategory.METER),
            Component(4, ComponentCategory.METER),
            Component(5, ComponentCategory.LOAD),
        ],
        [
            Connection(1, 2),
            Connection(2, 3),
            Connection(3, 4),
            Connection(4, 2),
            Connection(4, 5),
        ],
    )


class TestTopologicalOrder:
    """Tests for `topological_order` and `find_cycle`."""

    def test_sample_graph(self, sample_graph: ComponentGraph) -> None:
        assert topological_order(sample_graph) == [1, 2, 3, 4, 5, 6, 7, 8]
        assert find_cycle(sample_graph) is None

    def test_ties_follow_declaration_order(self) -> None:
        graph = build_graph(
            [
                Component(5, ComponentCategory.METER),
                Component(2, ComponentCategory.METER),
                Component(9, ComponentCategory.GRID),
                Component(3, ComponentCategory.LOAD),
            ],
            [Connection(9, 3)],
        )
        assert topological_order(graph) == [5, 2, 9, 3]

    def test_every_connection_points_forward(self) -> None:
        gen = GraphGenerator()
        graph = gen.to_graph(
            [
                (
                    ComponentCategory.METER,
                    [
                        (ComponentCategory.INVERTER, ComponentCategory.BATTERY),
                        (
                            ComponentCategory.RELAY,
                            (ComponentCategory.METER, ComponentCategory.CHP),
                        ),
                    ],
                ),
                (ComponentCategory.FUSE, ComponentCategory.LOAD),
            ]
        )
        order = topological_order(graph)
        assert sorted(order) == sorted(c.component_id for c in graph.components())
        index = {cid: i for i, cid in enumerate(order)}
        for connection in graph.connections():
            assert index[connection.source_id] < index[connection.destination_id]

    def test_two_component_cycle(self) -> None:
        graph = build_graph(
            [
                Component("G", ComponentCategory.GRID),
                Component("M", ComponentCategory.METER),
            ],
            [Connection("G", "M"), Connection("M", "G")],
        )
        with pytest.raises(CycleError, match="Cycle detected: G -> M -> G") as info:
            topological_order(graph)
        assert info.value.path == ("G", "M", "G")
        assert find_cycle(graph) == ("G", "M", "G")

    def test_cycle_below_root(self, cyclic_graph: ComponentGraph) -> None:
        path = find_cycle(cyclic_graph)
        assert path is not None
        assert path == (2, 3, 4, 2)
        _assert_is_cycle(cyclic_graph, path)
        with pytest.raises(CycleError, match="Cycle detected: 2 -> 3 -> 4 -> 2"):
            topological_order(cyclic_graph)

    def test_reported_cycle_is_a_cycle(self) -> None:
        graph = build_graph(
            [Component(i, ComponentCategory.METER) for i in range(1, 8)],
            [
                Connection(7, 1),
                Connection(1, 2),
                Connection(2, 3),
                Connection(3, 1),
                Connection(3, 4),
                Connection(4, 5),
                Connection(5, 6),
                Connection(6, 4),
            ],
        )
        path = find_cycle(graph)
        assert path is not None
        _assert_is_cycle(graph, path)


class TestReachability:
    """Tests for `descendants` and `ancestors`."""

    def test_descendants(self, sample_graph: ComponentGraph) -> None:
        assert descendants(sample_graph, 3) == {6, 7, 8}
        assert descendants(sample_graph, 1) == {2, 3, 4, 5, 6, 7, 8}
        assert descendants(sample_graph, 8) == set()

    def test_ancestors(self, sample_graph: ComponentGraph) -> None:
        assert ancestors(sample_graph, 7) == {1, 3, 6}
        assert ancestors(sample_graph, 1) == set()

    def test_cycles_terminate(self, cyclic_graph: ComponentGraph) -> None:
        assert descendants(cyclic_graph, 2) == {3, 4, 5}
        assert ancestors(cyclic_graph, 3) == {1, 2, 4}

    def test_missing_component(self, sample_graph: ComponentGraph) -> None:
        with pytest.raises(KeyError):
            descendants(sample_graph, 42)
        with pytest.raises(KeyError):
            ancestors(sample_graph, 42)


class TestIslands:
    """Tests for `islands`."""

    def test_single_island(self, sample_graph: ComponentGraph) -> None:
        assert islands(sample_graph) == [(1, 2, 3, 4, 5, 6, 7, 8)]

    def test_islands_in_declaration_order(self) -> None:
        graph = build_graph(
            [
                Component(1, ComponentCategory.GRID),
                Component(4, ComponentCategory.METER),
                Component(2, ComponentCategory.METER),
                Component(3, ComponentCategory.METER),
                Component(5, ComponentCategory.LOAD),
            ],
            [Connection(1, 2), Connection(4, 5)],
        )
        assert islands(graph) == [(1, 2), (4, 5), (3,)]

    def test_direction_is_ignored(self) -> None:
        graph = build_graph(
            [
                Component(1, ComponentCategory.METER),
                Component(2, ComponentCategory.METER),
                Component(3, ComponentCategory.METER),
            ],
            [Connection(1, 3), Connection(2, 3)],
        )
        assert islands(graph) == [(1, 2, 3)]

    def test_empty_graph(self) -> None:
        assert islands(build_graph([], [])) == []


class TestSearch:
    """Tests for `dfs`, `find_successor` and `find_predecessor`."""

    def test_dfs_search_two_grid_meters(self) -> None:
        """Test DFS searching PV components in a graph with two grid meters."""
        grid = Component(1, ComponentCategory.GRID)
        graph = build_graph(
            [
                grid,
                Component(2, ComponentCategory.METER),
                Component(3, ComponentCategory.METER),
                Component(4, ComponentCategory.INVERTER),
                Component(5, ComponentCategory.INVERTER),
                Component(6, ComponentCategory.PV_ARRAY),
                Component(7, ComponentCategory.PV_ARRAY),
            ],
            [
                Connection(1, 2),
                Connection(1, 3),
                Connection(2, 5),
                Connection(2, 4),
                Connection(4, 6),
                Connection(5, 7),
            ],
        )

        result = dfs(graph, grid, graph.is_pv_inverter)
        assert [c.component_id for c in result] == [4, 5]

    def test_dfs_search_grid_meter(self) -> None:
        """Test DFS searching PV components in a graph with a single grid meter."""
        grid = Component(1, ComponentCategory.GRID)
        graph = build_graph(
            [
                grid,
                Component(2, ComponentCategory.METER),
                Component(3, ComponentCategory.METER),
                Component(4, ComponentCategory.METER),
                Component(5, ComponentCategory.INVERTER),
                Component(6, ComponentCategory.INVERTER),
                Component(7, ComponentCategory.PV_ARRAY),
                Component(8, ComponentCategory.PV_ARRAY),
            ],
            [
                Connection(1, 2),
                Connection(2, 3),
                Connection(2, 4),
                Connection(3, 5),
                Connection(4, 6),
                Connection(5, 7),
                Connection(6, 8),
            ],
        )

        result = dfs(graph, grid, graph.is_pv_chain)
        assert [c.component_id for c in result] == [3, 4]

    def test_dfs_search_nothing_found(self, sample_graph: ComponentGraph) -> None:
        result = dfs(sample_graph, sample_graph.component(1), sample_graph.is_chp)
        assert result == []

    def test_dfs_terminates_on_cycles(self, cyclic_graph: ComponentGraph) -> None:
        result = dfs(
            cyclic_graph,
            cyclic_graph.component(1),
            lambda c: c.category == ComponentCategory.LOAD,
        )
        assert [c.component_id for c in result] == [5]

    def test_find_successor(self, sample_graph: ComponentGraph) -> None:
        found = find_successor(
            sample_graph, 1, lambda c: c.category == ComponentCategory.INVERTER
        )
        assert found == Component(4, ComponentCategory.INVERTER)
        assert find_successor(sample_graph, 5, lambda _: True) is None
        # the start component is never a match
        assert find_successor(sample_graph, 2, lambda c: c.component_id == 2) is None

    def test_find_predecessor(self, sample_graph: ComponentGraph) -> None:
        found = find_predecessor(
            sample_graph, 7, lambda c: c.category == ComponentCategory.METER
        )
        assert found is not None
        assert found.component_id == 3
        assert find_predecessor(sample_graph, 1, lambda _: True) is None

    def test_find_on_cycles(self, cyclic_graph: ComponentGraph) -> None:
        assert find_successor(cyclic_graph, 2, lambda _: False) is None
        assert find_predecessor(cyclic_graph, 2, lambda _: False) is None

    def test_find_missing_start(self, sample_graph: ComponentGraph) -> None:
        with pytest.raises(KeyError):
            find_successor(sample_graph, 42, lambda _: True)
        with pytest.raises(KeyError):
            find_predecessor(sample_graph, 42, lambda _: True)
