# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Defines a graph representation of how microgrid components are connected.

The component graph is an approximate representation of the microgrid circuit,
abstracted to a level appropriate for higher-level monitoring and control.
Examples of use-cases would be:

  * using the graph structure to infer which component measurements
    need to be combined to obtain grid power or onsite load

  * identifying which inverter(s) need to be engaged to (dis)charge
    a particular battery

A graph is built once from a complete set of components and connections and is
read-only afterwards, so it can be shared freely between readers.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator

import networkx as nx

from ._component import Component, ComponentCategory, ComponentId
from ._connection import Connection
from ._exceptions import (
    DanglingEdge,
    DuplicateEdge,
    DuplicateId,
    GraphError,
    SelfLoop,
)

_logger = logging.getLogger(__name__)


class ComponentGraph(ABC):
    """Interface for component graph implementations."""

    @abstractmethod
    def component(self, component_id: ComponentId) -> Component:
        """Fetch a single component of the microgrid.

        Args:
            component_id: ID of the component to fetch.

        Returns:
            The component with the given ID.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """

    @abstractmethod
    def components(
        self,
        component_ids: Iterable[ComponentId] | None = None,
        component_categories: Iterable[ComponentCategory] | None = None,
    ) -> Iterator[Component]:
        """Fetch the components of the microgrid, in the order they were declared.

        Args:
            component_ids: filter out any components not matching one of the
                provided IDs
            component_categories: filter out any components not matching one of the
                provided categories

        Returns:
            An iterator over the components of the microgrid, filtered by
                the provided `component_ids` and `component_categories` values.
        """

    @abstractmethod
    def connections(
        self,
        start: Iterable[ComponentId] | None = None,
        end: Iterable[ComponentId] | None = None,
    ) -> Iterator[Connection]:
        """Fetch the connections between components, in the order they were declared.

        Args:
            start: filter out any connections whose `source_id` does not match one
                of these component IDs
            end: filter out any connections whose `destination_id` does not match
                one of these component IDs

        Returns:
            An iterator over the connections between components in the microgrid,
                filtered by the provided `start`/`end` choices.
        """

    @abstractmethod
    def predecessor_ids(self, component_id: ComponentId) -> tuple[ComponentId, ...]:
        """Fetch the IDs of the predecessors of a component.

        Args:
            component_id: ID of the component whose predecessors should be fetched

        Returns:
            The predecessor IDs, in the order their connections were declared.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """

    @abstractmethod
    def successor_ids(self, component_id: ComponentId) -> tuple[ComponentId, ...]:
        """Fetch the IDs of the successors of a component.

        Args:
            component_id: ID of the component whose successors should be fetched

        Returns:
            The successor IDs, in the order their connections were declared.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """

    @abstractmethod
    def position(self, component_id: ComponentId) -> int:
        """Get the index at which a component was declared.

        Args:
            component_id: ID of the component.

        Returns:
            The zero-based declaration index of the component.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """

    @abstractmethod
    def subgraph(self, component_ids: Iterable[ComponentId]) -> "ComponentGraph":
        """Create a graph made of some of the components of this graph.

        Args:
            component_ids: the components to keep; IDs not in the graph are ignored.

        Returns:
            A new graph with the given components and all connections between
                them, keeping the declaration order of this graph.
        """

    @abstractmethod
    def as_networkx(self) -> nx.DiGraph:
        """Get a read-only NetworkX view of the graph.

        Returns:
            A frozen `networkx.DiGraph` whose nodes are component IDs.
        """

    @abstractmethod
    def __contains__(self, component_id: object) -> bool:
        """Check if a component is in the graph.

        Args:
            component_id: the ID to look for.

        Returns:
            Whether there is a component with that ID.
        """

    @abstractmethod
    def __len__(self) -> int:
        """Get the number of components in the graph.

        Returns:
            The number of components.
        """

    def predecessors(self, component_id: ComponentId) -> set[ComponentId]:
        """Fetch the IDs of the graph predecessors of the specified component.

        Args:
            component_id: ID of the component whose predecessors should be fetched

        Returns:
            Set of IDs of the components that are predecessors of `component_id`,
                i.e. for which there is a connection from each of these components to
                `component_id`.
        """
        return set(self.predecessor_ids(component_id))

    def successors(self, component_id: ComponentId) -> set[ComponentId]:
        """Fetch the IDs of the graph successors of the specified component.

        Args:
            component_id: ID of the component whose successors should be fetched

        Returns:
            Set of IDs of the components that are successors of `component_id`,
                i.e. for which there is a connection from `component_id` to each of
                these components.
        """
        return set(self.successor_ids(component_id))

    def in_degree(self, component_id: ComponentId) -> int:
        """Count the predecessors of a component.

        Args:
            component_id: ID of the component.

        Returns:
            The number of predecessors.
        """
        return len(self.predecessor_ids(component_id))

    def out_degree(self, component_id: ComponentId) -> int:
        """Count the successors of a component.

        Args:
            component_id: ID of the component.

        Returns:
            The number of successors.
        """
        return len(self.successor_ids(component_id))

    def is_battery_inverter(self, component: Component) -> bool:
        """Check if the specified component is a battery inverter.

        An inverter is a battery inverter if it has successors and they are all
        batteries, or prechargers in front of batteries.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is a battery inverter.
        """
        return component.category == ComponentCategory.INVERTER and self._only_leads_to(
            component, {ComponentCategory.BATTERY}
        )

    def is_pv_inverter(self, component: Component) -> bool:
        """Check if the specified component is a PV inverter.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is a PV inverter.
        """
        return component.category == ComponentCategory.INVERTER and self._only_leads_to(
            component, {ComponentCategory.PV_ARRAY}
        )

    def is_ev_charger(self, component: Component) -> bool:
        """Check if the specified component is an EV charger.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is an EV charger.
        """
        return component.category == ComponentCategory.EV_CHARGER

    def is_chp(self, component: Component) -> bool:
        """Check if the specified component is a CHP.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is a CHP.
        """
        return component.category == ComponentCategory.CHP

    def is_battery_meter(self, component: Component) -> bool:
        """Check if the specified component is a battery meter.

        This is done by checking if the component has only battery inverters as
        its successors.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is a battery meter.
        """
        return self._is_meter_of(component, self.is_battery_inverter)

    def is_pv_meter(self, component: Component) -> bool:
        """Check if the specified component is a PV meter.

        This is done by checking if the component has only PV inverters as its
        successors.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is a PV meter.
        """
        return self._is_meter_of(component, self.is_pv_inverter)

    def is_ev_charger_meter(self, component: Component) -> bool:
        """Check if the specified component is an EV charger meter.

        This is done by checking if the component has only EV chargers as its
        successors.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is an EV charger meter.
        """
        return self._is_meter_of(component, self.is_ev_charger)

    def is_chp_meter(self, component: Component) -> bool:
        """Check if the specified component is a CHP meter.

        This is done by checking if the component has only CHPs as its
        successors.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is a CHP meter.
        """
        return self._is_meter_of(component, self.is_chp)

    def is_battery_chain(self, component: Component) -> bool:
        """Check if the specified component is part of a battery chain.

        A component is part of a battery chain if it is either a battery inverter or a
        battery meter.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is part of a battery chain.
        """
        return self.is_battery_inverter(component) or self.is_battery_meter(component)

    def is_pv_chain(self, component: Component) -> bool:
        """Check if the specified component is part of a PV chain.

        A component is part of a PV chain if it is either a PV inverter or a PV
        meter.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is part of a PV chain.
        """
        return self.is_pv_inverter(component) or self.is_pv_meter(component)

    def is_ev_charger_chain(self, component: Component) -> bool:
        """Check if the specified component is part of an EV charger chain.

        A component is part of an EV charger chain if it is either an EV charger or an
        EV charger meter.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is part of an EV charger chain.
        """
        return self.is_ev_charger(component) or self.is_ev_charger_meter(component)

    def is_chp_chain(self, component: Component) -> bool:
        """Check if the specified component is part of a CHP chain.

        A component is part of a CHP chain if it is either a CHP or a CHP meter.

        Args:
            component: component to check.

        Returns:
            Whether the specified component is part of a CHP chain.
        """
        return self.is_chp(component) or self.is_chp_meter(component)

    def _is_meter_of(
        self, component: Component, role: Callable[[Component], bool]
    ) -> bool:
        if component.category != ComponentCategory.METER:
            return False
        successors = [
            self.component(cid) for cid in self.successor_ids(component.component_id)
        ]
        return len(successors) > 0 and all(role(successor) for successor in successors)

    def _only_leads_to(
        self, component: Component, categories: set[ComponentCategory]
    ) -> bool:
        """Check that everything below a component ends in the given categories.

        Prechargers and converters are looked through.
        """
        successors = self.successor_ids(component.component_id)
        if not successors:
            return False
        for successor_id in successors:
            successor = self.component(successor_id)
            if successor.category in categories:
                continue
            if successor.category in (
                ComponentCategory.PRECHARGER,
                ComponentCategory.CONVERTER,
            ) and self._only_leads_to(successor, categories):
                continue
            return False
        return True


class _MicrogridComponentGraph(ComponentGraph):
    """ComponentGraph implementation backed by a frozen NetworkX graph.

    Instances are created with `build_graph`.
    """

    def __init__(self, graph: nx.DiGraph, connections: tuple[Connection, ...]) -> None:
        """Initialize the component graph.

        Args:
            graph: a directed graph whose nodes are component IDs, each holding its
                `Component` in the `component` attribute; it is frozen in place
            connections: the connections of `graph`, in declaration order
        """
        self._graph: nx.DiGraph = nx.freeze(graph)
        self._connections = connections
        self._positions: dict[ComponentId, int] = {
            node: index for index, node in enumerate(self._graph.nodes)
        }

    def component(self, component_id: ComponentId) -> Component:
        """Fetch a single component of the microgrid.

        Args:
            component_id: ID of the component to fetch.

        Returns:
            The component with the given ID.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """
        if component_id not in self._graph:
            raise KeyError(f"Component {component_id} not in graph!")
        component: Component = self._graph.nodes[component_id]["component"]
        return component

    def components(
        self,
        component_ids: Iterable[ComponentId] | None = None,
        component_categories: Iterable[ComponentCategory] | None = None,
    ) -> Iterator[Component]:
        """Fetch the components of the microgrid, in the order they were declared.

        Args:
            component_ids: filter out any components not matching one of the
                provided IDs
            component_categories: filter out any components not matching one of the
                provided categories

        Returns:
            An iterator over the components of the microgrid, filtered by
                the provided `component_ids` and `component_categories` values.
        """
        selection: Iterator[Component] = (
            data["component"] for _, data in self._graph.nodes(data=True)
        )
        if component_ids is not None:
            ids = set(component_ids)
            selection = filter(lambda c: c.component_id in ids, selection)

        if component_categories is not None:
            categories = set(component_categories)
            selection = filter(lambda c: c.category in categories, selection)

        return selection

    def connections(
        self,
        start: Iterable[ComponentId] | None = None,
        end: Iterable[ComponentId] | None = None,
    ) -> Iterator[Connection]:
        """Fetch the connections between components, in the order they were declared.

        Args:
            start: filter out any connections whose `source_id` does not match one
                of these component IDs
            end: filter out any connections whose `destination_id` does not match
                one of these component IDs

        Returns:
            An iterator over the connections between components in the microgrid,
                filtered by the provided `start`/`end` choices.
        """
        selection: Iterator[Connection] = iter(self._connections)
        if start is not None:
            start_ids = set(start)
            selection = filter(lambda c: c.source_id in start_ids, selection)

        if end is not None:
            end_ids = set(end)
            selection = filter(lambda c: c.destination_id in end_ids, selection)

        return selection

    def predecessor_ids(self, component_id: ComponentId) -> tuple[ComponentId, ...]:
        """Fetch the IDs of the predecessors of a component.

        Args:
            component_id: ID of the component whose predecessors should be fetched

        Returns:
            The predecessor IDs, in the order their connections were declared.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """
        if component_id not in self._graph:
            raise KeyError(
                f"Component {component_id} not in graph, cannot get predecessors!"
            )
        return tuple(self._graph.predecessors(component_id))

    def successor_ids(self, component_id: ComponentId) -> tuple[ComponentId, ...]:
        """Fetch the IDs of the successors of a component.

        Args:
            component_id: ID of the component whose successors should be fetched

        Returns:
            The successor IDs, in the order their connections were declared.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """
        if component_id not in self._graph:
            raise KeyError(
                f"Component {component_id} not in graph, cannot get successors!"
            )
        return tuple(self._graph.successors(component_id))

    def position(self, component_id: ComponentId) -> int:
        """Get the index at which a component was declared.

        Args:
            component_id: ID of the component.

        Returns:
            The zero-based declaration index of the component.

        Raises:
            KeyError: if the specified `component_id` is not in the graph
        """
        try:
            return self._positions[component_id]
        except KeyError as err:
            raise KeyError(f"Component {component_id} not in graph!") from err

    def subgraph(self, component_ids: Iterable[ComponentId]) -> ComponentGraph:
        """Create a graph made of some of the components of this graph.

        Args:
            component_ids: the components to keep; IDs not in the graph are ignored.

        Returns:
            A new graph with the given components and all connections between
                them, keeping the declaration order of this graph.
        """
        keep = {cid for cid in component_ids if cid in self._graph}
        connections = tuple(
            conn
            for conn in self._connections
            if conn.source_id in keep and conn.destination_id in keep
        )
        # Edges are re-added in declared order so predecessor order is kept.
        graph = nx.DiGraph()
        graph.add_nodes_from(
            (cid, data) for cid, data in self._graph.nodes(data=True) if cid in keep
        )
        graph.add_edges_from(connections)
        return _MicrogridComponentGraph(graph, connections)

    def as_networkx(self) -> nx.DiGraph:
        """Get a read-only NetworkX view of the graph.

        Returns:
            A frozen `networkx.DiGraph` whose nodes are component IDs.
        """
        return self._graph

    def __contains__(self, component_id: object) -> bool:
        """Check if a component is in the graph.

        Args:
            component_id: the ID to look for.

        Returns:
            Whether there is a component with that ID.
        """
        return component_id in self._graph

    def __len__(self) -> int:
        """Get the number of components in the graph.

        Returns:
            The number of components.
        """
        return self._graph.number_of_nodes()

    def __repr__(self) -> str:
        """Return a string representation of the graph.

        Returns:
            A string representation of the graph.
        """
        return (
            f"ComponentGraph(components={len(self)}, "
            f"connections={len(self._connections)})"
        )


def build_graph(
    components: Iterable[Component], connections: Iterable[Connection]
) -> ComponentGraph:
    """Build a component graph from the given components and connections.

    The declaration order of components and connections is kept, and decides
    the order of all query results, validation reports and formulas.

    Args:
        components: the components of the microgrid.
        connections: the connections between the components, as `Connection`s
            or `(source_id, destination_id)` pairs.

    Returns:
        The read-only component graph.

    Raises:
        DuplicateId: if two components share an ID.
        SelfLoop: if a connection starts and ends at the same component.
        DanglingEdge: if a connection references a component not in `components`.
        DuplicateEdge: if the same connection is given more than once.
    """
    graph = nx.DiGraph()
    try:
        for component in components:
            if component.component_id in graph:
                raise DuplicateId(component.component_id)
            graph.add_node(component.component_id, component=component)

        ordered: list[Connection] = []
        for source_id, destination_id in connections:
            connection = Connection(source_id, destination_id)
            if connection.is_self_loop():
                raise SelfLoop(source_id)
            for cid in connection:
                if cid not in graph:
                    raise DanglingEdge(source_id, destination_id, cid)
            if graph.has_edge(source_id, destination_id):
                raise DuplicateEdge(source_id, destination_id)
            graph.add_edge(source_id, destination_id)
            ordered.append(connection)
    except GraphError as err:
        _logger.error("Failed to build component graph: %s", err)
        raise

    _logger.debug(
        "Built component graph with %d components and %d connections.",
        graph.number_of_nodes(),
        len(ordered),
    )
    return _MicrogridComponentGraph(graph, tuple(ordered))
