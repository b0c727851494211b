# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Generation of aggregation formulas from validated component graphs."""

import logging
from collections.abc import Callable, Iterable

from ._component import Component, ComponentId
from ._exceptions import ComponentNotFound, FormulaError, GraphNotValidated, InvalidRoot
from ._formula import Formula, Leaf, difference_of, sum_of
from ._traversal import descendants, dfs, topological_order
from ._validation import ValidationReport, validate

_logger = logging.getLogger(__name__)


class FormulaGenerator:
    """A class for generating formulas from the component graph.

    Only graphs that passed validation are accepted, so every walk is over an
    acyclic graph with a single root.
    """

    def __init__(self, report: ValidationReport) -> None:
        """Create a `FormulaGenerator` instance.

        Args:
            report: the result of validating the graph to generate formulas for.

        Raises:
            GraphNotValidated: if `report` is not a successful validation report.
        """
        if not isinstance(report, ValidationReport):
            _logger.error("Formulas requested for a graph that was not validated.")
            raise GraphNotValidated(
                "Formulas can only be generated from a validation report, "
                f"got {type(report).__name__}"
            )
        if report.valid:
            # Reports can also be built by hand, so a claimed success is rechecked.
            report = validate(report.graph, report.config)
        if not report.valid:
            _logger.error(
                "Formulas requested for an invalid graph: %d violation(s)",
                len(report.violations),
            )
            raise GraphNotValidated(
                "Formulas can't be generated for a graph that failed validation"
            )
        self._report = report
        self._graph = report.graph
        self._policies = report.config.policies

    def generate(self, root_id: ComponentId) -> Formula:
        """Make a formula for the aggregate measured below a component.

        Measurable components are measured directly.  The formula of any other
        component combines the formulas of its successors, in the order their
        connections were declared: by subtraction for subtractive categories and
        by summing otherwise.  Components that neither measure nor have
        successors contribute nothing, and a component with several predecessors
        is only counted below the first of them.

        Args:
            root_id: the component to aggregate below.

        Returns:
            The formula.

        Raises:
            InvalidRoot: if `root_id` is not in the graph.
        """
        if root_id not in self._graph:
            err = InvalidRoot(root_id)
            _logger.error("Can't generate formula: %s", err)
            raise err

        subgraph = self._graph.subgraph(
            descendants(self._graph, root_id).union({root_id})
        )

        formulas: dict[ComponentId, Formula] = {}
        for cid in reversed(topological_order(subgraph)):
            component = subgraph.component(cid)
            policy = self._policies.policy(component.category)
            if policy.measurable:
                formulas[cid] = Leaf(cid)
                continue

            # Shared components are counted once, below their first predecessor.
            terms = [
                formulas[successor]
                for successor in subgraph.successor_ids(cid)
                if subgraph.predecessor_ids(successor)[0] == cid
            ]
            if policy.subtractive:
                formulas[cid] = difference_of(terms)
            else:
                formulas[cid] = sum_of(terms)

        formula = formulas[root_id]
        _logger.debug("Generated formula for component %s: %s", root_id, formula)
        return formula

    def grid_formula(self) -> Formula:
        """Make a formula for the power flowing through the grid connection.

        Returns:
            The formula below the root of the graph.
        """
        root_id = self._report.root_id
        assert root_id is not None, "Valid reports always have a root"
        return self.generate(root_id)

    def battery_formula(
        self, component_ids: Iterable[ComponentId] | None = None
    ) -> Formula:
        """Make a formula for the total battery power.

        Args:
            component_ids: the battery meters or inverters to use, all the
                top-most components of battery chains if `None`.

        Returns:
            The formula.

        Raises:
            ComponentNotFound: if a requested component is not in the graph.
            FormulaError: if a requested component is not part of a chain.
        """
        return self._chain_formula(
            "battery", self._graph.is_battery_chain, component_ids
        )

    def pv_formula(self, component_ids: Iterable[ComponentId] | None = None) -> Formula:
        """Make a formula for the total PV power.

        Args:
            component_ids: the PV meters or inverters to use, all the top-most
                components of PV chains if `None`.

        Returns:
            The formula.

        Raises:
            ComponentNotFound: if a requested component is not in the graph.
            FormulaError: if a requested component is not part of a chain.
        """
        return self._chain_formula("PV", self._graph.is_pv_chain, component_ids)

    def ev_charger_formula(
        self, component_ids: Iterable[ComponentId] | None = None
    ) -> Formula:
        """Make a formula for the total EV charger power.

        Args:
            component_ids: the EV charger meters or EV chargers to use, all the
                top-most components of EV charger chains if `None`.

        Returns:
            The formula.

        Raises:
            ComponentNotFound: if a requested component is not in the graph.
            FormulaError: if a requested component is not part of a chain.
        """
        return self._chain_formula(
            "EV charger", self._graph.is_ev_charger_chain, component_ids
        )

    def chp_formula(
        self, component_ids: Iterable[ComponentId] | None = None
    ) -> Formula:
        """Make a formula for the total CHP power.

        Args:
            component_ids: the CHP meters or CHPs to use, all the top-most
                components of CHP chains if `None`.

        Returns:
            The formula.

        Raises:
            ComponentNotFound: if a requested component is not in the graph.
            FormulaError: if a requested component is not part of a chain.
        """
        return self._chain_formula("CHP", self._graph.is_chp_chain, component_ids)

    def _chain_formula(
        self,
        name: str,
        is_chain: Callable[[Component], bool],
        component_ids: Iterable[ComponentId] | None,
    ) -> Formula:
        if component_ids is not None:
            requested = list(dict.fromkeys(component_ids))
            for cid in requested:
                if cid not in self._graph:
                    err: FormulaError = ComponentNotFound(cid)
                elif not is_chain(self._graph.component(cid)):
                    err = FormulaError(f"Component {cid} is not part of a {name} chain")
                else:
                    continue
                _logger.error("Can't generate %s formula: %s", name, err)
                raise err
            components = list(self._graph.components(component_ids=requested))
        else:
            root_id = self._report.root_id
            assert root_id is not None, "Valid reports always have a root"
            components = dfs(self._graph, self._graph.component(root_id), is_chain)

        if not components:
            _logger.warning(
                "Unable to find any %s components in the component graph.", name
            )
        return sum_of([Leaf(component.component_id) for component in components])


def generate_formula(report: ValidationReport, root_id: ComponentId) -> Formula:
    """Make a formula for the aggregate measured below a component.

    Args:
        report: the result of validating the graph.
        root_id: the component to aggregate below.

    Returns:
        The formula.

    Raises:
        GraphNotValidated: if the graph did not pass validation.
        InvalidRoot: if `root_id` is not in the graph.
    """
    return FormulaGenerator(report).generate(root_id)
