# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Setup for all the tests."""

import pytest

from frequenz.component_graph import (
    Component,
    ComponentCategory,
    ComponentGraph,
    Connection,
    ValidationReport,
    build_graph,
    validate,
)


@pytest.fixture()
def sample_components() -> list[Component]:
    """Create a sample list of components, in declaration order.

    ```
    grid(1) -> meter(2) -> inverter(4) -> battery(5)
            -> meter(3) -> inverter(6) -> pv_array(7)
                        -> ev_charger(8)
    ```
    """
    return [
        Component(1, ComponentCategory.GRID),
        Component(2, ComponentCategory.METER),
        Component(3, ComponentCategory.METER),
        Component(4, ComponentCategory.INVERTER),
        Component(5, ComponentCategory.BATTERY),
        Component(6, ComponentCategory.INVERTER),
        Component(7, ComponentCategory.PV_ARRAY),
        Component(8, ComponentCategory.EV_CHARGER),
    ]


@pytest.fixture()
def sample_connections() -> list[Connection]:
    """Create the connections of the sample components, in declaration order."""
    return [
        Connection(1, 2),
        Connection(1, 3),
        Connection(2, 4),
        Connection(4, 5),
        Connection(3, 6),
        Connection(6, 7),
        Connection(3, 8),
    ]


@pytest.fixture()
def sample_graph(
    sample_components: list[Component], sample_connections: list[Connection]
) -> ComponentGraph:
    """Create a sample graph for testing purposes."""
    return build_graph(sample_components, sample_connections)


@pytest.fixture()
def sample_report(sample_graph: ComponentGraph) -> ValidationReport:
    """Validate the sample graph."""
    return validate(sample_graph)
