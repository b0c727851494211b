# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""A graph model of the electrical components of a microgrid.

The graph is built once from the components of a microgrid and the
connections between them, and is read-only afterwards:

```python
from frequenz.component_graph import (
    Component,
    ComponentCategory,
    Connection,
    FormulaGenerator,
    build_graph,
    validate,
)

graph = build_graph(
    [
        Component(1, ComponentCategory.GRID),
        Component(2, ComponentCategory.METER),
        Component(3, ComponentCategory.METER),
    ],
    [Connection(1, 2), Connection(1, 3)],
)
report = validate(graph)
report.raise_on_violations()

print(FormulaGenerator(report).grid_formula())  # #2 + #3
```

Validation checks the graph against the rules of a microgrid, which are kept
in a [`PolicyTable`][frequenz.component_graph.PolicyTable] and can be changed
through a [`ComponentGraphConfig`][frequenz.component_graph.ComponentGraphConfig].
Formulas can only be generated from graphs that passed validation.
"""

from ._component import Component, ComponentCategory, ComponentId
from ._config import ComponentGraphConfig, config_from_mapping, load_config
from ._connection import Connection
from ._exceptions import (
    ComponentNotFound,
    CycleError,
    DanglingEdge,
    DuplicateEdge,
    DuplicateId,
    FormulaError,
    GraphError,
    GraphNotValidated,
    InvalidGraphError,
    InvalidRecord,
    InvalidRoot,
    SelfLoop,
)
from ._formula import ZERO, Constant, Difference, Formula, Leaf, Sum
from ._formula_generator import FormulaGenerator, generate_formula
from ._graph import ComponentGraph, build_graph
from ._policy import DEFAULT_POLICY_TABLE, CategoryPolicy, DegreeRange, PolicyTable
from ._records import (
    ComponentRecord,
    ConnectionRecord,
    build_graph_from_records,
    components_from_records,
    connections_from_records,
)
from ._traversal import (
    ancestors,
    descendants,
    dfs,
    find_cycle,
    find_predecessor,
    find_successor,
    islands,
    topological_order,
)
from ._validation import ValidationReport, validate
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

__all__ = [
    "CategoryPolicy",
    "Component",
    "ComponentCategory",
    "ComponentGraph",
    "ComponentGraphConfig",
    "ComponentId",
    "ComponentNotFound",
    "ComponentRecord",
    "Connection",
    "ConnectionRecord",
    "Constant",
    "CycleDetected",
    "CycleError",
    "DEFAULT_POLICY_TABLE",
    "DanglingEdge",
    "DegreeRange",
    "DegreeViolation",
    "Difference",
    "DuplicateEdge",
    "DuplicateId",
    "Formula",
    "FormulaError",
    "FormulaGenerator",
    "GraphError",
    "GraphNotValidated",
    "IllegalAdjacency",
    "InvalidGraphError",
    "InvalidRecord",
    "InvalidRoot",
    "Leaf",
    "MissingRoot",
    "MultipleRoots",
    "PolicyTable",
    "SelfLoop",
    "Sum",
    "UnreachableComponent",
    "ValidationReport",
    "ValidationViolation",
    "ViolationKind",
    "ZERO",
    "ancestors",
    "build_graph",
    "build_graph_from_records",
    "components_from_records",
    "config_from_mapping",
    "connections_from_records",
    "descendants",
    "dfs",
    "find_cycle",
    "find_predecessor",
    "find_successor",
    "generate_formula",
    "islands",
    "load_config",
    "topological_order",
    "validate",
]
