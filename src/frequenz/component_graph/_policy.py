# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Per-category adjacency and degree rules for component graphs.

The rules are kept as data: a `PolicyTable` maps every `ComponentCategory` to a
`CategoryPolicy`, and both the validator and the formula generator only ever
look rules up in the table.  Supporting a new category, or changing what an
existing one may connect to, is done by providing a different table.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType

from ._component import ComponentCategory


@dataclass(frozen=True)
class DegreeRange:
    """An inclusive range of allowed neighbour counts."""

    minimum: int = 0
    """The smallest allowed number of neighbours."""

    maximum: int | None = None
    """The largest allowed number of neighbours, or `None` for no limit."""

    def contains(self, count: int) -> bool:
        """Check if the given neighbour count is within the range.

        Args:
            count: number of neighbours to check.

        Returns:
            Whether `count` is allowed.
        """
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def __str__(self) -> str:
        """Return the range in interval notation.

        Returns:
            The range, e.g. `[0, 1]` or `[1, inf]`.
        """
        maximum = "inf" if self.maximum is None else str(self.maximum)
        return f"[{self.minimum}, {maximum}]"


@dataclass(frozen=True)
class CategoryPolicy:
    """The rules that apply to all components of a category."""

    allowed_successors: frozenset[ComponentCategory] = frozenset()
    """The categories components of this category may be connected to."""

    min_predecessors: int = 0
    """The smallest allowed number of predecessors."""

    max_predecessors: int | None = None
    """The largest allowed number of predecessors, `None` for no limit."""

    min_successors: int = 0
    """The smallest allowed number of successors."""

    max_successors: int | None = None
    """The largest allowed number of successors, `None` for no limit."""

    measurable: bool = False
    """Whether components of this category report their own measurements."""

    subtractive: bool = False
    """Whether successor formulas are combined by subtraction instead of summing."""

    @property
    def predecessor_range(self) -> DegreeRange:
        """Get the allowed number of predecessors."""
        return DegreeRange(self.min_predecessors, self.max_predecessors)

    @property
    def successor_range(self) -> DegreeRange:
        """Get the allowed number of successors."""
        return DegreeRange(self.min_successors, self.max_successors)


class PolicyTable(Mapping[ComponentCategory, CategoryPolicy]):
    """An immutable lookup table from component category to `CategoryPolicy`."""

    def __init__(self, policies: Mapping[ComponentCategory, CategoryPolicy]) -> None:
        """Create a `PolicyTable` instance.

        Args:
            policies: the policy of each category.

        Raises:
            ValueError: if any category has no policy.
        """
        missing = [c.name for c in ComponentCategory if c not in policies]
        if missing:
            raise ValueError(f"No policy provided for categories: {missing}")

        self._policies: Mapping[ComponentCategory, CategoryPolicy] = MappingProxyType(
            {category: policies[category] for category in ComponentCategory}
        )
        self._allowed_pairs: frozenset[tuple[ComponentCategory, ComponentCategory]] = (
            frozenset(
                (source, destination)
                for source, policy in self._policies.items()
                for destination in policy.allowed_successors
            )
        )

    def __getitem__(self, category: ComponentCategory) -> CategoryPolicy:
        """Get the policy of a category.

        Args:
            category: the category to look up.

        Returns:
            The policy of `category`.
        """
        return self._policies[category]

    def __iter__(self) -> Iterator[ComponentCategory]:
        """Iterate over the categories in the table.

        Returns:
            An iterator over the categories, in declaration order.
        """
        return iter(self._policies)

    def __len__(self) -> int:
        """Get the number of categories in the table.

        Returns:
            The number of categories.
        """
        return len(self._policies)

    def __hash__(self) -> int:
        """Compute a hash of this table from its policies.

        Returns:
            Hash of this table.
        """
        return hash(frozenset(self._policies.items()))

    def __repr__(self) -> str:
        """Return a string representation of the table.

        Returns:
            A string representation of the table.
        """
        return f"PolicyTable({dict(self._policies)!r})"

    def policy(self, category: ComponentCategory) -> CategoryPolicy:
        """Get the policy of a category.

        Args:
            category: the category to look up.

        Returns:
            The policy of `category`.
        """
        return self._policies[category]

    def is_allowed(
        self,
        source_category: ComponentCategory,
        destination_category: ComponentCategory,
    ) -> bool:
        """Check if a connection between two categories is allowed.

        Args:
            source_category: category at the start of the connection.
            destination_category: category at the end of the connection.

        Returns:
            Whether the pair appears in the table.
        """
        return (source_category, destination_category) in self._allowed_pairs

    def predecessor_range(self, category: ComponentCategory) -> DegreeRange:
        """Get the allowed number of predecessors of a category.

        Args:
            category: the category to look up.

        Returns:
            The allowed range.
        """
        return self._policies[category].predecessor_range

    def successor_range(self, category: ComponentCategory) -> DegreeRange:
        """Get the allowed number of successors of a category.

        Args:
            category: the category to look up.

        Returns:
            The allowed range.
        """
        return self._policies[category].successor_range

    def with_policy(
        self, category: ComponentCategory, policy: CategoryPolicy
    ) -> "PolicyTable":
        """Create a copy of this table with the policy of one category replaced.

        Args:
            category: the category to replace the policy of.
            policy: the new policy.

        Returns:
            A new table.
        """
        return PolicyTable({**self._policies, category: policy})

    def with_flags(
        self,
        category: ComponentCategory,
        *,
        measurable: bool | None = None,
        subtractive: bool | None = None,
    ) -> "PolicyTable":
        """Create a copy of this table with the formula flags of a category changed.

        Args:
            category: the category to change.
            measurable: new value of the `measurable` flag, unchanged if `None`.
            subtractive: new value of the `subtractive` flag, unchanged if `None`.

        Returns:
            A new table.
        """
        policy = self._policies[category]
        if measurable is not None:
            policy = replace(policy, measurable=measurable)
        if subtractive is not None:
            policy = replace(policy, subtractive=subtractive)
        return self.with_policy(category, policy)


_LEAVES = frozenset(
    {
        ComponentCategory.LOAD,
        ComponentCategory.EV_CHARGER,
        ComponentCategory.CHP,
        ComponentCategory.ELECTROLYZER,
        ComponentCategory.CRYPTO_MINER,
        ComponentCategory.HVAC,
    }
)

_DC_SIDE = frozenset({ComponentCategory.BATTERY, ComponentCategory.PV_ARRAY})

_AC_SIDE = frozenset(
    {
        ComponentCategory.METER,
        ComponentCategory.INVERTER,
        ComponentCategory.RELAY,
        ComponentCategory.FUSE,
        ComponentCategory.VOLTAGE_TRANSFORMER,
    }
).union(_LEAVES)


def _leaf(*, measurable: bool = False) -> CategoryPolicy:
    return CategoryPolicy(max_successors=0, measurable=measurable)


def _switchgear(*, measurable: bool = False) -> CategoryPolicy:
    return CategoryPolicy(allowed_successors=_AC_SIDE, measurable=measurable)


DEFAULT_POLICY_TABLE = PolicyTable(
    {
        ComponentCategory.GRID: CategoryPolicy(
            allowed_successors=_AC_SIDE,
            max_predecessors=0,
            min_successors=1,
        ),
        ComponentCategory.METER: _switchgear(measurable=True),
        ComponentCategory.RELAY: _switchgear(),
        ComponentCategory.FUSE: _switchgear(),
        ComponentCategory.VOLTAGE_TRANSFORMER: _switchgear(),
        ComponentCategory.INVERTER: CategoryPolicy(
            allowed_successors=_DC_SIDE.union(
                {ComponentCategory.CONVERTER, ComponentCategory.PRECHARGER}
            ),
            measurable=True,
        ),
        ComponentCategory.CONVERTER: CategoryPolicy(allowed_successors=_DC_SIDE),
        ComponentCategory.PRECHARGER: CategoryPolicy(
            allowed_successors=frozenset({ComponentCategory.BATTERY})
        ),
        ComponentCategory.BATTERY: _leaf(),
        ComponentCategory.PV_ARRAY: _leaf(),
        ComponentCategory.LOAD: _leaf(),
        ComponentCategory.EV_CHARGER: _leaf(measurable=True),
        ComponentCategory.CHP: _leaf(measurable=True),
        ComponentCategory.ELECTROLYZER: _leaf(measurable=True),
        ComponentCategory.CRYPTO_MINER: _leaf(measurable=True),
        ComponentCategory.HVAC: _leaf(measurable=True),
    }
)
"""The rules of a regular microgrid.

* The grid connection point has no predecessors and at least one successor.
* Other components can have any number of predecessors, so a battery can be
  fed by several inverters and meters can be arranged in diamonds.
* Batteries and PV arrays can only be placed behind inverters, converters or
  (batteries only) prechargers.
* Loads, EV chargers, CHPs, electrolyzers, crypto miners and HVAC units are
  leaves.
* Meters, inverters and the leaves that report their own power (everything
  but loads) are measurable.  No category is subtractive.
"""
