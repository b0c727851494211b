# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Expression trees describing how to compute an aggregate from measurements.

Formulas are plain immutable values: they are compared structurally and can be
used as dictionary keys, e.g. to cache the streams computed from them.
Evaluating them against live measurements is up to the caller.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass

from ._component import ComponentId


class OperatorPrecedence(enum.IntEnum):
    """The precedence of an operator."""

    ADDITIVE = 1
    PRIMARY = 9


class _Rendered:
    """A formula rendered to infix notation, with what's needed to nest it."""

    def __init__(self, value: str, precedence: OperatorPrecedence, num_steps: int):
        self.value = value
        self.precedence = precedence
        self.num_steps = num_steps

    def as_left_value(self, outer_precedence: OperatorPrecedence) -> str:
        """Return the value with parentheses if necessary.

        Args:
            outer_precedence: The precedence of the enclosing operator.

        Returns:
            The value with parentheses if necessary.
        """
        return f"({self.value})" if self.precedence < outer_precedence else self.value

    def as_right_value(self, outer_precedence: OperatorPrecedence) -> str:
        """Return the value with parentheses if necessary.

        Args:
            outer_precedence: The precedence of the enclosing operator.

        Returns:
            The value with parentheses if necessary.
        """
        if self.num_steps > 1:
            return (
                f"({self.value})" if self.precedence <= outer_precedence else self.value
            )
        return f"({self.value})" if self.precedence < outer_precedence else self.value

    @staticmethod
    def binary(lhs: _Rendered, operator: str, rhs: _Rendered) -> _Rendered:
        """Join two rendered operands with an additive operator.

        Args:
            lhs: The left-hand side.
            operator: `+` or `-`.
            rhs: The right-hand side.

        Returns:
            The rendered operation.
        """
        precedence = OperatorPrecedence.ADDITIVE
        return _Rendered(
            f"{lhs.as_left_value(precedence)} {operator} "
            f"{rhs.as_right_value(precedence)}",
            precedence,
            lhs.num_steps + 1 + rhs.num_steps,
        )


class Formula(ABC):
    """An expression over component measurements."""

    @abstractmethod
    def _render(self) -> _Rendered:
        """Render the formula in infix notation."""

    @abstractmethod
    def _leaves(self) -> Iterator[Leaf]:
        """Iterate over the leaves of the formula, left to right."""

    def component_ids(self) -> list[ComponentId]:
        """Get the IDs of the components whose measurements the formula uses.

        Returns:
            The component IDs, left to right as they appear in the formula.
        """
        return [leaf.component_id for leaf in self._leaves()]

    def __str__(self) -> str:
        """Return the formula in infix notation.

        Returns:
            The formula, e.g. `#2 + #3 - (#4 + #5)`.
        """
        return self._render().value


@dataclass(frozen=True)
class Leaf(Formula):
    """The measurement of a single component."""

    component_id: ComponentId
    """The measured component."""

    def _render(self) -> _Rendered:
        return _Rendered(f"#{self.component_id}", OperatorPrecedence.PRIMARY, 1)

    def _leaves(self) -> Iterator[Leaf]:
        yield self


@dataclass(frozen=True)
class Constant(Formula):
    """A fixed value."""

    value: float
    """The value."""

    def _render(self) -> _Rendered:
        return _Rendered(str(float(self.value)), OperatorPrecedence.PRIMARY, 1)

    def _leaves(self) -> Iterator[Leaf]:
        yield from ()


ZERO = Constant(0.0)
"""The neutral element of sums, the formula of components that measure nothing."""


@dataclass(frozen=True)
class Sum(Formula):
    """The sum of two or more formulas."""

    terms: tuple[Formula, ...]
    """The formulas to add up, in order."""

    def _render(self) -> _Rendered:
        if not self.terms:
            return ZERO._render()  # pylint: disable=protected-access
        result = self.terms[0]._render()  # pylint: disable=protected-access
        for term in self.terms[1:]:
            result = _Rendered.binary(
                result, "+", term._render()  # pylint: disable=protected-access
            )
        return result

    def _leaves(self) -> Iterator[Leaf]:
        for term in self.terms:
            yield from term._leaves()  # pylint: disable=protected-access


@dataclass(frozen=True)
class Difference(Formula):
    """A formula subtracted from another one."""

    minuend: Formula
    """The formula to subtract from."""

    subtrahend: Formula
    """The formula to subtract."""

    def _render(self) -> _Rendered:
        return _Rendered.binary(
            self.minuend._render(),  # pylint: disable=protected-access
            "-",
            self.subtrahend._render(),  # pylint: disable=protected-access
        )

    def _leaves(self) -> Iterator[Leaf]:
        yield from self.minuend._leaves()  # pylint: disable=protected-access
        yield from self.subtrahend._leaves()  # pylint: disable=protected-access


def sum_of(terms: list[Formula]) -> Formula:
    """Add up formulas, simplifying the result.

    Zero constants are dropped and a single remaining term is returned as is.

    Args:
        terms: the formulas to add up.

    Returns:
        The simplified sum; the zero constant if there is nothing to add.
    """
    kept = [term for term in terms if term != ZERO]
    if not kept:
        return ZERO
    if len(kept) == 1:
        return kept[0]
    return Sum(tuple(kept))


def difference_of(terms: list[Formula]) -> Formula:
    """Subtract formulas from the first one, from left to right.

    Zero subtrahends are dropped; if only the minuend remains it is returned
    as is.

    Args:
        terms: the formulas to subtract, the first one being the minuend.

    Returns:
        The simplified difference; the zero constant if there are no terms.
    """
    if not terms:
        return ZERO
    result = terms[0]
    for term in terms[1:]:
        if term == ZERO:
            continue
        result = Difference(result, term)
    return result
