"""Coverage criteria: pluggable rules that award points for exercised architecture checks.

Each criterion contributes independently: ``max_points`` says how many
points a type *could* earn, ``earned_points`` how many it did earn given
the rule usage recorded for it.  Totals are plain sums, so criteria can be
added in any order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from archtest.rules.assertion import (
    CATEGORY_EXTEND,
    CATEGORY_IMPLEMENT,
    CATEGORY_NAME_PATTERN,
    CATEGORY_NAME_PREFIX,
    CATEGORY_NAME_SUFFIX,
)

if TYPE_CHECKING:
    from archtest.catalog.model import TypeDescriptor
    from archtest.rules.run_state import TypeUsage


@runtime_checkable
class Criterion(Protocol):
    """Capability set every coverage criterion provides."""

    @property
    def name(self) -> str: ...

    @property
    def rule_categories(self) -> frozenset[str]: ...

    def max_points(self, descriptor: TypeDescriptor) -> int: ...

    def earned_points(self, descriptor: TypeDescriptor, usage: TypeUsage | None) -> int: ...


class ClassNameCriterion:
    """One point for every type, earned once any naming rule has checked it."""

    name = "Class Name"
    rule_categories: frozenset[str] = frozenset(
        {CATEGORY_NAME_PREFIX, CATEGORY_NAME_SUFFIX, CATEGORY_NAME_PATTERN}
    )

    def max_points(self, descriptor: TypeDescriptor) -> int:
        return 1

    def earned_points(self, descriptor: TypeDescriptor, usage: TypeUsage | None) -> int:
        if usage is not None and usage.has_any(self.rule_categories):
            return 1
        return 0


class FinalClassCriterion:
    """One point for final classes, earned once any rule at all has checked them."""

    name = "Final Class"
    rule_categories: frozenset[str] = frozenset()

    def max_points(self, descriptor: TypeDescriptor) -> int:
        return 1 if descriptor.is_final else 0

    def earned_points(self, descriptor: TypeDescriptor, usage: TypeUsage | None) -> int:
        if descriptor.is_final and usage is not None and usage.categories:
            return 1
        return 0


class InheritanceCriterion:
    """One point for types with a parent or interfaces, earned by ``implement``/``extend`` rules."""

    name = "Inheritance"
    rule_categories: frozenset[str] = frozenset({CATEGORY_IMPLEMENT, CATEGORY_EXTEND})

    def max_points(self, descriptor: TypeDescriptor) -> int:
        has_inheritance = descriptor.parent is not None or bool(descriptor.interfaces)
        return 1 if has_inheritance else 0

    def earned_points(self, descriptor: TypeDescriptor, usage: TypeUsage | None) -> int:
        if self.max_points(descriptor) == 0 or usage is None:
            return 0
        return 1 if usage.has_any(self.rule_categories) else 0


def default_criteria() -> list[Criterion]:
    return [ClassNameCriterion(), FinalClassCriterion(), InheritanceCriterion()]
