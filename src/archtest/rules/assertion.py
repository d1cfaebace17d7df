"""Assertion chain: evaluate every rule against every selected type, fail once.

Rules never stop at the first offending type.  Each rule method checks the
whole selection, appends one violation per offending type, and returns the
chain so further rules can be added.  :meth:`AssertionChain.or_fail` then
raises a single :class:`AssertionFailed` listing every violation in the
order it was found.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from archtest.catalog.model import normalize_name
from archtest.logging_setup import Verbosity
from archtest.rules.selector import compile_pattern

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archtest.catalog.model import TypeDescriptor
    from archtest.rules.run_state import RunState

logger = logging.getLogger(__name__)

# Rule categories recorded in the usage ledger (used by coverage criteria).
CATEGORY_NAME_PREFIX = "haveNamePrefix"
CATEGORY_NAME_SUFFIX = "haveNameSuffix"
CATEGORY_NAME_PATTERN = "matchNamePattern"
CATEGORY_IMPLEMENT = "implement"
CATEGORY_EXTEND = "extend"

NO_MATCHES_MESSAGE = "No classes matched the selector"


@dataclass(frozen=True)
class Violation:
    """A single failed rule for a single type."""

    type_name: str
    message: str


class AssertionFailed(AssertionError):
    """Raised by :meth:`AssertionChain.or_fail`.

    Either ``no_matches`` is set (the selector matched nothing), or
    ``violations`` holds every rule violation in evaluation order.
    """

    def __init__(
        self,
        summary: str,
        violations: Sequence[Violation] = (),
        *,
        no_matches: bool = False,
    ) -> None:
        self.summary = summary
        self.violations = tuple(violations)
        self.no_matches = no_matches
        super().__init__(self.render())

    def render(self) -> str:
        if self.no_matches:
            return f"Details:\n  - {NO_MATCHES_MESSAGE}\n"
        lines = [self.summary, "Details:"]
        lines.extend(f"  - {v.message}" for v in self.violations)
        return "\n".join(lines) + "\n"


class AssertionChain:
    """Stateful evaluator over a fixed selection of types."""

    def __init__(self, types: Sequence[TypeDescriptor], state: RunState | None = None) -> None:
        self._types: tuple[TypeDescriptor, ...] = tuple(types)
        self._state = state
        self._failures: list[Violation] = []

    @classmethod
    def that(cls, types: Sequence[TypeDescriptor], state: RunState | None = None) -> AssertionChain:
        """Start a chain over *types*, registering them with the current test context."""
        chain = cls(types, state)
        chain._register_selection()
        return chain

    @property
    def types(self) -> tuple[TypeDescriptor, ...]:
        return self._types

    @property
    def failures(self) -> list[Violation]:
        return list(self._failures)

    def has_failures(self) -> bool:
        return bool(self._failures)

    # ------------------------------------------------------------------
    # Usage recording
    # ------------------------------------------------------------------

    def _register_selection(self) -> None:
        state = self._state
        if state is None:
            return
        context = state.context
        if context is not None:
            for descriptor in self._types:
                if not descriptor.declaring_file:
                    continue
                state.ledger.record_test(
                    descriptor.declaring_file, descriptor.name, context.identifier
                )

        if state.verbosity >= Verbosity.DEBUG:
            label = context.identifier if context is not None else "(no test context)"
            if not self._types:
                logger.debug("%s: no classes matched the selector", label)
            else:
                logger.debug(
                    "%s: matched %d class(es): %s",
                    label,
                    len(self._types),
                    ", ".join(t.name for t in self._types),
                )

    def _record(self, category: str) -> None:
        state = self._state
        if state is None or state.context is None:
            return
        for descriptor in self._types:
            if descriptor.declaring_file:
                state.ledger.record_category(descriptor.declaring_file, descriptor.name, category)

    def _fail(self, descriptor: TypeDescriptor, message: str) -> None:
        self._failures.append(Violation(descriptor.name, message))

    # ------------------------------------------------------------------
    # Naming rules
    # ------------------------------------------------------------------

    def have_name_prefix(self, prefix: str) -> AssertionChain:
        self._record(CATEGORY_NAME_PREFIX)
        for t in self._types:
            if not t.short_name.startswith(prefix):
                self._fail(t, f'Class {t.name} does not have name prefix "{prefix}"')
        return self

    def have_name_suffix(self, suffix: str) -> AssertionChain:
        self._record(CATEGORY_NAME_SUFFIX)
        for t in self._types:
            if not t.short_name.endswith(suffix):
                self._fail(t, f'Class {t.name} does not have name suffix "{suffix}"')
        return self

    def match_name_pattern(self, pattern: str) -> AssertionChain:
        self._record(CATEGORY_NAME_PATTERN)
        regex = compile_pattern(pattern)
        for t in self._types:
            if regex.search(t.short_name) is None:
                self._fail(t, f'Class {t.name} does not match name pattern "{pattern}"')
        return self

    # ------------------------------------------------------------------
    # Method rules
    # ------------------------------------------------------------------

    def are_invokable(self) -> AssertionChain:
        for t in self._types:
            method = t.get_method("__invoke")
            if method is None:
                self._fail(t, f"Class {t.name} is not invokable (missing __invoke method)")
            elif not method.is_public:
                self._fail(t, f"Class {t.name} has __invoke method but it is not public")
        return self

    def have_at_most_public_methods(self, max_count: int) -> AssertionChain:
        for t in self._types:
            count = len(t.public_methods())
            if count > max_count:
                self._fail(
                    t,
                    f"Class {t.name} has {count} public methods, "
                    f"but at most {max_count} are allowed",
                )
        return self

    def have_at_least_public_methods(self, min_count: int) -> AssertionChain:
        for t in self._types:
            count = len(t.public_methods())
            if count < min_count:
                self._fail(
                    t,
                    f"Class {t.name} has {count} public methods, "
                    f"but at least {min_count} are required",
                )
        return self

    def have_exactly_public_methods(self, expected: int) -> AssertionChain:
        for t in self._types:
            count = len(t.public_methods())
            if count != expected:
                self._fail(
                    t,
                    f"Class {t.name} has {count} public methods, "
                    f"but exactly {expected} are required",
                )
        return self

    # ------------------------------------------------------------------
    # Relationship rules
    # ------------------------------------------------------------------

    def implement(self, interface: str) -> AssertionChain:
        self._record(CATEGORY_IMPLEMENT)
        wanted = normalize_name(interface)
        for t in self._types:
            if not t.implements(wanted):
                self._fail(t, f"Class {t.name} does not implement interface {wanted}")
        return self

    def extend(self, class_name: str) -> AssertionChain:
        self._record(CATEGORY_EXTEND)
        wanted = normalize_name(class_name)
        for t in self._types:
            if not t.extends(wanted):
                self._fail(t, f"Class {t.name} does not extend class {wanted}")
        return self

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def or_fail(self, message: str) -> None:
        """Raise :class:`AssertionFailed` if nothing matched or any rule failed.

        An empty selection is reported even when no rule was called, and
        takes precedence over accumulated violations.
        """
        if not self._types:
            raise AssertionFailed(message, no_matches=True)
        if self._failures:
            raise AssertionFailed(message, self._failures)

    resolve = or_fail
