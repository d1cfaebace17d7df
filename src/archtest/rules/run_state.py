"""Per-run mutable state: the current test context and the rule usage ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from archtest.logging_setup import Verbosity

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from archtest.catalog.model import TypeDescriptor
    from archtest.rules.assertion import AssertionChain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestContext:
    """Identifies the architecture test currently being evaluated."""

    __test__ = False  # not a pytest test class

    test_class: str
    test_method: str

    @property
    def identifier(self) -> str:
        return f"{self.test_class}::{self.test_method}"


@dataclass
class TypeUsage:
    """Which tests selected a type and which rule categories ran against it."""

    tests: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)

    def add_test(self, identifier: str) -> None:
        if identifier not in self.tests:
            self.tests.append(identifier)

    def add_category(self, category: str) -> None:
        if category not in self.categories:
            self.categories.append(category)

    def has_any(self, categories: Sequence[str] | frozenset[str]) -> bool:
        return any(c in self.categories for c in categories)


@dataclass
class FileUsage:
    """Usage recorded for all types declared in one source file."""

    tests: list[str] = field(default_factory=list)
    types: dict[str, TypeUsage] = field(default_factory=dict)


class UsageLedger:
    """Mapping of ``source file -> FileUsage`` for one run.

    Only :class:`AssertionChain` writes to the ledger, and only while a
    test context is set.  It is cleared as a whole, never partially.
    """

    def __init__(self) -> None:
        self._files: dict[str, FileUsage] = {}

    def entry(self, file_path: str, type_name: str) -> TypeUsage:
        """Return the usage entry for ``(file_path, type_name)``, creating it if needed."""
        file_usage = self._files.setdefault(file_path, FileUsage())
        return file_usage.types.setdefault(type_name, TypeUsage())

    def record_test(self, file_path: str, type_name: str, identifier: str) -> None:
        file_usage = self._files.setdefault(file_path, FileUsage())
        if identifier not in file_usage.tests:
            file_usage.tests.append(identifier)
        self.entry(file_path, type_name).add_test(identifier)

    def record_category(self, file_path: str, type_name: str, category: str) -> None:
        self.entry(file_path, type_name).add_category(category)

    def usage_for(self, file_path: str, type_name: str) -> TypeUsage | None:
        file_usage = self._files.get(file_path)
        if file_usage is None:
            return None
        return file_usage.types.get(type_name)

    def get(self, file_path: str) -> FileUsage | None:
        return self._files.get(file_path)

    def files(self) -> list[str]:
        return list(self._files)

    def items(self) -> Iterator[tuple[str, FileUsage]]:
        return iter(self._files.items())

    def clear(self) -> None:
        self._files.clear()

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._files

    def __len__(self) -> int:
        return len(self._files)


class RunState:
    """Explicitly owned state shared by discovery, evaluation, and scoring.

    A harness sets the context before each test and clears it afterwards;
    rule usage is recorded only while a context is set.
    """

    def __init__(self, *, verbosity: Verbosity = Verbosity.NONE) -> None:
        self.ledger = UsageLedger()
        self.context: TestContext | None = None
        self.verbosity = verbosity

    def set_context(self, test_class: str, test_method: str) -> None:
        self.context = TestContext(test_class, test_method)

    def clear_context(self) -> None:
        self.context = None

    def reset(self) -> None:
        """Prepare for a new run: drop the ledger and any stale context."""
        self.ledger.clear()
        self.context = None

    def that(self, types: Sequence[TypeDescriptor]) -> AssertionChain:
        from archtest.rules.assertion import AssertionChain

        return AssertionChain.that(types, self)
