"""Coverage calculator: turn recorded rule usage into per-type and per-file percentages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from archtest.catalog.catalog import declared_in
from archtest.coverage.criteria import Criterion, default_criteria

if TYPE_CHECKING:
    from collections.abc import Iterable

    from archtest.catalog.catalog import TypeCatalog
    from archtest.catalog.model import TypeDescriptor
    from archtest.rules.run_state import FileUsage, TypeUsage, UsageLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeScore:
    """Points for one type."""

    type_name: str
    earned: int
    maximum: int

    @property
    def percentage(self) -> float:
        if self.maximum == 0:
            return 0.0
        return self.earned / self.maximum * 100.0


@dataclass(frozen=True)
class FileCoverage:
    """Coverage for one source file: the mean of its type percentages."""

    file_path: str
    tests: tuple[str, ...] = ()
    types: tuple[TypeScore, ...] = field(default=())

    @property
    def percentage(self) -> float:
        if not self.types:
            return 0.0
        return sum(s.percentage for s in self.types) / len(self.types)

    @property
    def level(self) -> str:
        return coverage_level(self.percentage)


def coverage_level(percent: float) -> str:
    """Map a coverage percentage onto ``success`` / ``warning`` / ``danger``."""
    if percent >= 80:
        return "success"
    if percent >= 50:
        return "warning"
    return "danger"


class CoverageCalculator:
    """Sum the contributions of a registry of criteria.

    Starts with :class:`ClassNameCriterion`, :class:`FinalClassCriterion`
    and :class:`InheritanceCriterion` unless explicit *criteria* are given.
    """

    def __init__(self, criteria: Iterable[Criterion] | None = None) -> None:
        self._criteria: list[Criterion] = (
            list(criteria) if criteria is not None else default_criteria()
        )

    def add_criterion(self, criterion: Criterion) -> None:
        if not isinstance(criterion, Criterion):
            msg = f"{criterion!r} does not implement the Criterion protocol"
            raise TypeError(msg)
        self._criteria.append(criterion)

    @property
    def criteria(self) -> list[Criterion]:
        return list(self._criteria)

    def max_points(self, descriptor: TypeDescriptor) -> int:
        return sum(c.max_points(descriptor) for c in self._criteria)

    def earned_points(self, descriptor: TypeDescriptor, usage: TypeUsage | None) -> int:
        """Earned points, never more than :meth:`max_points`."""
        earned = sum(c.earned_points(descriptor, usage) for c in self._criteria)
        return min(earned, self.max_points(descriptor))

    def percentage(self, descriptor: TypeDescriptor, usage: TypeUsage | None) -> float:
        return self.score(descriptor, usage).percentage

    def score(self, descriptor: TypeDescriptor, usage: TypeUsage | None) -> TypeScore:
        return TypeScore(
            type_name=descriptor.name,
            earned=self.earned_points(descriptor, usage),
            maximum=self.max_points(descriptor),
        )

    def file_coverage(
        self,
        file_path: str,
        file_usage: FileUsage | None,
        catalog: TypeCatalog,
        *,
        declared: Iterable[TypeDescriptor] = (),
    ) -> FileCoverage:
        """Score the types of *file_path*.

        *declared* lists every type the file declares; each one is scored,
        at 0 points when no rule touched it.  Types recorded in *file_usage*
        but not declared are resolved through *catalog* and skipped when
        they cannot be resolved.  A file with no scored types has 0.0
        coverage.
        """
        usages = file_usage.types if file_usage is not None else {}
        descriptors: dict[str, TypeDescriptor] = {}
        for descriptor in declared:
            known = catalog.get(descriptor.name)
            if known is not None and known.declaring_file == descriptor.declaring_file:
                descriptor = known
            descriptors.setdefault(descriptor.name, descriptor)
        for type_name in usages:
            if type_name in descriptors:
                continue
            descriptor = catalog.get(type_name)
            if descriptor is None:
                logger.debug("Type %s not found in catalog, skipping", type_name)
                continue
            descriptors[type_name] = descriptor
        return FileCoverage(
            file_path=file_path,
            tests=tuple(file_usage.tests) if file_usage is not None else (),
            types=tuple(self.score(d, usages.get(name)) for name, d in descriptors.items()),
        )

    def ledger_coverage(
        self, ledger: UsageLedger, catalog: TypeCatalog
    ) -> dict[str, FileCoverage]:
        """Coverage for every source file, keyed by file path.

        Files recorded in the ledger come first, followed by every other
        cataloged file, which no test exercised and so scores 0.0.  Each
        file is re-read so that all of its declarations are scored, not only
        the one discovery registered.
        """
        files = [file_path for file_path, _ in ledger.items()]
        seen = set(files)
        for descriptor in catalog:
            file_path = descriptor.declaring_file
            if file_path and file_path not in seen:
                seen.add(file_path)
                files.append(file_path)
        return {
            file_path: self.file_coverage(
                file_path, ledger.get(file_path), catalog, declared=declared_in(file_path)
            )
            for file_path in files
        }
