"""Test runner: discover architecture test suites, run them, and collect coverage."""

from __future__ import annotations

import enum
import importlib.util
import inspect
import logging
import re
import sys
import time
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from archtest.coverage.calculator import CoverageCalculator
from archtest.harness.testcase import ArchTestCase, get_description, get_group
from archtest.rules.assertion import AssertionFailed
from archtest.rules.run_state import RunState

if TYPE_CHECKING:
    from pathlib import Path
    from types import ModuleType

    from archtest.catalog.catalog import TypeCatalog
    from archtest.coverage.calculator import FileCoverage

logger = logging.getLogger(__name__)

# Test modules: ``naming_test.py``, ``test_naming.py``, ``naming_testcase.py``.
_TEST_FILE_RE = re.compile(r"(^test_.*|_test(case)?)\.py$")
_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
DEFAULT_GROUP = "Default"

# Synthetic package under which test modules are imported.
_MODULE_PREFIX = "archtest_suites"


class RunnerError(Exception):
    """Raised when the test directory cannot be used."""


class TestStatus(enum.Enum):
    """Outcome of one architecture test."""

    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"


TestStatus.__test__ = False  # type: ignore[attr-defined]


@dataclass(frozen=True)
class TestResult:
    """Outcome of running one test method."""

    __test__ = False  # not a pytest test class

    test_class: str
    test_method: str
    status: TestStatus
    message: str | None = None
    elapsed: float = 0.0
    group: str = DEFAULT_GROUP
    display_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.test_class}::{self.test_method}"

    @property
    def passed(self) -> bool:
        return self.status is TestStatus.PASSED


@dataclass
class RunReport:
    """All results of a run plus the coverage computed from its ledger."""

    results: list[TestResult] = field(default_factory=list)
    coverage: dict[str, FileCoverage] = field(default_factory=dict)

    def add(self, result: TestResult) -> None:
        self.results.append(result)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.status is TestStatus.PASSED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status is TestStatus.FAILED)

    @property
    def errored(self) -> int:
        return sum(1 for r in self.results if r.status is TestStatus.ERRORED)

    @property
    def elapsed(self) -> float:
        return sum(r.elapsed for r in self.results)

    def has_failures(self) -> bool:
        return self.passed != self.total


def method_name_to_readable(method_name: str) -> str:
    """``testServicesHaveSuffix`` / ``test_services_have_suffix`` -> ``Test Services Have Suffix``."""
    spaced = _CAMEL_RE.sub(r"\1 \2", method_name).replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


def derive_group(test_file: Path, tests_dir: Path) -> str:
    """Dotted directory path of *test_file* below *tests_dir*, or ``Default``."""
    try:
        relative = test_file.parent.resolve().relative_to(tests_dir.resolve())
    except ValueError:
        return DEFAULT_GROUP
    parts = [p for p in relative.parts if p not in ("", ".")]
    return ".".join(parts) if parts else DEFAULT_GROUP


def get_test_methods(cls: type[ArchTestCase]) -> list[str]:
    """Public ``test*`` methods of *cls*, base classes first, in declaration order."""
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            if name.startswith("test") and callable(member) and name not in names:
                names.append(name)
    return names


def is_test_case(obj: object, module: ModuleType) -> bool:
    """Concrete :class:`ArchTestCase` subclasses defined in *module*."""
    return (
        inspect.isclass(obj)
        and issubclass(obj, ArchTestCase)
        and obj is not ArchTestCase
        and obj.__module__ == module.__name__
        and not inspect.isabstract(obj)
    )


class TestRunner:
    """Run every architecture test found under a directory.

    One :class:`RunState` is owned per runner; its ledger is cleared at the
    start of each :meth:`run`.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        tests_dir: Path,
        catalog: TypeCatalog,
        *,
        state: RunState | None = None,
        calculator: CoverageCalculator | None = None,
    ) -> None:
        self.tests_dir = tests_dir
        self.catalog = catalog
        self.state = state or RunState()
        self.calculator = calculator or CoverageCalculator()

    def discover_test_files(self) -> list[Path]:
        if not self.tests_dir.is_dir():
            msg = f"Test directory {self.tests_dir} is not a directory"
            raise RunnerError(msg)
        files: list[Path] = []
        for path in sorted(self.tests_dir.rglob("*.py")):
            if _TEST_FILE_RE.search(path.name):
                logger.debug("Found test file: %s", path)
                files.append(path)
            else:
                logger.debug("Skipping non-test file: %s", path)
        logger.info("Found %d test files in %s", len(files), self.tests_dir)
        return files

    def run(self) -> RunReport:
        self.state.reset()
        report = RunReport()
        for test_file in self.discover_test_files():
            self._run_file(test_file, report)
        report.coverage = self.calculator.ledger_coverage(self.state.ledger, self.catalog)
        return report

    def _load_module(self, test_file: Path) -> ModuleType:
        relative = test_file.resolve().relative_to(self.tests_dir.resolve()).with_suffix("")
        module_name = ".".join((_MODULE_PREFIX, *relative.parts))
        spec = importlib.util.spec_from_file_location(module_name, test_file)
        if spec is None or spec.loader is None:
            msg = f"Cannot load test module from {test_file}"
            raise ImportError(msg)
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return module

    def _run_file(self, test_file: Path, report: RunReport) -> None:
        group = derive_group(test_file, self.tests_dir)
        start = time.monotonic()
        try:
            module = self._load_module(test_file)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to load %s: %s", test_file, exc)
            report.add(
                TestResult(
                    test_class=test_file.name,
                    test_method="<module>",
                    status=TestStatus.ERRORED,
                    message=f"Failed to load test module: {exc}\n{traceback.format_exc()}",
                    elapsed=time.monotonic() - start,
                    group=group,
                    display_name=f"{test_file.name}: load",
                )
            )
            return

        for _, cls in inspect.getmembers(module, lambda obj: is_test_case(obj, module)):
            class_group = get_group(cls) or group
            for method_name in get_test_methods(cls):
                report.add(self._run_method(cls, method_name, class_group))

    def _run_method(self, cls: type[ArchTestCase], method_name: str, group: str) -> TestResult:
        test_class = cls.__qualname__
        self.state.set_context(test_class, method_name)
        start = time.monotonic()
        status = TestStatus.PASSED
        message: str | None = None
        try:
            instance = cls(self.catalog, self.state)
            getattr(instance, method_name)()
        except AssertionFailed as exc:
            status = TestStatus.FAILED
            message = str(exc)
        except Exception as exc:  # noqa: BLE001
            status = TestStatus.ERRORED
            message = f"Test threw exception: {exc}\n{traceback.format_exc()}"
        finally:
            self.state.clear_context()
        elapsed = time.monotonic() - start

        method = getattr(cls, method_name)
        description = get_description(method) or method_name_to_readable(method_name)
        logger.debug("%s::%s %s (%.3fs)", test_class, method_name, status.value, elapsed)
        return TestResult(
            test_class=test_class,
            test_method=method_name,
            status=status,
            message=message,
            elapsed=elapsed,
            group=group,
            display_name=f"{cls.__name__}: {description}",
        )
