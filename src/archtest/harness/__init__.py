"""Harness domain: architecture test base class, runner, and report formatters."""

from archtest.harness.report import (
    format_coverage,
    format_json,
    format_text,
    render_coverage,
    render_rich,
    write_coverage_html,
)
from archtest.harness.runner import (
    RunnerError,
    RunReport,
    TestResult,
    TestRunner,
    TestStatus,
)
from archtest.harness.testcase import ArchTestCase, test_description, test_group

__all__ = [
    "ArchTestCase",
    "RunReport",
    "RunnerError",
    "TestResult",
    "TestRunner",
    "TestStatus",
    "format_coverage",
    "format_json",
    "format_text",
    "render_coverage",
    "render_rich",
    "test_description",
    "test_group",
    "write_coverage_html",
]
