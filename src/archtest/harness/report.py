"""Report formatters: plain text, Rich console output, JSON, and coverage tables."""

from __future__ import annotations

import io
import json
import os
from itertools import groupby
from typing import TYPE_CHECKING

from archtest.coverage.calculator import coverage_level

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from archtest.harness.runner import RunReport, TestResult

TITLE = "Architecture Tests"
_RULE_WIDTH = 50

_LEVEL_STYLES = {"success": "green", "warning": "yellow", "danger": "red"}


def _grouped(report: RunReport) -> list[tuple[str, list[TestResult]]]:
    """Results grouped by group name, groups sorted alphabetically."""
    ordered = sorted(report.results, key=lambda r: r.group)
    return [(name, list(items)) for name, items in groupby(ordered, key=lambda r: r.group)]


def _summary_line(report: RunReport) -> str:
    line = (
        f"Tests: {report.total} | Passed: {report.passed} | "
        f"Failed: {report.failed} | Time: {report.elapsed:.2f}s"
    )
    if report.errored:
        line = line.replace(" | Time:", f" | Errored: {report.errored} | Time:")
    return line


def format_text(report: RunReport) -> str:
    """Format a run as plain text.

    Example::

        Architecture Tests
        ==================================================

        Domain
        ------
        ✓ ServiceTest: Test Services Have Suffix
        ✗ ServiceTest: Test Services Are Final
          Services must be final
          Details:
            - Class App\\Service\\Mailer does not have name suffix "Service"

        --------------------------------------------------
        Tests: 2 | Passed: 1 | Failed: 1 | Time: 0.01s
        ==================================================
    """
    lines: list[str] = [TITLE, "=" * _RULE_WIDTH, ""]

    for group, results in _grouped(report):
        lines.append(group)
        lines.append("-" * len(group))
        for result in results:
            if result.passed:
                lines.append(f"✓ {result.display_name}")
                continue
            lines.append(f"✗ {result.display_name}")
            for message_line in (result.message or "").splitlines():
                if message_line.strip():
                    lines.append(f"  {message_line}")
        lines.append("")

    lines.append("-" * _RULE_WIDTH)
    lines.append(_summary_line(report))
    lines.append("=" * _RULE_WIDTH)
    return "\n".join(lines)


def render_rich(report: RunReport, console: Console) -> None:
    """Print a run to *console* with colours (same layout as :func:`format_text`)."""
    from rich.markup import escape

    console.print(f"[bold]{TITLE}[/]")
    console.rule(style="dim")
    console.print()

    for group, results in _grouped(report):
        console.print(f"[cyan]{escape(group)}[/]")
        console.print(f"[cyan]{'-' * len(group)}[/]")
        for result in results:
            name = escape(result.display_name)
            if result.passed:
                console.print(f"[green]✓[/] {name}")
                continue
            console.print(f"[red]✗ {name}[/]")
            for message_line in (result.message or "").splitlines():
                if message_line.strip():
                    console.print(f"  [red]{escape(message_line)}[/]")
        console.print()

    failed_style = "red" if report.failed or report.errored else "green"
    console.rule(style="dim")
    console.print(
        f"Tests: {report.total} | Passed: [green]{report.passed}[/] | "
        f"Failed: [{failed_style}]{report.failed}[/] | "
        + (f"Errored: [red]{report.errored}[/] | " if report.errored else "")
        + f"Time: {report.elapsed:.2f}s"
    )


def _relative(file_path: str, base: str | None) -> str:
    if base is None:
        return file_path
    try:
        return os.path.relpath(file_path, base)
    except ValueError:
        return file_path


def format_coverage(report: RunReport, *, base: str | None = None) -> str:
    """Format per-file coverage as plain text, one file per line, sorted by path."""
    if not report.coverage:
        return "No coverage recorded"
    lines = ["Coverage", "-" * len("Coverage")]
    for file_path in sorted(report.coverage):
        cov = report.coverage[file_path]
        lines.append(
            f"{cov.percentage:6.2f}%  {_relative(file_path, base)}  "
            f"({len(cov.types)} types, {len(cov.tests)} tests)"
        )
    return "\n".join(lines)


def render_coverage(report: RunReport, console: Console, *, base: str | None = None) -> None:
    """Print per-file coverage as a Rich table."""
    from rich.table import Table

    table = Table(title="Coverage", box=None, padding=(0, 1))
    table.add_column("file", style="cyan")
    table.add_column("types", justify="right")
    table.add_column("tests", justify="right")
    table.add_column("coverage", justify="right")

    percentages: list[float] = []
    for file_path in sorted(report.coverage):
        cov = report.coverage[file_path]
        percentages.append(cov.percentage)
        style = _LEVEL_STYLES[cov.level]
        table.add_row(
            _relative(file_path, base),
            str(len(cov.types)),
            str(len(cov.tests)),
            f"[{style}]{cov.percentage:.2f}%[/]",
        )

    if percentages:
        overall = sum(percentages) / len(percentages)
        style = _LEVEL_STYLES[coverage_level(overall)]
        table.add_row("[bold]Total[/]", "", "", f"[bold {style}]{overall:.2f}%[/]")
    console.print(table)


def render_coverage_details(
    report: RunReport, console: Console, *, base: str | None = None
) -> None:
    """Print one table per file with each type's points and the tests that touched it."""
    from rich.markup import escape
    from rich.table import Table

    for file_path in sorted(report.coverage):
        cov = report.coverage[file_path]
        table = Table(title=escape(_relative(file_path, base)), box=None, padding=(0, 1))
        table.add_column("type", style="cyan")
        table.add_column("points", justify="right")
        table.add_column("coverage", justify="right")
        for score in cov.types:
            style = _LEVEL_STYLES[coverage_level(score.percentage)]
            table.add_row(
                escape(score.type_name),
                f"{score.earned}/{score.maximum}",
                f"[{style}]{score.percentage:.2f}%[/]",
            )
        console.print(table)
        tests = ", ".join(cov.tests) if cov.tests else "none"
        console.print(f"  [dim]tests:[/] {escape(tests)}")
        console.print()


def write_coverage_html(report: RunReport, path: Path, *, base: str | None = None) -> None:
    """Write the coverage summary and per-file details as a standalone HTML page."""
    from rich.console import Console

    console = Console(record=True, file=io.StringIO(), width=120, force_terminal=True)
    console.rule(f"{TITLE}: Coverage")
    if report.coverage:
        render_coverage(report, console, base=base)
        console.print()
        render_coverage_details(report, console, base=base)
    else:
        console.print("No coverage recorded")
    path.parent.mkdir(parents=True, exist_ok=True)
    console.save_html(str(path))


def format_json(report: RunReport, *, base: str | None = None) -> str:
    """Format a run as JSON with ``results``, ``summary`` and ``coverage`` keys."""
    results = [
        {
            "test_class": r.test_class,
            "test_method": r.test_method,
            "status": r.status.value,
            "group": r.group,
            "display_name": r.display_name,
            "message": r.message,
            "elapsed": round(r.elapsed, 6),
        }
        for r in report.results
    ]
    coverage = {
        _relative(file_path, base): {
            "percentage": round(cov.percentage, 2),
            "level": cov.level,
            "tests": list(cov.tests),
            "types": [
                {"name": s.type_name, "earned": s.earned, "max": s.maximum}
                for s in cov.types
            ],
        }
        for file_path, cov in sorted(report.coverage.items())
    }
    output: dict[str, object] = {
        "results": results,
        "summary": {
            "total": report.total,
            "passed": report.passed,
            "failed": report.failed,
            "errored": report.errored,
            "elapsed": round(report.elapsed, 6),
        },
        "coverage": coverage,
    }
    return json.dumps(output, indent=2)
