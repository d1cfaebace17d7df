"""archtest CLI entry point."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from archtest import __version__
from archtest.logging_setup import Verbosity, configure_logging

if TYPE_CHECKING:
    from archtest.catalog import TypeCatalog
    from archtest.config import ArchConfig


@click.group()
@click.version_option(version=__version__, prog_name="archtest")
@click.option("--verbose", "-v", count=True, help="Increase verbosity (-v, -vv, -vvv).")
@click.pass_context
def main(ctx: click.Context, *, verbose: int) -> None:
    """archtest - architecture conformance tests for PHP codebases."""
    ctx.ensure_object(dict)
    verbosity = Verbosity.from_count(verbose)
    ctx.obj["verbosity"] = verbosity
    configure_logging(verbosity)


def _load(project: Path | None, config_path: Path | None) -> tuple[ArchConfig, TypeCatalog]:
    """Load config and discover the catalog, exiting with code 2 on config errors."""
    from archtest.catalog import discover
    from archtest.config import ConfigError, load_config

    project_root = project or Path.cwd()
    try:
        config = load_config(project_root, config_path=config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if not config.source_roots:
        click.echo(
            "Warning: no source roots (set 'paths' in archtest.yml or add composer.json autoload)",
            err=True,
        )
    catalog = discover(
        config.source_roots,
        preloaded=config.preloaded,
        extensions=config.extensions,
        all_types=config.all_types,
    )
    return config, catalog


@main.command()
@click.argument(
    "tests_dir",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <project>/archtest.yml).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "text", "json"]),
    default=None,
    help="Output format (default: rich if TTY, text if piped).",
)
@click.option("--coverage", is_flag=True, default=False, help="Also report rule coverage per file.")
@click.option(
    "--coverage-html",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write an HTML coverage report to this file.",
)
@click.pass_context
def run(
    ctx: click.Context,
    *,
    tests_dir: Path | None,
    project: Path | None,
    config_path: Path | None,
    fmt: str | None,
    coverage: bool,
    coverage_html: Path | None,
) -> None:
    """Run the architecture tests.

    Exit codes: 0 = all tests passed, 1 = failures or errors,
    2 = configuration error.
    """
    from archtest.harness.report import (
        format_coverage,
        format_json,
        format_text,
        render_coverage,
        render_rich,
        write_coverage_html,
    )
    from archtest.harness.runner import RunnerError, TestRunner
    from archtest.rules.run_state import RunState

    config, catalog = _load(project, config_path)

    directory = tests_dir or config.tests_dir
    if directory is None:
        click.echo("Error: no test directory given", err=True)
        sys.exit(2)

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "text"

    state = RunState(verbosity=ctx.obj["verbosity"])
    runner = TestRunner(directory, catalog, state=state)
    try:
        report = runner.run()
    except RunnerError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    base = str(config.project_root)
    if fmt == "json":
        click.echo(format_json(report, base=base))
    elif fmt == "rich":
        from rich.console import Console

        console = Console()
        render_rich(report, console)
        if coverage:
            console.print()
            render_coverage(report, console, base=base)
    else:
        click.echo(format_text(report))
        if coverage:
            click.echo("")
            click.echo(format_coverage(report, base=base))

    if coverage_html is not None:
        write_coverage_html(report, coverage_html, base=base)
        click.echo(f"Coverage report written to {coverage_html}", err=True)

    if report.has_failures():
        sys.exit(1)


@main.command("types")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <project>/archtest.yml).",
)
@click.option("--namespace", default=None, help="Only types whose namespace starts with this.")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def types_cmd(
    *,
    project: Path | None,
    config_path: Path | None,
    namespace: str | None,
    output_json: bool,
) -> None:
    """List the types discovered in the source roots."""
    from archtest.rules.selector import Selector

    _, catalog = _load(project, config_path)

    selector = Selector(catalog)
    if namespace is not None:
        selector = selector.in_namespace(namespace)
    found = selector.get()

    if output_json:
        data = [
            {
                "name": t.name,
                "kind": t.kind,
                "file": t.declaring_file,
                "abstract": t.is_abstract,
                "final": t.is_final,
                "parent": t.parent,
                "interfaces": list(t.interfaces),
                "public_methods": [m.name for m in t.public_methods()],
            }
            for t in found
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for t in found:
        flags = " ".join(
            flag for flag, on in (("abstract", t.is_abstract), ("final", t.is_final)) if on
        )
        prefix = f"{flags} " if flags else ""
        click.echo(f"{prefix}{t.kind} {t.name}")
    click.echo(f"{len(found)} types")
