"""Tests for the archtest CLI (`run` and `types` commands)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from archtest import __version__
from archtest.cli import main

if TYPE_CHECKING:
    from pathlib import Path


PASSING_SUITE = '''
from archtest import ArchTestCase


class ContractTest(ArchTestCase):
    def test_user_service_implements_bar(self):
        services = self.classes().in_namespace("App\\\\Service").matching("/^User/").get()
        self.that(services).have_name_suffix("Service").implement("App\\\\Contract\\\\Bar").or_fail(
            "User services implement Bar"
        )
'''

FAILING_SUITE = '''
from archtest import ArchTestCase


class HandlerTest(ArchTestCase):
    def test_handlers_are_final(self):
        handlers = self.classes().in_namespace("App\\\\Handler").get()
        self.that(handlers).have_name_suffix("Command").or_fail("Handlers are commands")
'''


def _add_suite(project: Path, name: str, content: str) -> Path:
    tests_dir = project / "tests" / "Architecture"
    tests_dir.mkdir(parents=True, exist_ok=True)
    (tests_dir / name).write_text(content)
    return tests_dir


class TestMain:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "types" in result.output


class TestRunCommand:
    def test_passing_suite(self, php_project: Path) -> None:
        _add_suite(php_project, "contract_test.py", PASSING_SUITE)
        result = CliRunner().invoke(
            main, ["run", "--project", str(php_project), "--format", "text"]
        )
        assert result.exit_code == 0, result.output
        assert "✓ ContractTest: Test User Service Implements Bar" in result.output
        assert "Tests: 1 | Passed: 1 | Failed: 0" in result.output

    def test_failing_suite_exits_one(self, php_project: Path) -> None:
        _add_suite(php_project, "handler_test.py", FAILING_SUITE)
        result = CliRunner().invoke(
            main, ["run", "--project", str(php_project), "--format", "text"]
        )
        assert result.exit_code == 1
        assert "Handlers are commands" in result.output
        assert (
            'Class App\\Handler\\CreateUserHandler does not have name suffix "Command"'
            in result.output
        )

    def test_explicit_tests_dir(self, php_project: Path, tmp_path: Path) -> None:
        other = tmp_path / "elsewhere"
        other.mkdir()
        (other / "contract_test.py").write_text(PASSING_SUITE)
        result = CliRunner().invoke(
            main, ["run", str(other), "--project", str(php_project), "--format", "text"]
        )
        assert result.exit_code == 0, result.output

    def test_json_with_coverage(self, php_project: Path) -> None:
        _add_suite(php_project, "contract_test.py", PASSING_SUITE)
        result = CliRunner().invoke(
            main, ["run", "--project", str(php_project), "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["summary"]["passed"] == 1
        service = data["coverage"]["src/Service/UserService.php"]
        assert service["percentage"] == 100.0
        assert service["tests"] == ["ContractTest::test_user_service_implements_bar"]
        untested = data["coverage"]["src/Contract/Bar.php"]
        assert untested["percentage"] == 0.0
        assert untested["tests"] == []

    def test_text_coverage(self, php_project: Path) -> None:
        _add_suite(php_project, "contract_test.py", PASSING_SUITE)
        result = CliRunner().invoke(
            main, ["run", "--project", str(php_project), "--format", "text", "--coverage"]
        )
        assert result.exit_code == 0, result.output
        assert "100.00%  src/Service/UserService.php" in result.output

    def test_coverage_html(self, php_project: Path) -> None:
        _add_suite(php_project, "contract_test.py", PASSING_SUITE)
        target = php_project / "build" / "coverage.html"
        result = CliRunner().invoke(
            main,
            [
                "run",
                "--project",
                str(php_project),
                "--format",
                "text",
                "--coverage-html",
                str(target),
            ],
        )
        assert result.exit_code == 0, result.output
        html = target.read_text()
        assert html.startswith("<!DOCTYPE html>")
        assert "src/Service/UserService.php" in html
        assert "src/Contract/Bar.php" in html

    def test_rich_format(self, php_project: Path) -> None:
        _add_suite(php_project, "contract_test.py", PASSING_SUITE)
        result = CliRunner().invoke(
            main, ["run", "--project", str(php_project), "--format", "rich", "--coverage"]
        )
        assert result.exit_code == 0, result.output
        assert "Architecture Tests" in result.output
        assert "Coverage" in result.output

    def test_missing_tests_dir_exits_two(self, php_project: Path) -> None:
        result = CliRunner().invoke(main, ["run", "--project", str(php_project)])
        assert result.exit_code == 2
        assert "not a directory" in result.output

    def test_bad_config_exits_two(self, php_project: Path) -> None:
        (php_project / "archtest.yml").write_text("paths: 3\n")
        result = CliRunner().invoke(main, ["run", "--project", str(php_project)])
        assert result.exit_code == 2
        assert "paths must be" in result.output


class TestTypesCommand:
    def test_lists_types(self, php_project: Path) -> None:
        result = CliRunner().invoke(main, ["types", "--project", str(php_project)])
        assert result.exit_code == 0, result.output
        assert "final class App\\Service\\UserService" in result.output
        assert "abstract class App\\Service\\BaseService" in result.output
        assert "interface App\\Contract\\Bar" in result.output
        assert result.output.rstrip().endswith("5 types")

    def test_namespace_filter_json(self, php_project: Path) -> None:
        result = CliRunner().invoke(
            main,
            ["types", "--project", str(php_project), "--namespace", "App\\Handler", "--json"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [t["name"] for t in data] == ["App\\Handler\\CreateUserHandler"]
        handler = data[0]
        assert handler["parent"] == "App\\Service\\BaseService"
        assert handler["public_methods"] == ["__invoke", "handle"]

    def test_config_paths(self, tmp_path: Path) -> None:
        (tmp_path / "code").mkdir()
        (tmp_path / "code" / "Foo.php").write_text("<?php\nnamespace Lib;\nclass Foo {}\nclass Bar {}\n")
        (tmp_path / "archtest.yml").write_text("paths: [code]\nall_types: true\n")
        result = CliRunner().invoke(main, ["types", "--project", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "class Lib\\Foo" in result.output
        assert "class Lib\\Bar" in result.output
