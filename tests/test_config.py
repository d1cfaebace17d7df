"""Tests for archtest.config: archtest.yml and composer.json loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archtest.catalog.model import KIND_INTERFACE
from archtest.config import (
    DEFAULT_TESTS_DIR,
    ConfigError,
    find_composer_roots,
    load_config,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestComposerRoots:
    def test_psr4_roots(self, php_project: Path) -> None:
        roots = find_composer_roots(php_project)
        assert roots == [php_project.resolve() / "src"]

    def test_searches_parents(self, php_project: Path) -> None:
        nested = php_project / "tests" / "Architecture"
        nested.mkdir(parents=True)
        assert find_composer_roots(nested) == [php_project.resolve() / "src"]

    def test_list_of_paths_and_missing_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "lib").mkdir()
        (tmp_path / "composer.json").write_text(
            '{"autoload": {"psr-4": {"App\\\\": ["lib/", "gone/"]}}}'
        )
        assert find_composer_roots(tmp_path) == [tmp_path.resolve() / "lib"]

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "composer.json").write_text("{not json")
        assert find_composer_roots(tmp_path) == []

    def test_no_autoload(self, tmp_path: Path) -> None:
        (tmp_path / "composer.json").write_text('{"name": "acme/app"}')
        assert find_composer_roots(tmp_path) == []


class TestLoadConfig:
    def test_defaults_from_composer(self, php_project: Path) -> None:
        config = load_config(php_project)
        assert config.project_root == php_project.resolve()
        assert config.source_roots == (php_project.resolve() / "src",)
        assert config.tests_dir == php_project.resolve() / DEFAULT_TESTS_DIR
        assert config.extensions == (".php",)
        assert not config.all_types
        assert config.preloaded == ()

    def test_explicit_values(self, tmp_path: Path) -> None:
        (tmp_path / "archtest.yml").write_text(
            "paths: [app, lib]\n"
            "tests: arch\n"
            "extensions: [php, .inc]\n"
            "all_types: true\n"
        )
        config = load_config(tmp_path)
        root = tmp_path.resolve()
        assert config.source_roots == (root / "app", root / "lib")
        assert config.tests_dir == root / "arch"
        assert config.extensions == (".php", ".inc")
        assert config.all_types

    def test_single_path_string(self, tmp_path: Path) -> None:
        (tmp_path / "archtest.yml").write_text("paths: src\n")
        assert load_config(tmp_path).source_roots == (tmp_path.resolve() / "src",)

    def test_preloaded(self, tmp_path: Path) -> None:
        (tmp_path / "archtest.yml").write_text(
            "preloaded:\n"
            "  - \\Countable\n"
            "  - name: Psr\\Log\\LoggerInterface\n"
            "    kind: interface\n"
            "    internal: true\n"
            "  - name: App\\Kernel\n"
            "    final: true\n"
            "    parent: Base\\Kernel\n"
            "    interfaces: [\\Stringable]\n"
        )
        countable, logger_iface, kernel = load_config(tmp_path).preloaded
        assert countable.name == "Countable"
        assert logger_iface.kind == KIND_INTERFACE
        assert logger_iface.internal
        assert kernel.is_final
        assert kernel.parent == "Base\\Kernel"
        assert kernel.interfaces == ("Stringable",)

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "archtest.yml").write_text("")
        assert load_config(tmp_path).source_roots == ()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.yml"
        custom.write_text("paths: [code]\n")
        config = load_config(tmp_path, config_path=custom)
        assert config.source_roots == (tmp_path.resolve() / "code",)

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path, config_path=tmp_path / "nope.yml")

    @pytest.mark.parametrize(
        ("content", "message"),
        [
            ("- just\n- a list\n", "must be a mapping"),
            ("paths: [unclosed\n", "Cannot read"),
            ("paths: 3\n", "paths must be"),
            ("tests: [a, b]\n", "tests must be a string"),
            ("preloaded: Foo\n", "preloaded must be a list"),
            ("preloaded:\n  - kind: class\n", "needs a 'name'"),
            ("preloaded:\n  - name: Foo\n    kind: enum\n", "invalid kind"),
            ("preloaded:\n  - name: Foo\n    interfaces: Bar\n", "interfaces must be a list"),
        ],
    )
    def test_invalid(self, tmp_path: Path, content: str, message: str) -> None:
        (tmp_path / "archtest.yml").write_text(content)
        with pytest.raises(ConfigError, match=message):
            load_config(tmp_path)

    def test_config_error_is_value_error(self) -> None:
        assert issubclass(ConfigError, ValueError)
