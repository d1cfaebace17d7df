"""Project configuration: ``archtest.yml`` plus composer.json autoload roots."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from archtest.catalog.catalog import DEFAULT_EXTENSIONS
from archtest.catalog.model import KIND_CLASS, TYPE_KINDS, TypeDescriptor, normalize_name

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "archtest.yml"
DEFAULT_TESTS_DIR = "tests/Architecture"

# How many parent directories are searched for composer.json.
_COMPOSER_MAX_DEPTH = 5


class ConfigError(ValueError):
    """Raised when ``archtest.yml`` exists but is invalid."""


@dataclass(frozen=True)
class ArchConfig:
    """Resolved configuration for one project."""

    project_root: Path
    source_roots: tuple[Path, ...] = ()
    tests_dir: Path | None = None
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    all_types: bool = False
    preloaded: tuple[TypeDescriptor, ...] = ()


def find_composer_roots(start: Path) -> list[Path]:
    """Return the PSR-4 autoload directories declared in the nearest composer.json.

    Searches *start* and up to four parent directories.  Missing
    directories are dropped; an unreadable composer.json yields no roots.
    """
    directory = start.resolve()
    for _ in range(_COMPOSER_MAX_DEPTH):
        composer_json = directory / "composer.json"
        if composer_json.is_file():
            return _parse_composer_roots(composer_json)
        if directory.parent == directory:
            break
        directory = directory.parent
    return []


def _parse_composer_roots(composer_json: Path) -> list[Path]:
    try:
        data = json.loads(composer_json.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Failed to read %s, no autoload roots", composer_json)
        return []
    if not isinstance(data, dict):
        return []

    autoload = data.get("autoload", {})
    psr4 = autoload.get("psr-4", {}) if isinstance(autoload, dict) else {}
    if not isinstance(psr4, dict):
        return []

    roots: list[Path] = []
    for namespace, raw_paths in psr4.items():
        paths = raw_paths if isinstance(raw_paths, list) else [raw_paths]
        for raw_path in paths:
            full_path = composer_json.parent / str(raw_path).rstrip("/")
            if full_path.is_dir():
                roots.append(full_path)
            else:
                logger.debug("Autoload path for %s does not exist: %s", namespace, full_path)
    return roots


def _parse_preloaded(raw: object) -> tuple[TypeDescriptor, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        msg = "preloaded must be a list of type mappings"
        raise ConfigError(msg)

    descriptors: list[TypeDescriptor] = []
    for index, item in enumerate(raw):
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict) or not item.get("name"):
            msg = f"preloaded[{index}]: each entry needs a 'name'"
            raise ConfigError(msg)
        kind = str(item.get("kind", KIND_CLASS))
        if kind not in TYPE_KINDS:
            msg = f"preloaded[{index}]: invalid kind '{kind}', must be one of {sorted(TYPE_KINDS)}"
            raise ConfigError(msg)
        interfaces = item.get("interfaces", [])
        if not isinstance(interfaces, list):
            msg = f"preloaded[{index}]: interfaces must be a list"
            raise ConfigError(msg)
        parent = item.get("parent")
        descriptors.append(
            TypeDescriptor(
                name=normalize_name(str(item["name"])),
                kind=kind,
                is_abstract=bool(item.get("abstract", False)),
                is_final=bool(item.get("final", False)),
                parent=normalize_name(str(parent)) if parent else None,
                interfaces=tuple(normalize_name(str(i)) for i in interfaces),
                internal=bool(item.get("internal", False)),
            )
        )
    return tuple(descriptors)


def _as_str_list(value: object, key: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    msg = f"{key} must be a string or a list of strings"
    raise ConfigError(msg)


def load_config(project_root: Path, *, config_path: Path | None = None) -> ArchConfig:
    """Load ``archtest.yml`` from *project_root*, falling back to defaults.

    When no ``paths`` are configured the composer.json PSR-4 autoload
    directories are used as source roots.

    Raises
    ------
    ConfigError
        When the config file exists but cannot be parsed or has invalid values.
    """
    project_root = project_root.resolve()
    path = config_path or project_root / CONFIG_FILENAME
    data: dict[str, Any] = {}

    if path.is_file():
        try:
            with path.open("r", encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            msg = f"Cannot read {path}: {exc}"
            raise ConfigError(msg) from exc
        if loaded is not None and not isinstance(loaded, dict):
            msg = f"{path}: top level must be a mapping"
            raise ConfigError(msg)
        data = loaded or {}
    elif config_path is not None:
        msg = f"Config file not found: {config_path}"
        raise ConfigError(msg)

    if "paths" in data:
        source_roots = [project_root / p for p in _as_str_list(data["paths"], "paths")]
    else:
        source_roots = find_composer_roots(project_root)

    tests_raw = data.get("tests", DEFAULT_TESTS_DIR)
    if not isinstance(tests_raw, str):
        msg = "tests must be a string"
        raise ConfigError(msg)

    extensions = tuple(
        e if e.startswith(".") else f".{e}"
        for e in _as_str_list(data.get("extensions", list(DEFAULT_EXTENSIONS)), "extensions")
    )

    return ArchConfig(
        project_root=project_root,
        source_roots=tuple(source_roots),
        tests_dir=project_root / tests_raw,
        extensions=extensions,
        all_types=bool(data.get("all_types", False)),
        preloaded=_parse_preloaded(data.get("preloaded")),
    )
