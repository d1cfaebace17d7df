"""Type catalog: name-indexed registry of every type discovered for one run."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from archtest.catalog.extractor import scan_file
from archtest.catalog.model import normalize_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from archtest.catalog.model import TypeDescriptor

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".php",)

# Directories never worth descending into.
_SKIP_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn", "node_modules", ".idea"})


class TypeCatalog:
    """Ordered, deduplicated registry of :class:`TypeDescriptor` keyed by name.

    Registration order is discovery order.  The first descriptor registered
    under a name wins; later duplicates are ignored.
    """

    def __init__(self, descriptors: Iterable[TypeDescriptor] = ()) -> None:
        self._types: dict[str, TypeDescriptor] = {}
        self.files_scanned = 0
        self.files_skipped = 0
        for descriptor in descriptors:
            self.add(descriptor)

    def add(self, descriptor: TypeDescriptor) -> bool:
        """Register *descriptor*; return False if the name was already taken."""
        if descriptor.name in self._types:
            logger.debug("Duplicate type %s ignored (%s)", descriptor.name, descriptor.declaring_file)
            return False
        self._types[descriptor.name] = descriptor
        return True

    def get(self, name: str) -> TypeDescriptor | None:
        return self._types.get(normalize_name(name))

    def parent_of(self, descriptor: TypeDescriptor) -> TypeDescriptor | None:
        """Resolve the parent name of *descriptor*, or ``None`` if absent or unknown."""
        if descriptor.parent is None:
            return None
        return self.get(descriptor.parent)

    def in_file(self, file_path: str) -> list[TypeDescriptor]:
        return [t for t in self._types.values() if t.declaring_file == file_path]

    def names(self) -> list[str]:
        return list(self._types)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._types

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


def _iter_source_files(root: Path, extensions: tuple[str, ...]) -> Iterator[Path]:
    """Yield matching files under *root* recursively, in sorted order."""
    try:
        entries = sorted(root.iterdir())
    except OSError as exc:
        logger.warning("Cannot list directory %s: %s", root, exc)
        return
    for entry in entries:
        if entry.is_dir():
            if entry.name not in _SKIP_DIRS:
                yield from _iter_source_files(entry, extensions)
        elif entry.is_file() and entry.suffix in extensions:
            yield entry


def discover(
    roots: Iterable[Path | str],
    *,
    preloaded: Iterable[TypeDescriptor] = (),
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    all_types: bool = False,
) -> TypeCatalog:
    """Build a fresh catalog from source roots.

    Parameters
    ----------
    roots:
        Directories walked recursively for source files.
    preloaded:
        Types already known to the hosting environment.  They are
        registered before anything scanned, so they take precedence.
    extensions:
        File suffixes to scan.
    all_types:
        When *False* (the default) each file contributes only its first
        declaration; when *True* every top-level declaration is registered.

    Unreadable files and missing roots are skipped, never raised.
    """
    start = time.monotonic()
    catalog = TypeCatalog(preloaded)
    suffixes = tuple(extensions)

    for raw_root in roots:
        root = Path(raw_root)
        if not root.is_dir():
            logger.warning("Source root %s is not a directory, skipping", root)
            continue
        for file_path in _iter_source_files(root, suffixes):
            result = scan_file(file_path, first_only=not all_types)
            if result is None:
                catalog.files_skipped += 1
                continue
            catalog.files_scanned += 1
            declaring_file = str(file_path.resolve())
            for declaration in result.declarations:
                catalog.add(declaration.to_descriptor(declaring_file))

    elapsed = (time.monotonic() - start) * 1000
    logger.info(
        "Discovered %d types in %d files (%d skipped, %.0f ms)",
        len(catalog),
        catalog.files_scanned,
        catalog.files_skipped,
        elapsed,
    )
    return catalog


def declared_in(file_path: str) -> list[TypeDescriptor]:
    """Every top-level type declared in *file_path*, read fresh from disk.

    Used for reporting, where a file's full contents matter even when
    discovery registered only its first declaration.  An unreadable file
    yields an empty list.
    """
    result = scan_file(Path(file_path))
    if result is None:
        return []
    return [declaration.to_descriptor(file_path) for declaration in result.declarations]
