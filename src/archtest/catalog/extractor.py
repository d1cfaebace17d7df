"""Type declaration extractor: a single-pass state machine over the PHP token stream.

The scanner recognises namespace statements, ``use`` imports and top-level
``class`` / ``interface`` / ``trait`` declarations together with the static
metadata the rules need (modifiers, ``extends`` / ``implements`` lists and
the methods declared directly in the body).  It is not a PHP parser: any
construct it does not need is skipped.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from archtest.catalog.model import (
    KIND_CLASS,
    KIND_INTERFACE,
    KIND_TRAIT,
    NAMESPACE_SEPARATOR,
    MethodDescriptor,
    TypeDescriptor,
    qualify,
)
from archtest.catalog.tokenizer import KEYWORD, LITERAL, NAME, OTHER, PUNCT, Token, tokenize

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

_TYPE_KEYWORDS: dict[str, str] = {
    "class": KIND_CLASS,
    "interface": KIND_INTERFACE,
    "trait": KIND_TRAIT,
}
_DECLARATION_MODIFIERS: frozenset[str] = frozenset({"abstract", "final", "readonly"})
_MEMBER_MODIFIERS: frozenset[str] = frozenset(
    {"public", "protected", "private", "static", "abstract", "final", "readonly", "var"}
)
_VISIBILITY_ORDER = ("public", "protected", "private")


class _State(enum.Enum):
    IDLE = "idle"
    NAMESPACE = "collecting-namespace"
    USE = "collecting-use"
    TYPE_NAME = "collecting-type-name"
    TYPE_HEADER = "collecting-type-header"
    TYPE_BODY = "in-type-body"
    METHOD_NAME = "collecting-method-name"


# States in which comments are skipped instead of interrupting the statement.
_COLLECTING_STATES = frozenset(
    {_State.NAMESPACE, _State.USE, _State.TYPE_NAME, _State.TYPE_HEADER, _State.METHOD_NAME}
)


@dataclass(frozen=True)
class Declaration:
    """A top-level type declaration found in a file."""

    kind: str
    short_name: str
    namespace: str = ""
    line: int = 0
    is_abstract: bool = False
    is_final: bool = False
    parent: str | None = None
    interfaces: tuple[str, ...] = ()
    methods: tuple[MethodDescriptor, ...] = ()

    @property
    def name(self) -> str:
        return qualify(self.namespace, self.short_name)

    def to_descriptor(self, declaring_file: str) -> TypeDescriptor:
        return TypeDescriptor(
            name=self.name,
            kind=self.kind,
            declaring_file=declaring_file,
            is_abstract=self.is_abstract,
            is_final=self.is_final,
            parent=self.parent,
            interfaces=self.interfaces,
            methods=self.methods,
            line=self.line,
        )


@dataclass(frozen=True)
class FileScan:
    """Result of scanning one file."""

    namespace: str
    declarations: tuple[Declaration, ...] = ()
    imports: dict[str, str] = field(default_factory=dict)  # lowercase alias -> FQN

    @property
    def types(self) -> list[tuple[str, str]]:
        """``(kind, short_name)`` pairs in declaration order."""
        return [(d.kind, d.short_name) for d in self.declarations]


def resolve_name(name: str, namespace: str, imports: dict[str, str]) -> str:
    """Resolve a class reference to its fully-qualified form using PHP rules.

    A leading ``\\`` marks an already qualified name; a first segment
    matching an imported alias is replaced by the import target; any other
    name is relative to the current namespace.
    """
    name = name.strip()
    if name.startswith(NAMESPACE_SEPARATOR):
        return name.lstrip(NAMESPACE_SEPARATOR)
    if name.lower().startswith("namespace" + NAMESPACE_SEPARATOR):
        return qualify(namespace, name[len("namespace") + 1 :])

    head, sep, rest = name.partition(NAMESPACE_SEPARATOR)
    target = imports.get(head.lower())
    if target is not None:
        return f"{target}{sep}{rest}" if rest else target
    return qualify(namespace, name)


def parse_use_statement(tokens: Iterable[Token]) -> list[tuple[str, str]]:
    """Parse the tokens between ``use`` and ``;`` into ``(alias, target)`` pairs.

    Handles plain, aliased, comma-separated and grouped imports
    (``use App\\{Foo, Bar as Baz}``).  ``use function`` / ``use const``
    imports are skipped.
    """
    results: list[tuple[str, str]] = []
    prefix = ""
    current: list[str] = []
    alias: str | None = None
    expect_alias = False
    skip_item = False

    def flush() -> None:
        # A closed group or trailing comma leaves no pending item.
        if not current:
            return
        target = (prefix + "".join(current)).strip().strip(NAMESPACE_SEPARATOR)
        if target and not skip_item:
            results.append((alias or target.rsplit(NAMESPACE_SEPARATOR, 1)[-1], target))

    for tok in tokens:
        if tok.kind == KEYWORD and tok.value in ("function", "const"):
            if not prefix and not current and not results:
                return []
            skip_item = True
        elif tok.kind == KEYWORD and tok.value == "as":
            expect_alias = True
        elif tok.kind == NAME or (tok.kind == KEYWORD and expect_alias):
            if expect_alias:
                alias = tok.text
                expect_alias = False
            else:
                current.append(tok.text)
        elif tok.value == NAMESPACE_SEPARATOR:
            current.append(NAMESPACE_SEPARATOR)
        elif tok.value == "{":
            prefix = "".join(current)
            if not prefix.endswith(NAMESPACE_SEPARATOR):
                prefix += NAMESPACE_SEPARATOR
            current = []
        elif tok.value in (",", "}"):
            flush()
            current, alias, skip_item = [], None, False
    flush()
    return results


@dataclass
class _PendingType:
    kind: str | None  # None for declarations that are tracked but not emitted (enums)
    modifiers: frozenset[str]
    namespace: str
    short_name: str = ""
    line: int = 0
    parent: str | None = None
    interfaces: list[str] = field(default_factory=list)
    methods: list[MethodDescriptor] = field(default_factory=list)
    body_depth: int = 0
    header_mode: str | None = None
    header_parts: list[str] = field(default_factory=list)
    member_modifiers: set[str] = field(default_factory=set)

    def build(self) -> Declaration:
        is_class = self.kind == KIND_CLASS
        return Declaration(
            kind=self.kind or KIND_CLASS,
            short_name=self.short_name,
            namespace=self.namespace,
            line=self.line,
            is_abstract=is_class and "abstract" in self.modifiers,
            is_final=is_class and "final" in self.modifiers,
            parent=self.parent,
            interfaces=tuple(self.interfaces),
            methods=tuple(self.methods),
        )


class _Scanner:
    def __init__(self, limit: int | None) -> None:
        self.limit = limit
        self.state = _State.IDLE
        self.depth = 0
        self.namespace = ""
        self.first_namespace: str | None = None
        self.imports: dict[str, str] = {}
        self.declarations: list[Declaration] = []
        self.buffer: list[Token] = []
        self.modifiers: set[str] = set()
        self.current: _PendingType | None = None
        self.statement_start = True
        self.done = False

    # -- dispatch ---------------------------------------------------------

    def feed(self, token: Token) -> None:
        if token.kind == LITERAL and self.state in _COLLECTING_STATES:
            return
        handler = {
            _State.IDLE: self._idle,
            _State.NAMESPACE: self._namespace,
            _State.USE: self._use,
            _State.TYPE_NAME: self._type_name,
            _State.TYPE_HEADER: self._type_header,
            _State.TYPE_BODY: self._type_body,
            _State.METHOD_NAME: self._method_name,
        }[self.state]
        handler(token)
        self._track_statement_start(token)

    def _track_statement_start(self, token: Token) -> None:
        if token.kind == LITERAL or (
            token.kind == KEYWORD and token.value in _DECLARATION_MODIFIERS
        ):
            return
        if token.kind == PUNCT:
            self.statement_start = token.value in (";", "{", "}")
        else:
            self.statement_start = token.kind == OTHER and token.value == "php_tag"

    # -- states -----------------------------------------------------------

    def _idle(self, token: Token) -> None:
        if token.kind == PUNCT:
            if token.value == "{":
                self.depth += 1
            elif token.value == "}":
                self.depth = max(0, self.depth - 1)
            self.modifiers.clear()
            return
        if token.kind == LITERAL:
            return
        if token.kind != KEYWORD:
            self.modifiers.clear()
            return

        keyword = token.value
        if not self.statement_start:
            self.modifiers.clear()
            return
        if keyword == "namespace":
            self.state = _State.NAMESPACE
            self.buffer = []
        elif keyword == "use":
            self.state = _State.USE
            self.buffer = []
        elif keyword in _TYPE_KEYWORDS or keyword == "enum":
            self.current = _PendingType(
                kind=_TYPE_KEYWORDS.get(keyword),
                modifiers=frozenset(self.modifiers),
                namespace=self.namespace,
            )
            self.modifiers.clear()
            self.state = _State.TYPE_NAME
        elif keyword in _DECLARATION_MODIFIERS:
            self.modifiers.add(keyword)
        else:
            self.modifiers.clear()

    def _namespace(self, token: Token) -> None:
        if token.kind == PUNCT and token.value in (";", "{"):
            self.namespace = "".join(t.text for t in self.buffer).strip()
            self.imports = {}
            if self.first_namespace is None:
                self.first_namespace = self.namespace
            self.state = _State.IDLE
            if token.value == "{":
                self.depth += 1
            return
        is_separator = token.kind == PUNCT and token.value == NAMESPACE_SEPARATOR
        if token.kind == NAME or (is_separator and self.buffer):
            self.buffer.append(token)
            return
        # ``namespace\foo()`` relative reference, not a declaration.
        self.state = _State.IDLE
        self._idle(token)

    def _use(self, token: Token) -> None:
        if token.kind == PUNCT and token.value == ";":
            for alias, target in parse_use_statement(self.buffer):
                self.imports[alias.lower()] = target
            self.buffer = []
            self.state = _State.IDLE
            return
        self.buffer.append(token)

    def _type_name(self, token: Token) -> None:
        current = self.current
        assert current is not None
        if token.kind == NAME:
            current.short_name = token.text
            current.line = token.line
            self.state = _State.TYPE_HEADER
            return
        if token.kind == KEYWORD and token.value in _DECLARATION_MODIFIERS:
            return
        # Anonymous class or malformed declaration: nothing to emit.
        self.current = None
        self.state = _State.IDLE
        self._idle(token)

    def _flush_header_name(self) -> None:
        current = self.current
        assert current is not None
        raw = "".join(current.header_parts)
        current.header_parts = []
        if not raw or current.header_mode is None:
            return
        resolved = resolve_name(raw, current.namespace, self.imports)
        if current.header_mode == "extends" and current.kind == KIND_CLASS:
            if current.parent is None:
                current.parent = resolved
        elif resolved not in current.interfaces:
            current.interfaces.append(resolved)

    def _type_header(self, token: Token) -> None:
        current = self.current
        assert current is not None
        if token.kind == KEYWORD and token.value in ("extends", "implements"):
            self._flush_header_name()
            current.header_mode = token.value
        elif token.kind == NAME or (token.kind == PUNCT and token.value == NAMESPACE_SEPARATOR):
            current.header_parts.append(token.text)
        elif token.kind == PUNCT and token.value == ",":
            self._flush_header_name()
        elif token.kind == PUNCT and token.value == "{":
            self._flush_header_name()
            self.depth += 1
            current.body_depth = self.depth
            self.state = _State.TYPE_BODY
        elif token.kind == PUNCT and token.value == ";":
            self._finish_type()

    def _type_body(self, token: Token) -> None:
        current = self.current
        assert current is not None
        if token.kind == PUNCT and token.value == "{":
            self.depth += 1
            current.member_modifiers.clear()
            return
        if token.kind == PUNCT and token.value == "}":
            self.depth -= 1
            current.member_modifiers.clear()
            if self.depth < current.body_depth:
                self._finish_type()
            return
        if self.depth != current.body_depth or token.kind == LITERAL:
            return
        if token.kind == KEYWORD and token.value in _MEMBER_MODIFIERS:
            current.member_modifiers.add(token.value)
        elif token.kind == KEYWORD and token.value == "function":
            self.state = _State.METHOD_NAME
        else:
            current.member_modifiers.clear()

    def _method_name(self, token: Token) -> None:
        current = self.current
        assert current is not None
        if token.kind == PUNCT and token.value == "&":
            return
        self.state = _State.TYPE_BODY
        if token.kind in (NAME, KEYWORD):
            mods = current.member_modifiers
            visibility = next((v for v in _VISIBILITY_ORDER if v in mods), "public")
            current.methods.append(
                MethodDescriptor(
                    name=token.text,
                    visibility=visibility,
                    is_static="static" in mods,
                    is_abstract="abstract" in mods or current.kind == KIND_INTERFACE,
                )
            )
            mods.clear()
            return
        self._type_body(token)

    def _finish_type(self) -> None:
        current = self.current
        assert current is not None
        if current.kind is not None and current.short_name:
            self.declarations.append(current.build())
            if self.limit is not None and len(self.declarations) >= self.limit:
                self.done = True
        self.current = None
        self.state = _State.IDLE

    # -- result -----------------------------------------------------------

    def finish(self) -> FileScan:
        # A truncated file can leave a declaration open; keep what was seen.
        if self.current is not None and self.state in (_State.TYPE_BODY, _State.METHOD_NAME):
            self._finish_type()
        if self.declarations:
            namespace = self.declarations[0].namespace
        else:
            namespace = self.first_namespace or ""
        return FileScan(
            namespace=namespace,
            declarations=tuple(self.declarations),
            imports=dict(self.imports),
        )


def scan(content: str, *, limit: int | None = None) -> FileScan:
    """Scan PHP source and return its namespace and top-level declarations.

    *limit* stops the scan after that many declarations have been
    completed.  A file with no declarations yields an empty result.
    """
    scanner = _Scanner(limit)
    for token in tokenize(content):
        scanner.feed(token)
        if scanner.done:
            break
    return scanner.finish()


def extract_first(content: str) -> FileScan:
    """Single-declaration extraction: only the first type in the file."""
    return scan(content, limit=1)


def extract_all(content: str) -> FileScan:
    """Multi-declaration extraction: every top-level type in the file."""
    return scan(content)


def scan_file(file_path: Path, *, first_only: bool = False) -> FileScan | None:
    """Scan a file on disk, returning ``None`` when it cannot be read."""
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping unreadable file %s: %s", file_path, exc)
        return None
    try:
        return extract_first(content) if first_only else extract_all(content)
    except ValueError as exc:
        logger.debug("Skipping file %s, tokenizer failed: %s", file_path, exc)
        return None
