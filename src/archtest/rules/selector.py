"""Selector: an immutable, composable query over the type catalog."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from archtest.catalog.model import NAMESPACE_SEPARATOR, normalize_name

if TYPE_CHECKING:
    from archtest.catalog.catalog import TypeCatalog
    from archtest.catalog.model import TypeDescriptor

# PHP-style delimited pattern such as ``/Service$/`` or ``#^Foo#i``.
_DELIMITED_RE = re.compile(r"^([/#~!@%|])(.*)\1([imsxu]*)$", re.DOTALL)
_FLAG_MAP: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": re.UNICODE,
}


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a name pattern, accepting PHP ``preg`` delimiters and flags.

    ``"/Service$/"`` and ``"Service$"`` compile to the same expression.
    Raises :class:`ValueError` for an invalid regular expression.
    """
    flags = 0
    body = pattern
    match = _DELIMITED_RE.match(pattern)
    if match is not None:
        body = match.group(2)
        for letter in match.group(3):
            flags |= _FLAG_MAP[letter]
    try:
        return re.compile(body, flags)
    except re.error as exc:
        msg = f"Invalid name pattern '{pattern}': {exc}"
        raise ValueError(msg) from exc


@dataclass(frozen=True)
class Selector:
    """Query over a :class:`TypeCatalog`.

    Every filter method returns a new selector, so a base selector can be
    refined in several directions without being consumed.  Filters combine
    with logical AND.

    ``in_namespace`` is a plain string-prefix test: ``App\\Foo`` also
    matches types in ``App\\FooBar``, because namespace segments are not
    taken into account.
    """

    catalog: TypeCatalog
    namespace: str | None = None
    exclude_abstract: bool = False
    exclude_interfaces: bool = False
    exclude_traits: bool = False
    name_pattern: str | None = None
    implementing_name: str | None = None
    extending_name: str | None = None

    @classmethod
    def classes(cls, catalog: TypeCatalog) -> Selector:
        return cls(catalog=catalog)

    def in_namespace(self, namespace: str) -> Selector:
        return replace(self, namespace=namespace.rstrip(NAMESPACE_SEPARATOR))

    def excluding_abstract(self) -> Selector:
        return replace(self, exclude_abstract=True)

    def excluding_interfaces(self) -> Selector:
        return replace(self, exclude_interfaces=True)

    def excluding_traits(self) -> Selector:
        return replace(self, exclude_traits=True)

    def matching(self, pattern: str) -> Selector:
        compile_pattern(pattern)  # fail at build time, not at get()
        return replace(self, name_pattern=pattern)

    def implementing(self, interface: str) -> Selector:
        return replace(self, implementing_name=normalize_name(interface))

    def extending(self, class_name: str) -> Selector:
        return replace(self, extending_name=normalize_name(class_name))

    def _compiled_pattern(self) -> re.Pattern[str] | None:
        return None if self.name_pattern is None else compile_pattern(self.name_pattern)

    def matches(self, descriptor: TypeDescriptor) -> bool:
        """Return True if *descriptor* passes every configured filter."""
        return self._matches(descriptor, self._compiled_pattern())

    def _matches(self, descriptor: TypeDescriptor, regex: re.Pattern[str] | None) -> bool:
        if descriptor.internal:
            return False
        if self.namespace is not None and not descriptor.namespace.startswith(self.namespace):
            return False
        if self.exclude_abstract and descriptor.is_abstract:
            return False
        if self.exclude_interfaces and descriptor.is_interface:
            return False
        if self.exclude_traits and descriptor.is_trait:
            return False
        if regex is not None and regex.search(descriptor.short_name) is None:
            return False
        if self.implementing_name is not None and not descriptor.implements(
            self.implementing_name
        ):
            return False
        return self.extending_name is None or descriptor.extends(self.extending_name)

    def get(self) -> list[TypeDescriptor]:
        """Matching descriptors in catalog discovery order."""
        regex = self._compiled_pattern()
        return [t for t in self.catalog if self._matches(t, regex)]
