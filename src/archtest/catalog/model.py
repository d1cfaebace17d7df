"""Static type metadata: descriptors produced by the extractor and held by the catalog."""

from __future__ import annotations

from dataclasses import dataclass

NAMESPACE_SEPARATOR = "\\"

# Type kinds recognised by the extractor.
KIND_CLASS = "class"
KIND_INTERFACE = "interface"
KIND_TRAIT = "trait"
TYPE_KINDS: frozenset[str] = frozenset({KIND_CLASS, KIND_INTERFACE, KIND_TRAIT})

VISIBILITIES: frozenset[str] = frozenset({"public", "protected", "private"})
CONSTRUCTOR_NAME = "__construct"


def qualify(namespace: str, short_name: str) -> str:
    """Join a namespace and a short name into a fully-qualified type name."""
    namespace = namespace.strip().strip(NAMESPACE_SEPARATOR)
    if not namespace:
        return short_name
    return f"{namespace}{NAMESPACE_SEPARATOR}{short_name}"


def normalize_name(name: str) -> str:
    """Strip the leading global-namespace separator (``\\Foo`` -> ``Foo``)."""
    return name.strip().lstrip(NAMESPACE_SEPARATOR)


@dataclass(frozen=True)
class MethodDescriptor:
    """A method declared directly in a type body."""

    name: str
    visibility: str = "public"
    is_static: bool = False
    is_abstract: bool = False

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"

    @property
    def is_constructor(self) -> bool:
        return self.name.lower() == CONSTRUCTOR_NAME


@dataclass(frozen=True)
class TypeDescriptor:
    """Metadata for one declared class, interface, or trait.

    Relations to other types (``parent``, ``interfaces``) are stored as
    fully-qualified names and resolved through :class:`TypeCatalog`; a
    descriptor never holds another descriptor.
    """

    name: str  # fully-qualified, no leading separator
    kind: str = KIND_CLASS
    declaring_file: str = ""
    is_abstract: bool = False
    is_final: bool = False
    parent: str | None = None
    interfaces: tuple[str, ...] = ()
    methods: tuple[MethodDescriptor, ...] = ()
    internal: bool = False
    line: int = 0

    def __post_init__(self) -> None:
        if self.kind not in TYPE_KINDS:
            msg = f"Unknown type kind '{self.kind}' for {self.name}, must be one of {sorted(TYPE_KINDS)}"
            raise ValueError(msg)

    @property
    def short_name(self) -> str:
        return self.name.rsplit(NAMESPACE_SEPARATOR, 1)[-1]

    @property
    def namespace(self) -> str:
        if NAMESPACE_SEPARATOR not in self.name:
            return ""
        return self.name.rsplit(NAMESPACE_SEPARATOR, 1)[0]

    @property
    def is_interface(self) -> bool:
        return self.kind == KIND_INTERFACE

    @property
    def is_trait(self) -> bool:
        return self.kind == KIND_TRAIT

    def has_method(self, name: str) -> bool:
        """Return True if a method with *name* is declared (case-insensitive, like PHP)."""
        return self.get_method(name) is not None

    def get_method(self, name: str) -> MethodDescriptor | None:
        wanted = name.lower()
        for method in self.methods:
            if method.name.lower() == wanted:
                return method
        return None

    def public_methods(self, *, include_constructor: bool = False) -> list[MethodDescriptor]:
        """Public methods in declaration order; the constructor is excluded by default."""
        return [
            m
            for m in self.methods
            if m.is_public and (include_constructor or not m.is_constructor)
        ]

    def implements(self, interface: str) -> bool:
        """Direct check against the recorded interface names (no ancestor walk)."""
        return normalize_name(interface) in self.interfaces

    def extends(self, class_name: str) -> bool:
        """Direct check against the recorded parent name."""
        return self.parent is not None and self.parent == normalize_name(class_name)
