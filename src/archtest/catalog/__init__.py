"""Type catalog domain: tokenizer, declaration extractor, and type registry."""

from archtest.catalog.catalog import DEFAULT_EXTENSIONS, TypeCatalog, declared_in, discover
from archtest.catalog.extractor import (
    Declaration,
    FileScan,
    extract_all,
    extract_first,
    resolve_name,
    scan,
    scan_file,
)
from archtest.catalog.model import (
    KIND_CLASS,
    KIND_INTERFACE,
    KIND_TRAIT,
    MethodDescriptor,
    TypeDescriptor,
    qualify,
)

__all__ = [
    "DEFAULT_EXTENSIONS",
    "KIND_CLASS",
    "KIND_INTERFACE",
    "KIND_TRAIT",
    "Declaration",
    "FileScan",
    "MethodDescriptor",
    "TypeCatalog",
    "TypeDescriptor",
    "declared_in",
    "discover",
    "extract_all",
    "extract_first",
    "qualify",
    "resolve_name",
    "scan",
    "scan_file",
]
