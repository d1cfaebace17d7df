"""archtest - architecture conformance tests for PHP codebases."""

from archtest.catalog import TypeCatalog, TypeDescriptor, discover
from archtest.harness import ArchTestCase, test_description, test_group
from archtest.rules import AssertionChain, AssertionFailed, RunState, Selector

__version__ = "0.4.0"

__all__ = [
    "ArchTestCase",
    "AssertionChain",
    "AssertionFailed",
    "RunState",
    "Selector",
    "TypeCatalog",
    "TypeDescriptor",
    "__version__",
    "discover",
    "test_description",
    "test_group",
]
