"""Rules domain: selectors, assertion chains, and per-run usage state."""

from archtest.rules.assertion import (
    CATEGORY_EXTEND,
    CATEGORY_IMPLEMENT,
    CATEGORY_NAME_PATTERN,
    CATEGORY_NAME_PREFIX,
    CATEGORY_NAME_SUFFIX,
    AssertionChain,
    AssertionFailed,
    Violation,
)
from archtest.rules.run_state import FileUsage, RunState, TestContext, TypeUsage, UsageLedger
from archtest.rules.selector import Selector, compile_pattern

__all__ = [
    "CATEGORY_EXTEND",
    "CATEGORY_IMPLEMENT",
    "CATEGORY_NAME_PATTERN",
    "CATEGORY_NAME_PREFIX",
    "CATEGORY_NAME_SUFFIX",
    "AssertionChain",
    "AssertionFailed",
    "FileUsage",
    "RunState",
    "Selector",
    "TestContext",
    "TypeUsage",
    "UsageLedger",
    "Violation",
    "compile_pattern",
]
