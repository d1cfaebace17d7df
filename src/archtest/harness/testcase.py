"""Base class and decorators for architecture test suites."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from archtest.rules.assertion import AssertionChain
from archtest.rules.selector import Selector

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from archtest.catalog.catalog import TypeCatalog
    from archtest.catalog.model import TypeDescriptor
    from archtest.rules.run_state import RunState

_GROUP_ATTR = "__archtest_group__"
_DESCRIPTION_ATTR = "__archtest_description__"

_T = TypeVar("_T")


class ArchTestCase:
    """Base class for architecture tests.

    Subclasses define public ``test*`` methods; the runner creates one
    instance per method and binds it to the run's catalog and state::

        class ServiceTest(ArchTestCase):
            def test_services_are_final(self) -> None:
                services = self.classes().in_namespace("App\\\\Service").get()
                self.that(services).have_name_suffix("Service").or_fail("...")
    """

    __test__ = False  # not a pytest test class

    def __init__(self, catalog: TypeCatalog, state: RunState) -> None:
        self.catalog = catalog
        self.state = state

    def classes(self) -> Selector:
        """A fresh selector over every type in the run's catalog."""
        return Selector(self.catalog)

    def that(self, types: Sequence[TypeDescriptor]) -> AssertionChain:
        return AssertionChain.that(types, self.state)


def test_group(name: str) -> Callable[[type[_T]], type[_T]]:
    """Class decorator overriding the report group of a test suite."""

    def decorate(cls: type[_T]) -> type[_T]:
        setattr(cls, _GROUP_ATTR, name)
        return cls

    return decorate


def test_description(text: str) -> Callable[[_T], _T]:
    """Method decorator overriding the display name of a test."""

    def decorate(func: _T) -> _T:
        setattr(func, _DESCRIPTION_ATTR, text)
        return func

    return decorate


test_group.__test__ = False  # type: ignore[attr-defined]
test_description.__test__ = False  # type: ignore[attr-defined]


def get_group(cls: type) -> str | None:
    """Group set by :func:`test_group` on *cls* itself (not inherited)."""
    value = vars(cls).get(_GROUP_ATTR)
    return value if isinstance(value, str) else None


def get_description(func: object) -> str | None:
    value = getattr(func, _DESCRIPTION_ATTR, None)
    return value if isinstance(value, str) else None
