"""Tests for archtest.rules.selector: composable queries over the catalog."""

from __future__ import annotations

import re

import pytest

from archtest.catalog import TypeCatalog, TypeDescriptor
from archtest.catalog.model import KIND_INTERFACE, KIND_TRAIT
from archtest.rules.selector import Selector, compile_pattern


@pytest.fixture()
def catalog() -> TypeCatalog:
    return TypeCatalog(
        [
            TypeDescriptor(name="App\\Foo\\Alpha", interfaces=("App\\Contract\\Bar",)),
            TypeDescriptor(name="App\\FooBar\\Beta", parent="App\\Foo\\Alpha"),
            TypeDescriptor(name="App\\Foo\\AbstractGamma", is_abstract=True),
            TypeDescriptor(name="App\\Foo\\DeltaInterface", kind=KIND_INTERFACE),
            TypeDescriptor(name="App\\Foo\\EpsilonTrait", kind=KIND_TRAIT),
            TypeDescriptor(name="Other\\Zeta"),
            TypeDescriptor(name="App\\Foo\\Hidden", internal=True),
        ]
    )


def _names(selector: Selector) -> list[str]:
    return [t.name for t in selector.get()]


class TestCompilePattern:
    def test_bare_pattern(self) -> None:
        assert compile_pattern("Service$").search("UserService")

    def test_delimited_pattern(self) -> None:
        regex = compile_pattern("/^user/i")
        assert regex.flags & re.IGNORECASE
        assert regex.search("UserService")

    def test_alternative_delimiter(self) -> None:
        assert compile_pattern("#Handler$#").search("CreateHandler")

    def test_invalid_pattern(self) -> None:
        with pytest.raises(ValueError, match="Invalid name pattern"):
            compile_pattern("/[unclosed/")


class TestSelector:
    def test_all_types_in_order_without_internal(self, catalog: TypeCatalog) -> None:
        assert _names(Selector.classes(catalog)) == [
            "App\\Foo\\Alpha",
            "App\\FooBar\\Beta",
            "App\\Foo\\AbstractGamma",
            "App\\Foo\\DeltaInterface",
            "App\\Foo\\EpsilonTrait",
            "Other\\Zeta",
        ]

    def test_namespace_is_a_string_prefix(self, catalog: TypeCatalog) -> None:
        names = _names(Selector(catalog).in_namespace("App\\Foo"))
        assert "App\\FooBar\\Beta" in names
        assert "Other\\Zeta" not in names

    def test_trailing_separator_ignored(self, catalog: TypeCatalog) -> None:
        assert _names(Selector(catalog).in_namespace("Other\\")) == ["Other\\Zeta"]

    def test_exclusions(self, catalog: TypeCatalog) -> None:
        selector = (
            Selector(catalog)
            .in_namespace("App")
            .excluding_abstract()
            .excluding_interfaces()
            .excluding_traits()
        )
        assert _names(selector) == ["App\\Foo\\Alpha", "App\\FooBar\\Beta"]

    def test_matching_short_name(self, catalog: TypeCatalog) -> None:
        assert _names(Selector(catalog).matching("/^(Alpha|Zeta)$/")) == [
            "App\\Foo\\Alpha",
            "Other\\Zeta",
        ]

    def test_matching_rejects_invalid_pattern(self, catalog: TypeCatalog) -> None:
        with pytest.raises(ValueError, match="Invalid name pattern"):
            Selector(catalog).matching("(")

    def test_implementing_is_direct(self, catalog: TypeCatalog) -> None:
        # Beta extends Alpha, which implements Bar; only Alpha matches.
        assert _names(Selector(catalog).implementing("\\App\\Contract\\Bar")) == [
            "App\\Foo\\Alpha"
        ]

    def test_extending(self, catalog: TypeCatalog) -> None:
        assert _names(Selector(catalog).extending("App\\Foo\\Alpha")) == ["App\\FooBar\\Beta"]

    def test_no_matches(self, catalog: TypeCatalog) -> None:
        assert Selector(catalog).in_namespace("Nowhere").get() == []

    def test_filters_do_not_mutate(self, catalog: TypeCatalog) -> None:
        base = Selector(catalog).in_namespace("App")
        interfaces_only = base.excluding_traits().matching("Interface$")
        assert len(base.get()) == 5
        assert _names(interfaces_only) == ["App\\Foo\\DeltaInterface"]
        assert base.name_pattern is None

    def test_get_is_repeatable(self, catalog: TypeCatalog) -> None:
        selector = Selector(catalog).in_namespace("App\\Foo")
        assert selector.get() == selector.get()

    def test_pattern_compiled_once_per_get(
        self, catalog: TypeCatalog, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        selector = Selector(catalog).matching("a")
        calls: list[str] = []

        def counting(pattern: str) -> re.Pattern[str]:
            calls.append(pattern)
            return compile_pattern(pattern)

        monkeypatch.setattr("archtest.rules.selector.compile_pattern", counting)
        assert len(selector.get()) > 1
        assert calls == ["a"]
