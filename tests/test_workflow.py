"""End-to-end: discover a small project, select, assert and score it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archtest.catalog import discover
from archtest.coverage import InheritanceCriterion
from archtest.rules import AssertionFailed, RunState, Selector
from archtest.rules.assertion import CATEGORY_IMPLEMENT

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def two_file_project(tmp_path: Path) -> Path:
    (tmp_path / "A.src").write_text("<?php\nfinal class Foo implements Bar {}\n")
    (tmp_path / "B.src").write_text("<?php\nclass Baz {}\n")
    return tmp_path


class TestTwoFileProject:
    def test_select_assert_and_score(self, two_file_project: Path) -> None:
        catalog = discover([two_file_project], extensions=(".src",))
        types = Selector(catalog).in_namespace("").get()
        assert [t.name for t in types] == ["Foo", "Baz"]

        state = RunState()
        state.set_context("ServiceTest", "test_services")
        with pytest.raises(AssertionFailed) as info:
            state.that(types).have_name_suffix("Service").resolve("must be services")
        message = str(info.value)
        assert message.startswith("must be services")
        assert "Class Foo" in message
        assert "Class Baz" in message

        foo = types[0]
        state.that([foo]).implement("Bar").resolve("Foo implements Bar")
        usage = state.ledger.usage_for(foo.declaring_file, "Foo")
        assert usage is not None
        assert CATEGORY_IMPLEMENT in usage.categories

        criterion = InheritanceCriterion()
        assert criterion.max_points(foo) == 1
        assert criterion.earned_points(foo, usage) == 1
