"""Tests for value objects (core/models.py).

All models are frozen dataclasses — these tests verify immutability,
equality semantics, the outcome invariant and location formatting.
"""

from __future__ import annotations

import pytest

from clean_exit.core.models import EntryDeclaration, Outcome, SourceLocation


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------

class TestOutcome:
    def test_normal_carries_value(self) -> None:
        o = Outcome.normal("result")
        assert o.value == "result"
        assert o.exit_code is None
        assert not o.is_terminal

    def test_terminal_carries_code(self) -> None:
        o = Outcome.terminal(3)
        assert o.exit_code == 3
        assert o.value is None
        assert o.is_terminal

    def test_terminal_zero_is_still_terminal(self) -> None:
        assert Outcome.terminal(0).is_terminal

    def test_both_value_and_code_rejected(self) -> None:
        with pytest.raises(ValueError, match="both"):
            Outcome(value="x", exit_code=1)

    def test_frozen(self) -> None:
        o = Outcome.normal(1)
        with pytest.raises(AttributeError):
            o.exit_code = 2  # type: ignore[misc]

    def test_equality(self) -> None:
        assert Outcome.terminal(4) == Outcome.terminal(4)
        assert Outcome.terminal(4) != Outcome.terminal(5)
        assert Outcome.normal(None) != Outcome.terminal(0)


# ---------------------------------------------------------------------------
# SourceLocation
# ---------------------------------------------------------------------------

class TestSourceLocation:
    def test_str_uses_one_based_column(self) -> None:
        loc = SourceLocation("prog.py", 12, 4)
        assert str(loc) == "prog.py:12:5"

    def test_column_defaults_to_zero(self) -> None:
        assert SourceLocation("prog.py", 1).column == 0

    def test_frozen(self) -> None:
        loc = SourceLocation("prog.py", 1)
        with pytest.raises(AttributeError):
            loc.line = 2  # type: ignore[misc]


# ---------------------------------------------------------------------------
# EntryDeclaration
# ---------------------------------------------------------------------------

class TestEntryDeclaration:
    def test_fields_accessible(self) -> None:
        entry = EntryDeclaration(
            name="main",
            location=SourceLocation("prog.py", 3, 4),
            is_async=False,
            parameters=("argv",),
            returns="int",
            type_params=(),
            decorators=("functools.cache",),
            applications=1,
        )
        assert entry.name == "main"
        assert entry.parameters == ("argv",)
        assert entry.returns == "int"
        assert entry.decorators == ("functools.cache",)
        assert entry.applications == 1
