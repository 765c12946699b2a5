"""Tests for edit planning and application."""

import pytest

from coslang_tools.core.edit.planner import (
    EditConflictError,
    StaleMatchSetError,
    apply_edits,
    plan_consolidation,
    plan_replace_all,
    plan_replace_one,
)
from coslang_tools.core.search.matcher import find_matches
from coslang_tools.models.search import EditOperation


def test_plan_replace_one_targets_the_match() -> None:
    match_set = find_matches("one two one", "one")
    op = plan_replace_one(match_set, 1, "1")
    assert op == EditOperation(line=1, start_column=9, end_column=12, replacement_text="1")


@pytest.mark.parametrize("index", [-1, 2, 10])
def test_plan_replace_one_out_of_range_is_noop(index: int) -> None:
    match_set = find_matches("one two one", "one")
    assert plan_replace_one(match_set, index, "1") is None


def test_plan_replace_all_orders_same_line_edits_rightmost_first() -> None:
    match_set = find_matches("abc abc\nabc abc abc", "abc")
    ops = plan_replace_all(match_set, "x")
    line2 = [op.start_column for op in ops if op.line == 2]
    assert line2 == sorted(line2, reverse=True)
    assert len(ops) == 5


def test_replace_all_three_matches_shrinks_line_by_six() -> None:
    text = "abc-abc-abc"
    match_set = find_matches(text, "abc")
    result = apply_edits(text, plan_replace_all(match_set, "x"))
    assert result == "x-x-x"
    assert len(text) - len(result) == 6


def test_replace_all_with_longer_replacement_keeps_every_match() -> None:
    text = "hp hp\nhp"
    match_set = find_matches(text, "hp")
    result = apply_edits(text, plan_replace_all(match_set, "health"))
    assert result == "health health\nhealth"


def test_replace_all_eliminates_matches() -> None:
    text = "Gold and gold and GOLD"
    match_set = find_matches(text, "gold")
    result = apply_edits(text, plan_replace_all(match_set, "coins"))
    assert len(find_matches(result, "gold")) == 0


def test_stale_match_set_is_rejected() -> None:
    match_set = find_matches("abc", "b")
    with pytest.raises(StaleMatchSetError):
        plan_replace_all(match_set, "x", source_text="abcd")
    with pytest.raises(StaleMatchSetError):
        plan_replace_one(match_set, 0, "x", source_text="abcd")


def test_apply_edits_order_independent_on_a_line() -> None:
    ops = [
        EditOperation(line=1, start_column=1, end_column=2, replacement_text="AA"),
        EditOperation(line=1, start_column=3, end_column=4, replacement_text="CC"),
    ]
    assert apply_edits("abc", ops) == "AAbCC"


def test_apply_edits_rejects_overlap_without_partial_application() -> None:
    ops = [
        EditOperation(line=1, start_column=1, end_column=3, replacement_text="x"),
        EditOperation(line=1, start_column=2, end_column=4, replacement_text="y"),
    ]
    with pytest.raises(EditConflictError):
        apply_edits("abcd", ops)


@pytest.mark.parametrize(
    "op",
    [
        EditOperation(line=3, start_column=1, end_column=1, replacement_text="x"),
        EditOperation(line=1, start_column=2, end_column=9, replacement_text="x"),
        EditOperation(line=1, start_column=0, end_column=1, replacement_text="x"),
    ],
)
def test_apply_edits_rejects_out_of_range(op: EditOperation) -> None:
    with pytest.raises(EditConflictError):
        apply_edits("abc\ndef", [op])


def test_apply_edits_preserves_carriage_returns() -> None:
    text = "abc\r\nabc\r\n"
    match_set = find_matches(text, "b")
    assert apply_edits(text, plan_replace_all(match_set, "X")) == "aXc\r\naXc\r\n"


def test_plan_consolidation_renames_whole_words_only() -> None:
    text = 'set hp = 1\nset HP = 2 + hp\ntext: "{HP} {HPmax}"'
    ops = plan_consolidation(text, ["hp", "HP"])
    assert len(ops) == 2
    assert apply_edits(text, ops) == 'set hp = 1\nset hp = 2 + hp\ntext: "{hp} {HPmax}"'


def test_plan_consolidation_with_target_is_one_batch() -> None:
    text = "set hp = 1\nset HP = hp + hp"
    ops = plan_consolidation(text, ["hp", "HP"], target="health")
    assert [(op.line, op.start_column) for op in ops] == [(2, 15), (2, 10), (2, 5), (1, 5)]
    assert apply_edits(text, ops) == "set health = 1\nset health = health + health"


def test_plan_consolidation_without_names_plans_nothing() -> None:
    assert plan_consolidation("set hp = 1", []) == []
