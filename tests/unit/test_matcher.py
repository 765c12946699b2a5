"""Tests for line-scoped matching."""

import pytest

from coslang_tools.core.search.matcher import find_matches
from coslang_tools.core.source import source_hash
from coslang_tools.models.search import SearchOptions


def test_literal_match_columns_are_one_based_and_end_exclusive() -> None:
    result = find_matches('choice "go" -> b', "go")
    assert len(result) == 1
    m = result.matches[0]
    assert m.line == 1
    assert m.column == 9
    assert m.end_column == 11
    assert m.matched_text == "go"
    assert m.line_text == 'choice "go" -> b'


def test_matches_are_ordered_by_line_then_column() -> None:
    result = find_matches("b a\na b a", "a")
    assert [(m.line, m.column) for m in result.matches] == [(1, 3), (2, 1), (2, 5)]


@pytest.mark.parametrize("query", ["torch", "TORCH", "ToRcH"])
def test_case_insensitive_by_default(query: str) -> None:
    result = find_matches("set Torch = 1\ntorch", query)
    assert len(result) == 2


def test_case_sensitive() -> None:
    result = find_matches("Torch torch", "torch", SearchOptions(case_sensitive=True))
    assert [m.column for m in result.matches] == [7]


def test_literal_query_escapes_metacharacters() -> None:
    result = find_matches("a.b axb (x)", "a.b")
    assert [m.matched_text for m in result.matches] == ["a.b"]
    assert len(find_matches("f(x)", "(x)")) == 1


def test_whole_word_applies_to_literal_search() -> None:
    text = "gold golden gold_bag gold"
    result = find_matches(text, "gold", SearchOptions(whole_word=True))
    assert [m.column for m in result.matches] == [1, 22]


def test_whole_word_ignored_in_regex_mode() -> None:
    result = find_matches("golden", "gold", SearchOptions(regex=True, whole_word=True))
    assert len(result) == 1


def test_regex_search() -> None:
    result = find_matches("set hp = 10\nset gold = 5", r"set (\w+)", SearchOptions(regex=True))
    assert [m.matched_text for m in result.matches] == ["set hp", "set gold"]


def test_invalid_regex_returns_empty_match_set_with_error() -> None:
    result = find_matches("anything (", "(", SearchOptions(regex=True))
    assert len(result) == 0
    assert result.invalid_pattern
    assert result.error


def test_patterns_do_not_span_lines() -> None:
    result = find_matches("ab\ncd", r"b\nc", SearchOptions(regex=True))
    assert len(result) == 0


def test_overlapping_matches_are_not_reported() -> None:
    result = find_matches("aaaa", "aa")
    assert [(m.column, m.end_column) for m in result.matches] == [(1, 3), (3, 5)]


def test_zero_width_matches_are_skipped() -> None:
    result = find_matches("abc", "x*", SearchOptions(regex=True))
    assert len(result) == 0


def test_empty_query_matches_nothing() -> None:
    result = find_matches("abc", "")
    assert len(result) == 0
    assert not result.invalid_pattern


def test_match_set_is_tagged_with_query_and_source() -> None:
    options = SearchOptions(case_sensitive=True)
    result = find_matches("abc", "b", options)
    assert result.query == "b"
    assert result.options == options
    assert result.source_hash == source_hash("abc")
