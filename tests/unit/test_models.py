"""Tests for domain models and configuration."""

import pytest

from coslang_tools.config import AnalysisThresholds, load_thresholds
from coslang_tools.models.analysis import ReferenceGraph
from coslang_tools.models.search import Match, MatchSet, SearchOptions


def test_match_is_frozen() -> None:
    match = Match(line=1, column=1, end_column=2, matched_text="a", line_text="a")
    with pytest.raises(AttributeError):
        match.line = 2  # type: ignore[misc]


def test_match_set_defaults() -> None:
    match_set = MatchSet(query="a", options=SearchOptions(), source_hash="h")
    assert len(match_set) == 0
    assert not match_set.invalid_pattern


def test_unreachable_excludes_entry_scene() -> None:
    graph = ReferenceGraph(
        defined_scenes=frozenset({"start", "lost"}),
        referenced_scenes=frozenset(),
        entry_scene="start",
    )
    assert graph.unreachable_scenes == {"lost"}


def test_load_thresholds_from_environment() -> None:
    thresholds = load_thresholds({"COSLANG_LONG_SCENE_CHARS": "500"})
    assert thresholds == AnalysisThresholds(long_scene_chars=500)


def test_load_thresholds_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="COSLANG_MAX_CONDITIONAL_DEPTH"):
        load_thresholds({"COSLANG_MAX_CONDITIONAL_DEPTH": "deep"})
