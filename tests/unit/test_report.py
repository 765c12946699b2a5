"""Tests for the analysis report builder."""

from coslang_tools.config import AnalysisThresholds
from coslang_tools.core.analysis.report import ContentAnalyzer, build_report
from tests.unit.test_structure import NESTED


def test_report_for_story(story: str) -> None:
    report = build_report(story)
    assert report.complexity.score == 7
    assert report.warnings == ()
    kinds = [(s.kind, s.priority) for s in report.suggestions]
    assert kinds == [
        ("missing_scene", "high"),
        ("unused_variable", "medium"),
        ("unreachable_scene", "low"),
    ]


def test_missing_scene_suggestion_carries_skeleton() -> None:
    report = build_report('title: "t"\nscene a {\n choice "go" -> b\n}')
    missing = [s for s in report.suggestions if s.kind == "missing_scene"]
    assert len(missing) == 1
    assert missing[0].code is not None
    assert missing[0].code.startswith("scene b {")
    assert missing[0].line == 3


def test_missing_title_suggested() -> None:
    report = build_report("scene a {\n}")
    assert report.suggestions[0].kind == "metadata"
    assert report.suggestions[0].priority == "high"


def test_unused_variable_is_a_suggestion_not_a_warning() -> None:
    report = build_report('title: "t"\nset health=10')
    assert [s.message for s in report.suggestions if s.kind == "unused_variable"] == [
        "Variable 'health' is defined but never used"
    ]
    assert report.warnings == ()


def test_deep_nesting_warning() -> None:
    report = build_report(NESTED)
    assert report.max_conditional_depth == 4
    assert [w.kind for w in report.warnings] == ["deep_nesting"]


def test_nesting_threshold_is_configurable() -> None:
    report = build_report(NESTED, AnalysisThresholds(max_conditional_depth=4))
    assert report.warnings == ()


def test_malformed_structure_is_reported_and_analysis_continues() -> None:
    report = build_report('}\nscene a {\n choice "x" -> b\n}')
    malformed = [w for w in report.warnings if w.kind == "malformed_structure"]
    assert len(malformed) == 1
    assert malformed[0].line == 1
    assert any(s.kind == "missing_scene" for s in report.suggestions)


def test_long_scene_warning() -> None:
    body = "\n".join(f'  text: "line {i}"' for i in range(100))
    report = build_report(f"scene big {{\n{body}\n}}")
    long_scenes = [w for w in report.warnings if w.kind == "long_scene"]
    assert len(long_scenes) == 1
    assert "big" in long_scenes[0].message
    assert long_scenes[0].line == 1


def test_similar_variables_suggested() -> None:
    report = build_report('title: "t"\nset has_key = 1\nset hasKey = 1\ntext: "{has_key}{hasKey}"')
    assert any(s.kind == "consolidate_variables" for s in report.suggestions)


def test_build_report_does_not_touch_source(story: str) -> None:
    original = str(story)
    build_report(story)
    assert story == original


def test_analyzer_caches_by_content(story: str) -> None:
    analyzer = ContentAnalyzer()
    first = analyzer.analyze(story)
    assert analyzer.analyze(story) is first

    changed = analyzer.analyze(story + "\n// edit")
    assert changed is not first
    assert changed.source_hash != first.source_hash


def test_analyzer_invalidate(story: str) -> None:
    analyzer = ContentAnalyzer()
    first = analyzer.analyze(story)
    analyzer.invalidate()
    assert analyzer.analyze(story) is not first
