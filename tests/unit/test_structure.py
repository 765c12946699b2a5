"""Tests for structural counts, metrics and nesting."""

from coslang_tools.core.analysis.structure import (
    compute_metrics,
    conditional_nesting,
    count_constructs,
    long_text_blocks,
    scene_spans,
)
from coslang_tools.core.source import split_lines

NESTED = """\
scene deep {
  if a > 0 {
    if b > 0 {
      if c > 0 {
        if d > 0 {
          text: "deep"
        }
      }
    }
  }
}
"""


def test_count_constructs(story: str) -> None:
    complexity = count_constructs(split_lines(story))
    assert complexity.scenes == 3
    assert complexity.choices == 3
    assert complexity.conditionals == 1
    assert complexity.variables == 2
    assert complexity.score == 7


def test_keywords_inside_words_are_not_counted() -> None:
    complexity = count_constructs(['text: "a motif choices"', "sunset = 1"])
    assert complexity.conditionals == 0
    assert complexity.choices == 0
    assert complexity.variables == 0


def test_metrics_count_comments() -> None:
    metrics = compute_metrics(["// intro", "# old style", "scene a {", "", "}"])
    assert metrics.total_lines == 5
    assert metrics.comment_lines == 2
    assert metrics.code_lines == 2
    assert metrics.comment_ratio == 0.5
    assert metrics.avg_line_length == (8 + 11 + 9 + 1) / 4


def test_metrics_on_blank_source() -> None:
    metrics = compute_metrics(["", "  "])
    assert metrics.code_lines == 0
    assert metrics.comment_ratio == 0.0
    assert metrics.avg_line_length == 0.0


def test_nesting_depth() -> None:
    result = conditional_nesting(split_lines(NESTED))
    assert result.max_depth == 4
    assert result.stray_closers == ()
    assert result.unclosed == 0


def test_else_branch_keeps_depth() -> None:
    source = "scene s {\n  if a {\n    x\n  } else {\n    y\n  }\n}"
    result = conditional_nesting(split_lines(source))
    assert result.max_depth == 1
    assert result.unclosed == 0


def test_stray_closer_is_clamped_and_reported() -> None:
    source = "}\nscene s {\n  if a {\n  }\n}\n}"
    result = conditional_nesting(split_lines(source))
    assert result.stray_closers == (1, 6)
    assert result.max_depth == 1


def test_interpolation_braces_do_not_count() -> None:
    result = conditional_nesting(['if x { text: "{hp}" }', 'text: "}"'])
    assert result.max_depth == 1
    assert result.stray_closers == ()


def test_unclosed_blocks_counted() -> None:
    result = conditional_nesting(["scene s {", "  if a {"])
    assert result.unclosed == 2


def test_scene_spans(story: str) -> None:
    spans = scene_spans(split_lines(story))
    assert [(s.name, s.line) for s in spans] == [("intro", 7), ("cave", 15), ("secret", 23)]
    assert spans[2].length == len('scene secret {\n  text: "Nobody comes here."\n}')


def test_long_text_blocks() -> None:
    lines = ['text: "' + "a" * 120 + '"', 'text: "short"']
    assert long_text_blocks(lines, 100) == [1]
