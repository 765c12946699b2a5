"""Structural counts, size metrics and block nesting."""

import re
from dataclasses import dataclass

from coslang_tools.core.analysis.references import SCENE_DEFINITION
from coslang_tools.core.source import is_comment
from coslang_tools.models.analysis import Complexity, SourceMetrics

CHOICE = re.compile(r"\bchoice\s+")
CONDITIONAL = re.compile(r"\bif\s+")
SET = re.compile(r"\bset\s+")
CONDITIONAL_OPENER = re.compile(r"\b(?:if|else)\b")
STRING_LITERAL = re.compile(r'"[^"]*"')
BRACE = re.compile(r"[{}]")
LONG_TEXT = re.compile(r'text:\s*"([^"]+)"')


@dataclass(frozen=True)
class NestingResult:
    """Outcome of scanning block braces.

    stray_closers lists lines whose ``}`` had nothing to close; depth was
    clamped at zero there.
    """

    max_depth: int
    stray_closers: tuple[int, ...] = ()
    unclosed: int = 0


@dataclass(frozen=True)
class SceneSpan:
    name: str
    line: int
    length: int


def count_constructs(lines: list[str]) -> Complexity:
    scenes = choices = conditionals = variables = 0
    for line in lines:
        scenes += len(SCENE_DEFINITION.findall(line))
        choices += len(CHOICE.findall(line))
        conditionals += len(CONDITIONAL.findall(line))
        variables += len(SET.findall(line))
    return Complexity(
        scenes=scenes,
        choices=choices,
        conditionals=conditionals,
        variables=variables,
        score=scenes + choices + conditionals,
    )


def compute_metrics(lines: list[str]) -> SourceMetrics:
    non_empty = [line for line in lines if line.strip()]
    comments = [line for line in non_empty if is_comment(line)]
    if not non_empty:
        return SourceMetrics(
            total_lines=len(lines),
            code_lines=0,
            comment_lines=0,
            comment_ratio=0.0,
            avg_line_length=0.0,
        )
    return SourceMetrics(
        total_lines=len(lines),
        code_lines=len(non_empty) - len(comments),
        comment_lines=len(comments),
        comment_ratio=len(comments) / len(non_empty),
        avg_line_length=sum(len(line) for line in non_empty) / len(non_empty),
    )


def scene_spans(lines: list[str]) -> list[SceneSpan]:
    """Measure the raw text of each scene, from its header to its closing brace.

    A scene with no closing brace runs until the next scene header or the
    end of the source.
    """
    spans: list[SceneSpan] = []
    current: tuple[str, int] | None = None
    length = 0
    depth = 0

    for line_no, line in enumerate(lines, start=1):
        header = SCENE_DEFINITION.search(line)
        if header:
            if current is not None:
                spans.append(SceneSpan(name=current[0], line=current[1], length=length - 1))
            current = (header.group(1), line_no)
            length = 0
            depth = 0
        if current is None:
            continue

        length += len(line) + 1
        code = STRING_LITERAL.sub("", line)
        depth += code.count("{") - code.count("}")
        if depth <= 0:
            spans.append(SceneSpan(name=current[0], line=current[1], length=length - 1))
            current = None

    if current is not None:
        spans.append(SceneSpan(name=current[0], line=current[1], length=max(length - 1, 0)))
    return spans


def conditional_nesting(lines: list[str]) -> NestingResult:
    """Track how deep conditional blocks nest.

    Every ``{`` outside a string literal opens a block; the block is
    conditional when its line contains ``if`` or ``else``. Every ``}``
    closes the innermost block. A ``}`` with no open block is recorded and
    ignored so the depth never goes negative.
    """
    stack: list[bool] = []
    max_depth = 0
    stray: list[int] = []

    for line_no, line in enumerate(lines, start=1):
        if is_comment(line):
            continue
        code = STRING_LITERAL.sub("", line)
        conditional = bool(CONDITIONAL_OPENER.search(code))
        for brace in BRACE.findall(code):
            if brace == "}":
                if not stack:
                    stray.append(line_no)
                    continue
                stack.pop()
            else:
                stack.append(conditional)
                max_depth = max(max_depth, sum(stack))

    return NestingResult(max_depth=max_depth, stray_closers=tuple(stray), unclosed=len(stack))


def long_text_blocks(lines: list[str], min_chars: int) -> list[int]:
    """Line numbers of ``text:`` strings at least min_chars long."""
    return [
        line_no
        for line_no, line in enumerate(lines, start=1)
        if any(len(m.group(1)) >= min_chars for m in LONG_TEXT.finditer(line))
    ]
