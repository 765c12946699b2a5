"""Variable assignments, declarations and interpolation sites."""

import re

from coslang_tools.core.source import is_comment, split_lines
from coslang_tools.models.analysis import VariableTable

ASSIGNMENT = re.compile(r"\bset\s+(\w+)\s*=")
INTERPOLATION = re.compile(r"\{(\w+)\}")
DECLARATION_BLOCK = re.compile(r"^\s*(vars|stats|inventory)\s*\{\s*$")
DECLARATION = re.compile(r"^\s*(\w+)\s*=")


def build_variable_table(source_text: str) -> VariableTable:
    """Collect assigned, declared and interpolated variable names.

    ``set name = ...`` assigns, ``{name}`` interpolates. Entries of
    ``vars``/``stats``/``inventory`` blocks count as declared so they are
    not reported as undefined.
    """
    assignment_lines: dict[str, int] = {}
    interpolation_lines: dict[str, int] = {}
    declared: set[str] = set()
    in_block = False

    for line_no, line in enumerate(split_lines(source_text), start=1):
        if in_block:
            if line.strip().startswith("}"):
                in_block = False
            elif not is_comment(line) and (m := DECLARATION.match(line)):
                declared.add(m.group(1))
            continue
        if DECLARATION_BLOCK.match(line):
            in_block = True
            continue

        for m in ASSIGNMENT.finditer(line):
            assignment_lines.setdefault(m.group(1), line_no)
        for m in INTERPOLATION.finditer(line):
            interpolation_lines.setdefault(m.group(1), line_no)

    return VariableTable(
        assigned=frozenset(assignment_lines),
        interpolated=frozenset(interpolation_lines),
        declared=frozenset(declared),
        assignment_lines=assignment_lines,
        interpolation_lines=interpolation_lines,
    )


def similar_variable_groups(names: list[str]) -> list[list[str]]:
    """Group names that differ only by case, underscores or dots."""
    groups: dict[str, list[str]] = {}
    for name in names:
        key = re.sub(r"[_.]", "", name).lower()
        groups.setdefault(key, []).append(name)
    return [group for group in groups.values() if len(group) > 1]
