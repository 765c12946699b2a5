"""Helpers shared by search and analysis for working with source snapshots."""

import hashlib

from coslang_tools.config import COMMENT_PREFIXES
from coslang_tools.models.search import TextRange


def split_lines(source_text: str) -> list[str]:
    """Split a snapshot into lines. Line N of the editor is index N - 1."""
    return source_text.split("\n")


def source_hash(source_text: str) -> str:
    """Cheap content hash identifying a snapshot."""
    return hashlib.sha1(source_text.encode("utf-8")).hexdigest()


def is_comment(line: str) -> bool:
    return line.strip().startswith(COMMENT_PREFIXES)


def text_in_range(source_text: str, selection: TextRange) -> str:
    """Return the text covered by a selection (1-based, end exclusive)."""
    lines = split_lines(source_text)
    first = selection.start_line - 1
    last = selection.end_line - 1
    if first < 0 or last >= len(lines) or first > last:
        return ""
    if first == last:
        return lines[first][selection.start_column - 1 : selection.end_column - 1]
    parts = [lines[first][selection.start_column - 1 :]]
    parts.extend(lines[first + 1 : last])
    parts.append(lines[last][: selection.end_column - 1])
    return "\n".join(parts)
