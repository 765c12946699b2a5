"""Domain models for searching and editing a source buffer."""

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SearchOptions:
    """How a query is interpreted. whole_word only applies to literal queries."""

    regex: bool = False
    case_sensitive: bool = False
    whole_word: bool = False


@dataclass(frozen=True)
class Match:
    """A located occurrence of a query.

    Columns are 1-based; end_column is exclusive.
    """

    line: int
    column: int
    end_column: int
    matched_text: str
    line_text: str


@dataclass(frozen=True)
class MatchSet:
    """All matches of one query against one source snapshot, in navigation order."""

    query: str
    options: SearchOptions
    source_hash: str
    matches: tuple[Match, ...] = ()
    error: str | None = None

    def __len__(self) -> int:
        return len(self.matches)

    @property
    def invalid_pattern(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class EditOperation:
    """Replace columns [start_column, end_column) of a line."""

    line: int
    start_column: int
    end_column: int
    replacement_text: str


@dataclass(frozen=True)
class TextRange:
    """A span of the buffer, as reported by the host selection."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass(frozen=True)
class ReplaceRecord:
    """A replace-history entry. original is None for a replace-all batch."""

    original: str | None
    replacement: str
    count: int = 1
    created_at: float = field(default_factory=time.time)
