"""Stateful search-and-replace controller for one open search surface."""

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from loguru import logger

from coslang_tools.config import DEBOUNCE_SECONDS, HISTORY_LIMIT
from coslang_tools.core.edit.planner import (
    EditConflictError,
    StaleMatchSetError,
    plan_replace_all,
    plan_replace_one,
)
from coslang_tools.core.search.matcher import find_matches
from coslang_tools.core.source import source_hash, text_in_range
from coslang_tools.models.search import EditOperation, Match, MatchSet, ReplaceRecord, SearchOptions
from coslang_tools.protocols import HostEditorProtocol, SchedulerProtocol

T = TypeVar("T")


class SearchState(Enum):
    IDLE = "idle"
    QUERYING = "querying"
    HAS_RESULTS = "has_results"


class AsyncioScheduler:
    """Run debounce callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


def _remember(items: list[T], item: T, limit: int) -> None:
    """Put item first, dropping an equal older entry and anything past limit."""
    if item in items:
        items.remove(item)
    items.insert(0, item)
    del items[limit:]


class SearchSession:
    """Coordinate matching, navigation and replacement against a host editor.

    Queries typed by the user go through submit_query(), which debounces them
    with a generation counter: every new query bumps the counter and a
    delayed evaluation only runs if its generation is still current. Every
    operation reads a fresh snapshot from the host; edits are handed back to
    the host, never applied here.
    """

    def __init__(
        self,
        host: HostEditorProtocol,
        *,
        scheduler: SchedulerProtocol | None = None,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self.host = host
        self.scheduler = scheduler or AsyncioScheduler()
        self.debounce_seconds = debounce_seconds
        self.history_limit = history_limit

        self.state = SearchState.IDLE
        self.query = ""
        self.options = SearchOptions()
        self.match_set: MatchSet | None = None
        self.current_index: int | None = None
        self.last_error: str | None = None

        self.search_history: list[str] = []
        self.replace_history: list[ReplaceRecord] = []

        self._generation = 0

    @property
    def matches(self) -> tuple[Match, ...]:
        return self.match_set.matches if self.match_set else ()

    @property
    def current_match(self) -> Match | None:
        if self.current_index is None:
            return None
        return self.matches[self.current_index]

    def is_stale(self) -> bool:
        """True if the host text changed since the current matches were found."""
        if self.match_set is None:
            return False
        return source_hash(self.host.get_text()) != self.match_set.source_hash

    # --- Querying ---

    def open(self) -> MatchSet | None:
        """Seed a search from the host's selection, if it is on one line."""
        selection = self.host.get_selection()
        if selection is None or selection.start_line != selection.end_line:
            return None
        selected = text_in_range(self.host.get_text(), selection)
        if not selected.strip():
            return None
        return self.search(selected, self.options)

    def submit_query(self, query: str, options: SearchOptions | None = None) -> None:
        """Schedule a debounced search, superseding any query still pending."""
        self._generation += 1
        generation = self._generation
        options = options or self.options

        if not query.strip():
            self.clear()
            return

        self.query = query
        self.options = options
        self.state = SearchState.QUERYING
        self.scheduler.call_later(
            self.debounce_seconds,
            lambda: self._run_pending(generation, query, options),
        )

    def _run_pending(self, generation: int, query: str, options: SearchOptions) -> None:
        if generation != self._generation:
            logger.debug("Dropping superseded query {!r}", query)
            return
        self._run_query(query, options)

    def search(self, query: str, options: SearchOptions | None = None) -> MatchSet:
        """Search immediately. Pending debounced queries are discarded."""
        self._generation += 1
        return self._run_query(query, options or self.options)

    def _run_query(self, query: str, options: SearchOptions) -> MatchSet:
        source_text = self.host.get_text()
        if not query.strip():
            self.clear()
            return find_matches(source_text, "", options)

        self.query = query
        self.options = options
        self.state = SearchState.QUERYING
        match_set = find_matches(source_text, query, options)

        self.match_set = match_set
        self.current_index = None
        self.last_error = "invalid_pattern" if match_set.invalid_pattern else None
        self.state = SearchState.HAS_RESULTS
        _remember(self.search_history, query, self.history_limit)
        return match_set

    # --- Navigation ---

    def navigate(self, direction: int) -> Match | None:
        """Move the cursor by one match, wrapping at both ends."""
        count = len(self.matches)
        if count == 0:
            return None
        step = 1 if direction > 0 else -1
        if self.current_index is None:
            index = 0 if step > 0 else count - 1
        else:
            index = (self.current_index + step) % count
        return self.go_to(index)

    def go_to(self, index: int) -> Match | None:
        if not 0 <= index < len(self.matches):
            return None
        self.current_index = index
        match = self.matches[index]
        self.host.reveal_and_select(match.line, match.column, match.end_column)
        return match

    # --- Replacing ---

    def replace_current(self, replacement: str) -> EditOperation | None:
        if self.current_index is None:
            return None
        return self.replace_one(self.current_index, replacement)

    def replace_one(self, index: int, replacement: str) -> EditOperation | None:
        """Replace one match, then search again since the buffer changed.

        Ignored while a debounced query is pending, since the matches on
        hand belong to the previous query.
        """
        if self.state is not SearchState.HAS_RESULTS:
            return None
        if self.match_set is None or not 0 <= index < len(self.matches):
            return None

        try:
            op = plan_replace_one(
                self.match_set, index, replacement, source_text=self.host.get_text()
            )
        except StaleMatchSetError as e:
            logger.warning("Replace rejected: {}", e)
            self.last_error = "stale_match_set"
            return None
        if op is None:
            return None

        if not self._apply([op]):
            return None
        _remember(
            self.replace_history,
            ReplaceRecord(original=self.matches[index].matched_text, replacement=replacement),
            self.history_limit,
        )

        self._generation += 1
        refreshed = self._run_query(self.query, self.options)
        if refreshed.matches:
            self.current_index = index if index < len(refreshed.matches) else 0
        return op

    def replace_all(self, replacement: str) -> list[EditOperation]:
        """Replace every match in one batch and return to idle."""
        if self.state is not SearchState.HAS_RESULTS:
            return []
        if self.match_set is None or not self.matches:
            return []

        try:
            ops = plan_replace_all(self.match_set, replacement, source_text=self.host.get_text())
        except StaleMatchSetError as e:
            logger.warning("Replace all rejected: {}", e)
            self.last_error = "stale_match_set"
            return []

        if not self._apply(ops):
            return []
        _remember(
            self.replace_history,
            ReplaceRecord(original=None, replacement=replacement, count=len(ops)),
            self.history_limit,
        )
        logger.info("Replaced {} matches of {!r}", len(ops), self.query)
        self.clear()
        return ops

    def _apply(self, ops: list[EditOperation]) -> bool:
        try:
            self.host.apply_edits(ops)
        except EditConflictError as e:
            logger.warning("Host rejected edits: {}", e)
            self.last_error = "edit_conflict"
            return False
        return True

    # --- Lifecycle ---

    def clear(self) -> None:
        """Drop the query, matches and cursor. Histories are kept."""
        self._generation += 1
        self.state = SearchState.IDLE
        self.query = ""
        self.match_set = None
        self.current_index = None
        self.last_error = None

    def close(self) -> None:
        """Reset everything, histories included, when the host closes search."""
        self.clear()
        self.options = SearchOptions()
        self.search_history.clear()
        self.replace_history.clear()
