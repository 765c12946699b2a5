"""Protocols for the host editor and timer collaborators."""

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from coslang_tools.models.search import EditOperation, TextRange


@runtime_checkable
class HostEditorProtocol(Protocol):
    """Protocol for editors that own the buffer being searched."""

    def get_text(self) -> str:
        """Return the current full buffer content."""
        ...

    def apply_edits(self, operations: Sequence[EditOperation]) -> None:
        """Apply a batch of edits as one undoable unit."""
        ...

    def get_selection(self) -> TextRange | None:
        """Return the current selection, or None when nothing is selected."""
        ...

    def reveal_and_select(self, line: int, start_column: int, end_column: int) -> None:
        """Scroll to a line and select the given column span."""
        ...


@runtime_checkable
class SchedulerProtocol(Protocol):
    """Protocol for delayed callbacks used to debounce queries."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        """Run callback after delay seconds."""
        ...
