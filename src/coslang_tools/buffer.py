"""Host editor backed by a story file on disk."""

from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from coslang_tools.core.edit.planner import apply_edits
from coslang_tools.models.search import EditOperation, TextRange


class FileBuffer:
    """Hold a file's text in memory and act as the host editor for it.

    - Each apply_edits() call is one undoable unit.
    - save() writes only when the text differs from what is on disk, so
      the mtime does not change for a no-op edit session.
    """

    def __init__(self, path: str | Path, *, dry_run: bool = False) -> None:
        self.path = Path(path).expanduser().resolve()
        self.dry_run = dry_run

        if not self.path.is_file():
            msg = f"Story file {str(self.path)!r} not found"
            raise ValueError(msg)

        with open(self.path, encoding="utf-8", newline="") as f:
            self._disk_text = f.read()
        self._text = self._disk_text
        self._undo: list[str] = []

        self.selection: TextRange | None = None
        # Last (line, start_column, end_column) revealed by navigation.
        self.revealed: tuple[int, int, int] | None = None

        logger.debug("Buffer ready: {!r}, dry_run {!r}", str(self.path), dry_run)

    def refresh(self) -> bool:
        """Re-read the file if it changed on disk and the buffer has no unsaved edits."""
        if self.is_dirty:
            return False
        if not self.path.is_file():
            msg = f"Story file {str(self.path)!r} not found"
            raise ValueError(msg)
        with open(self.path, encoding="utf-8", newline="") as f:
            disk_text = f.read()
        if disk_text == self._disk_text:
            return False
        self._disk_text = self._text = disk_text
        self._undo.clear()
        logger.debug("Reloaded {} from disk", self.path.name)
        return True

    def get_text(self) -> str:
        return self._text

    def apply_edits(self, operations: Sequence[EditOperation]) -> None:
        """Apply a batch atomically; a conflicting batch leaves the text untouched."""
        if not operations:
            return
        new_text = apply_edits(self._text, operations)
        self._undo.append(self._text)
        self._text = new_text
        logger.info("Applied {} edits to {}", len(operations), self.path.name)

    def get_selection(self) -> TextRange | None:
        return self.selection

    def reveal_and_select(self, line: int, start_column: int, end_column: int) -> None:
        self.revealed = (line, start_column, end_column)
        self.selection = TextRange(
            start_line=line, start_column=start_column, end_line=line, end_column=end_column
        )

    def undo(self) -> bool:
        """Revert the last applied batch. Returns False if there is nothing to undo."""
        if not self._undo:
            return False
        self._text = self._undo.pop()
        return True

    @property
    def is_dirty(self) -> bool:
        return self._text != self._disk_text

    def save(self) -> bool:
        """Write the buffer back to its file.

        Returns:
            bool: True if the file changed (or would have, in dry-run mode).

        In dry-run mode the buffer is rolled back to the disk text, so later
        reads see the file as it really is.
        """
        if not self.is_dirty:
            logger.debug("No changes to {}", self.path.name)
            return False
        if self.dry_run:
            logger.info("Dry run: not writing {}", self.path)
            self._text = self._disk_text
            self._undo.clear()
            return True
        with open(self.path, "w", encoding="utf-8", newline="") as f:
            f.write(self._text)
        self._disk_text = self._text
        logger.info("Wrote {}", self.path)
        return True
