"""Turn matches into position-stable edit batches and apply them to text."""

from collections import defaultdict
from collections.abc import Sequence

from loguru import logger

from coslang_tools.core.search.matcher import find_matches
from coslang_tools.core.source import source_hash, split_lines
from coslang_tools.models.search import EditOperation, Match, MatchSet, SearchOptions


class StaleMatchSetError(ValueError):
    """The MatchSet was computed against a different snapshot."""


class EditConflictError(ValueError):
    """An edit batch cannot be applied to the given snapshot."""


def ensure_current(match_set: MatchSet, source_text: str) -> None:
    """Raise StaleMatchSetError unless match_set describes source_text."""
    if source_hash(source_text) != match_set.source_hash:
        msg = f"Matches for {match_set.query!r} are stale; search again before replacing"
        raise StaleMatchSetError(msg)


def _to_operation(match: Match, replacement: str) -> EditOperation:
    return EditOperation(
        line=match.line,
        start_column=match.column,
        end_column=match.end_column,
        replacement_text=replacement,
    )


def plan_replace_one(
    match_set: MatchSet,
    index: int,
    replacement: str,
    *,
    source_text: str | None = None,
) -> EditOperation | None:
    """Plan replacing the match at index. Out-of-range indexes plan nothing.

    Raises:
        StaleMatchSetError: If source_text is given and does not match the
            snapshot the MatchSet was computed from.
    """
    if source_text is not None:
        ensure_current(match_set, source_text)
    if not 0 <= index < len(match_set.matches):
        return None
    return _to_operation(match_set.matches[index], replacement)


def plan_replace_all(
    match_set: MatchSet,
    replacement: str,
    *,
    source_text: str | None = None,
) -> list[EditOperation]:
    """Plan replacing every match.

    Operations are ordered bottom-up and, within a line, rightmost first.
    Applying them in sequence never shifts the coordinates of an operation
    still to come. The MatchSet is stale once the batch has been applied.

    Raises:
        StaleMatchSetError: If source_text is given and does not match the
            snapshot the MatchSet was computed from.
    """
    if source_text is not None:
        ensure_current(match_set, source_text)
    ordered = sorted(match_set.matches, key=lambda m: (m.line, m.column), reverse=True)
    return [_to_operation(m, replacement) for m in ordered]


def plan_consolidation(
    source_text: str, names: Sequence[str], *, target: str | None = None
) -> list[EditOperation]:
    """Plan renaming every variant in names to one variable name.

    Each variant is matched as a case-sensitive whole word, so ``gold`` in
    ``golden`` is left alone. The result is a single batch the host can
    apply (and undo) at once.

    Args:
        source_text: Current snapshot.
        names: Variable names to merge, e.g. one group from
            similar_variable_groups().
        target: Name to keep. Defaults to the first of names.
    """
    if not names:
        return []
    target = target or names[0]
    options = SearchOptions(case_sensitive=True, whole_word=True)

    ops: list[EditOperation] = []
    for variant in dict.fromkeys(names):
        if variant == target:
            continue
        ops.extend(plan_replace_all(find_matches(source_text, variant, options), target))
    ops.sort(key=lambda o: (o.line, o.start_column), reverse=True)
    logger.debug("Planned {} edits to consolidate {} into {!r}", len(ops), list(names), target)
    return ops


def apply_edits(source_text: str, operations: Sequence[EditOperation]) -> str:
    """Apply an edit batch to a snapshot and return the new text.

    The whole batch is validated before anything is applied, so either every
    operation lands or none does.

    Raises:
        EditConflictError: If an operation points outside the text or two
            operations on the same line overlap.
    """
    lines = split_lines(source_text)

    by_line: dict[int, list[EditOperation]] = defaultdict(list)
    for op in operations:
        if not 1 <= op.line <= len(lines):
            msg = f"Edit targets line {op.line}, text has {len(lines)} lines"
            raise EditConflictError(msg)
        line_len = len(lines[op.line - 1])
        if not 1 <= op.start_column <= op.end_column <= line_len + 1:
            msg = (
                f"Edit columns [{op.start_column}, {op.end_column}) "
                f"outside line {op.line} of length {line_len}"
            )
            raise EditConflictError(msg)
        by_line[op.line].append(op)

    for line_no, ops in by_line.items():
        ops.sort(key=lambda o: (o.start_column, o.end_column), reverse=True)
        for right, left in zip(ops, ops[1:]):
            if left.end_column > right.start_column:
                msg = f"Overlapping edits on line {line_no} at column {right.start_column}"
                raise EditConflictError(msg)

    for line_no, ops in by_line.items():
        text = lines[line_no - 1]
        for op in ops:
            text = text[: op.start_column - 1] + op.replacement_text + text[op.end_column - 1 :]
        lines[line_no - 1] = text

    logger.debug("Applied {} edits on {} lines", len(operations), len(by_line))
    return "\n".join(lines)
