"""Line-scoped text and regex matching over a source snapshot."""

import re

from loguru import logger

from coslang_tools.core.source import source_hash, split_lines
from coslang_tools.models.search import Match, MatchSet, SearchOptions


def compile_query(query: str, options: SearchOptions) -> re.Pattern[str]:
    """Compile a user query into a pattern.

    - Literal queries are escaped; whole_word wraps them in word boundaries.
    - Regex queries are compiled as given and ignore whole_word.
    - Matching is case-insensitive unless case_sensitive is set.

    Raises:
        re.error: If a regex query is not a valid pattern.
    """
    flags = 0 if options.case_sensitive else re.IGNORECASE
    if options.regex:
        return re.compile(query, flags)

    pattern = re.escape(query)
    if options.whole_word:
        pattern = rf"\b{pattern}\b"
    return re.compile(pattern, flags)


def find_matches(
    source_text: str,
    query: str,
    options: SearchOptions | None = None,
) -> MatchSet:
    """Find every occurrence of query in source_text.

    Each line is searched on its own, left to right, so a pattern never
    spans lines. Matches on a line never overlap and zero-width matches are
    skipped. An invalid regex yields an empty MatchSet with ``error`` set.

    Args:
        source_text: Snapshot of the host buffer.
        query: Literal text or regular expression.
        options: Search options (defaults to literal, case-insensitive).

    Returns:
        MatchSet tagged with the query, options and source hash.
    """
    options = options or SearchOptions()
    digest = source_hash(source_text)
    if not query:
        return MatchSet(query=query, options=options, source_hash=digest)

    try:
        pattern = compile_query(query, options)
    except re.error as e:
        logger.warning("Invalid search pattern {!r}: {}", query, e)
        return MatchSet(query=query, options=options, source_hash=digest, error=str(e))

    matches: list[Match] = []
    for line_no, line in enumerate(split_lines(source_text), start=1):
        for m in pattern.finditer(line):
            if m.start() == m.end():
                continue
            matches.append(
                Match(
                    line=line_no,
                    column=m.start() + 1,
                    end_column=m.end() + 1,
                    matched_text=m.group(0),
                    line_text=line,
                )
            )

    logger.debug("Query {!r} matched {} times", query, len(matches))
    return MatchSet(
        query=query,
        options=options,
        source_hash=digest,
        matches=tuple(matches),
    )
