"""MCP server exposing Coslang search, replace and analysis tools."""

import dataclasses
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from coslang_tools.buffer import FileBuffer
from coslang_tools.config import AnalysisThresholds, load_thresholds
from coslang_tools.core.analysis.report import ContentAnalyzer
from coslang_tools.core.analysis.variables import build_variable_table, similar_variable_groups
from coslang_tools.core.edit.planner import EditConflictError, plan_consolidation
from coslang_tools.core.search.session import SearchSession
from coslang_tools.models.analysis import AnalysisReport
from coslang_tools.models.search import EditOperation, Match, SearchOptions


@dataclass
class Workspace:
    """Open story files with their search sessions and analyzers."""

    thresholds: AnalysisThresholds = field(default_factory=AnalysisThresholds)
    dry_run: bool = False
    entry_scene: str | None = None
    buffers: dict[Path, FileBuffer] = field(default_factory=dict)
    sessions: dict[Path, SearchSession] = field(default_factory=dict)
    analyzers: dict[Path, ContentAnalyzer] = field(default_factory=dict)

    def buffer(self, path: str | Path) -> FileBuffer:
        """Return the buffer for path, opening it or picking up disk changes.

        Raises:
            ValueError: If the file does not exist.
        """
        key = Path(path).expanduser().resolve()
        buf = self.buffers.get(key)
        if buf is None:
            buf = FileBuffer(key, dry_run=self.dry_run)
            self.buffers[key] = buf
        else:
            buf.refresh()
        return buf

    def session(self, path: str | Path) -> SearchSession:
        buf = self.buffer(path)
        session = self.sessions.get(buf.path)
        if session is None:
            session = SearchSession(buf)
            self.sessions[buf.path] = session
        return session

    def analyzer(self, path: str | Path) -> ContentAnalyzer:
        key = Path(path).expanduser().resolve()
        analyzer = self.analyzers.get(key)
        if analyzer is None:
            analyzer = ContentAnalyzer(self.thresholds, entry_scene=self.entry_scene)
            self.analyzers[key] = analyzer
        return analyzer


def match_to_dict(index: int, match: Match) -> dict[str, Any]:
    return {
        "index": index,
        "line": match.line,
        "column": match.column,
        "end_column": match.end_column,
        "text": match.matched_text,
        "line_text": match.line_text,
    }


def report_to_dict(report: AnalysisReport) -> dict[str, Any]:
    return dataclasses.asdict(report)


def _no_matches(error: str) -> dict[str, Any]:
    return {"error": error, "matches": [], "count": 0, "total": 0}


# --- Core functions (testable without MCP context) ---


def coslang_search(
    workspace: Workspace,
    *,
    path: str,
    query: str,
    regex: bool = False,
    case_sensitive: bool = False,
    whole_word: bool = False,
    limit: int = 100,
) -> dict[str, Any]:
    """Find a literal string or regex in a story file.

    Matching is per line and case-insensitive by default. whole_word only
    applies to literal queries.

    Args:
        path: Path to the story file.
        query: Search text or regular expression.
        regex: Treat query as a regular expression.
        case_sensitive: Match case exactly.
        whole_word: Only match whole words (literal queries).
        limit: Max matches to return (1-1000, default 100).
    """
    if not query.strip():
        return _no_matches("No search query provided.")

    try:
        session = workspace.session(path)
    except ValueError as e:
        return _no_matches(str(e))

    options = SearchOptions(regex=regex, case_sensitive=case_sensitive, whole_word=whole_word)
    match_set = session.search(query, options)
    if match_set.invalid_pattern:
        return _no_matches(f"Invalid pattern: {match_set.error}")

    limit = max(1, min(limit, 1000))
    shown = [match_to_dict(i, m) for i, m in enumerate(match_set.matches[:limit])]
    return {
        "query": query,
        "matches": shown,
        "count": len(shown),
        "total": len(match_set),
        "has_more": len(shown) < len(match_set),
    }


def coslang_navigate(workspace: Workspace, *, path: str, direction: int = 1) -> dict[str, Any]:
    """Move to the next (1) or previous (-1) match of the active search."""
    try:
        session = workspace.session(path)
    except ValueError as e:
        return {"error": str(e)}

    if session.match_set is None:
        return {"error": "No active search. Run coslang_search first."}
    if session.is_stale():
        return {"error": "stale_match_set: the file changed since the last search. Search again."}

    match = session.navigate(direction)
    if match is None or session.current_index is None:
        return {"match": None, "total": 0}
    return {"match": match_to_dict(session.current_index, match), "total": len(session.matches)}


def coslang_replace(
    workspace: Workspace,
    *,
    path: str,
    query: str,
    replacement: str,
    regex: bool = False,
    case_sensitive: bool = False,
    whole_word: bool = False,
    index: int | None = None,
) -> dict[str, Any]:
    """Replace one match (by index) or every match of a query and save the file.

    Args:
        path: Path to the story file.
        query: Search text or regular expression.
        replacement: Literal replacement text.
        regex: Treat query as a regular expression.
        case_sensitive: Match case exactly.
        whole_word: Only match whole words (literal queries).
        index: Replace only this match (0-based). None replaces all.
    """
    if not query.strip():
        return {"success": False, "error": "No search query provided."}

    try:
        session = workspace.session(path)
    except ValueError as e:
        return {"success": False, "error": str(e)}

    options = SearchOptions(regex=regex, case_sensitive=case_sensitive, whole_word=whole_word)
    match_set = session.search(query, options)
    if match_set.invalid_pattern:
        return {"success": False, "error": f"Invalid pattern: {match_set.error}"}

    if index is None:
        ops = session.replace_all(replacement)
    else:
        if not 0 <= index < len(match_set):
            return {
                "success": False,
                "error": f"Match index {index} out of range ({len(match_set)} matches).",
            }
        op = session.replace_one(index, replacement)
        ops = [op] if op is not None else []

    if session.last_error:
        return {"success": False, "error": f"Replace failed: {session.last_error}"}

    written = workspace.buffer(path).save()
    return {
        "success": True,
        "replaced": len(ops),
        "edits": [dataclasses.asdict(op) for op in ops],
        "written": written,
        "dry_run": workspace.dry_run,
    }


def coslang_analyze(workspace: Workspace, *, path: str) -> dict[str, Any]:
    """Analyze a story file: complexity, metrics, warnings and suggestions."""
    try:
        buf = workspace.buffer(path)
    except ValueError as e:
        return {"error": str(e)}
    report = workspace.analyzer(buf.path).analyze(buf.get_text())
    return report_to_dict(report)


def coslang_consolidate(
    workspace: Workspace,
    *,
    path: str,
    names: list[str] | None = None,
    target: str | None = None,
) -> dict[str, Any]:
    """Rename look-alike variables to one name and save the file.

    Without names, every group of assigned variables that differ only by
    case or underscores is merged into its first name. All renames land as
    one edit batch.

    Args:
        path: Path to the story file.
        names: Variables to merge (at least two). Omit to merge every group.
        target: Name to keep when names is given. Defaults to the first name.
    """
    if names is not None and len(set(names)) < 2:
        return {"success": False, "error": "Give at least two variable names to consolidate."}

    try:
        buf = workspace.buffer(path)
    except ValueError as e:
        return {"success": False, "error": str(e)}

    text = buf.get_text()
    if names is not None:
        keep = target or names[0]
        groups = [[keep, *(n for n in dict.fromkeys(names) if n != keep)]]
    else:
        groups = similar_variable_groups(sorted(build_variable_table(text).assigned))

    ops: list[EditOperation] = []
    for group in groups:
        ops.extend(plan_consolidation(text, group))
    ops.sort(key=lambda o: (o.line, o.start_column), reverse=True)

    try:
        buf.apply_edits(ops)
    except EditConflictError as e:
        return {"success": False, "error": f"Consolidation failed: {e}"}

    written = buf.save()
    return {
        "success": True,
        "groups": groups,
        "replaced": len(ops),
        "edits": [dataclasses.asdict(op) for op in ops],
        "written": written,
        "dry_run": workspace.dry_run,
    }


# --- MCP server ---


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[Workspace]:
    """Create the workspace on startup."""
    workspace = Workspace(
        thresholds=load_thresholds(),
        dry_run=os.environ.get("COSLANG_DRY_RUN", "") == "1",
        entry_scene=os.environ.get("COSLANG_ENTRY_SCENE") or None,
    )
    logger.info("Coslang tools ready (dry_run={})", workspace.dry_run)
    yield workspace


mcp_server = FastMCP(
    "coslang-tools",
    instructions="""Search, replace and analyze Coslang story scripts.

## Workflow
1. coslang_analyze_tool to see missing scenes, unused variables and
   structural warnings.
2. coslang_search_tool to locate text; coslang_navigate_tool to step
   through matches.
3. coslang_replace_tool to fix them. Without index it replaces all matches.
4. coslang_consolidate_tool to merge look-alike variable names.

## Caveats
Analysis is pattern based. Unreachable scenes and unused variables can be
false positives when scenes or variables are used outside the script syntax.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> Workspace:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def coslang_search_tool(
    ctx: Context,
    path: str,
    query: str,
    regex: bool = False,
    case_sensitive: bool = False,
    whole_word: bool = False,
    limit: int = 100,
) -> dict[str, Any]:
    """Find a literal string or regex in a story file.

    Matching is per line and case-insensitive by default. whole_word only
    applies to literal queries. Results stay active for coslang_navigate_tool.

    Args:
        path: Path to the story file.
        query: Search text or regular expression.
        regex: Treat query as a regular expression.
        case_sensitive: Match case exactly.
        whole_word: Only match whole words (literal queries).
        limit: Max matches to return (1-1000, default 100).
    """
    return coslang_search(
        _ctx(ctx),
        path=path,
        query=query,
        regex=regex,
        case_sensitive=case_sensitive,
        whole_word=whole_word,
        limit=limit,
    )


@mcp_server.tool()
async def coslang_navigate_tool(ctx: Context, path: str, direction: int = 1) -> dict[str, Any]:
    """Move to the next (1) or previous (-1) match of the last search, wrapping around.

    Args:
        path: Path to the story file.
        direction: 1 for next, -1 for previous.
    """
    return coslang_navigate(_ctx(ctx), path=path, direction=direction)


@mcp_server.tool()
async def coslang_replace_tool(
    ctx: Context,
    path: str,
    query: str,
    replacement: str,
    regex: bool = False,
    case_sensitive: bool = False,
    whole_word: bool = False,
    index: int | None = None,
) -> dict[str, Any]:
    """Replace one match (by index) or all matches of a query, then save the file.

    Args:
        path: Path to the story file.
        query: Search text or regular expression.
        replacement: Literal replacement text.
        regex: Treat query as a regular expression.
        case_sensitive: Match case exactly.
        whole_word: Only match whole words (literal queries).
        index: 0-based match index to replace. Omit to replace all.
    """
    return coslang_replace(
        _ctx(ctx),
        path=path,
        query=query,
        replacement=replacement,
        regex=regex,
        case_sensitive=case_sensitive,
        whole_word=whole_word,
        index=index,
    )


@mcp_server.tool()
async def coslang_analyze_tool(ctx: Context, path: str) -> dict[str, Any]:
    """Analyze a story file.

    Returns complexity counts, line metrics, warnings (long scenes, deep
    nesting, unbalanced braces) and suggestions ordered high to low priority
    (missing scenes with a skeleton to insert, unused variables, ...).

    Args:
        path: Path to the story file.
    """
    return coslang_analyze(_ctx(ctx), path=path)


@mcp_server.tool()
async def coslang_consolidate_tool(
    ctx: Context,
    path: str,
    names: list[str] | None = None,
    target: str | None = None,
) -> dict[str, Any]:
    """Merge look-alike variables (player_hp, playerHp, ...) into one name and save.

    Matches are whole-word and case-sensitive, so longer names that contain a
    variant are left alone.

    Args:
        path: Path to the story file.
        names: Variables to merge. Omit to merge every consolidate_variables group
            reported by coslang_analyze_tool.
        target: Name to keep. Defaults to the first name.
    """
    return coslang_consolidate(_ctx(ctx), path=path, names=names, target=target)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from coslang_tools.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
