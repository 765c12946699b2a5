"""CLI for coslang-tools (search, replace, analyze, consolidate, MCP server)."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from coslang_tools.config import AnalysisThresholds, load_thresholds
from coslang_tools.logging_config import configure_logging
from coslang_tools.mcp.server import (
    Workspace,
    coslang_analyze,
    coslang_consolidate,
    coslang_replace,
    coslang_search,
)

app = typer.Typer(help="Coslang tools: search, replace and analyze story scripts.")

StoryFile = Annotated[Path, typer.Argument(help="Story file (.coslang)")]


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    ctx.obj = {"verbose": verbose}
    configure_logging(verbose=verbose)


def _json_logging(ctx: typer.Context, output_json: bool) -> None:
    """Keep stderr to errors so --json output stays parseable."""
    if output_json and not (ctx.obj or {}).get("verbose"):
        configure_logging(quiet=True)


def _check_file(path: Path) -> None:
    if not path.is_file():
        logger.error("Story file not found: {}", path)
        raise typer.Exit(1)


@app.command()
def search(
    ctx: typer.Context,
    path: StoryFile,
    query: str = typer.Argument(..., help="Search text or pattern"),
    regex: bool = typer.Option(False, "--regex", "-r", help="Treat query as a regex"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", "-c", help="Match case"),
    whole_word: bool = typer.Option(False, "--whole-word", "-w", help="Match whole words"),
    limit: int = typer.Option(100, "--limit", "-n", help="Max matches to show"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Find matches of a query in a story file."""
    _json_logging(ctx, output_json)
    _check_file(path)
    result = coslang_search(
        Workspace(),
        path=str(path),
        query=query,
        regex=regex,
        case_sensitive=case_sensitive,
        whole_word=whole_word,
        limit=limit,
    )
    if output_json:
        typer.echo(json.dumps(result, indent=2))
        if "error" in result:
            raise typer.Exit(1)
        return

    if "error" in result:
        typer.echo(result["error"])
        raise typer.Exit(1)

    total = result["total"]
    typer.echo(f"{total} result{'s' if total != 1 else ''}")
    for m in result["matches"]:
        typer.echo(f"  {m['line']}:{m['column']}  {m['line_text'].strip()}")
    if result["has_more"]:
        typer.echo(f"  ... {total - result['count']} more")


@app.command()
def replace(
    ctx: typer.Context,
    path: StoryFile,
    query: str = typer.Argument(..., help="Search text or pattern"),
    replacement: str = typer.Argument(..., help="Replacement text"),
    regex: bool = typer.Option(False, "--regex", "-r", help="Treat query as a regex"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", "-c", help="Match case"),
    whole_word: bool = typer.Option(False, "--whole-word", "-w", help="Match whole words"),
    index: Annotated[
        int | None,
        typer.Option("--index", "-i", help="Replace only this match (0-based)"),
    ] = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write the file"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Replace one or all matches of a query and save the file."""
    _json_logging(ctx, output_json)
    _check_file(path)
    result = coslang_replace(
        Workspace(dry_run=dry_run),
        path=str(path),
        query=query,
        replacement=replacement,
        regex=regex,
        case_sensitive=case_sensitive,
        whole_word=whole_word,
        index=index,
    )
    if output_json:
        typer.echo(json.dumps(result, indent=2))
    elif result["success"]:
        suffix = " (dry run)" if dry_run else ""
        typer.echo(f"Replaced {result['replaced']} match(es){suffix}")
    else:
        typer.echo(result["error"])

    if not result["success"]:
        raise typer.Exit(1)


@app.command()
def analyze(
    ctx: typer.Context,
    path: StoryFile,
    entry_scene: Annotated[
        str | None,
        typer.Option("--entry-scene", "-e", help="Scene the story starts in"),
    ] = None,
    long_scene_chars: Annotated[
        int | None,
        typer.Option("--long-scene-chars", help="Warn about scenes longer than this"),
    ] = None,
    max_nesting: Annotated[
        int | None,
        typer.Option("--max-nesting", help="Warn about conditionals nested deeper than this"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Report complexity, warnings and suggestions for a story file."""
    _json_logging(ctx, output_json)
    _check_file(path)
    try:
        thresholds = load_thresholds()
    except ValueError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from None
    thresholds = AnalysisThresholds(
        long_scene_chars=(
            long_scene_chars if long_scene_chars is not None else thresholds.long_scene_chars
        ),
        max_conditional_depth=(
            max_nesting if max_nesting is not None else thresholds.max_conditional_depth
        ),
        long_text_chars=thresholds.long_text_chars,
    )

    report = coslang_analyze(
        Workspace(thresholds=thresholds, entry_scene=entry_scene), path=str(path)
    )
    if output_json:
        typer.echo(json.dumps(report, indent=2))
        return

    c = report["complexity"]
    m = report["metrics"]
    typer.echo(
        f"Complexity {c['score']}: {c['scenes']} scenes, {c['choices']} choices, "
        f"{c['conditionals']} conditionals, {c['variables']} assignments"
    )
    typer.echo(
        f"Lines: {m['total_lines']} total, {m['code_lines']} code, "
        f"{m['comment_lines']} comments ({m['comment_ratio']:.0%})"
    )

    if report["warnings"]:
        typer.echo(f"\n{len(report['warnings'])} warnings:")
        for w in report["warnings"]:
            where = f"line {w['line']}: " if w["line"] else ""
            typer.echo(f"  [{w['severity']}] {where}{w['message']}")

    if report["suggestions"]:
        typer.echo(f"\n{len(report['suggestions'])} suggestions:")
        for s in report["suggestions"]:
            where = f"line {s['line']}: " if s["line"] else ""
            typer.echo(f"  [{s['priority']}] {where}{s['message']}")


@app.command()
def consolidate(
    ctx: typer.Context,
    path: StoryFile,
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Variables to merge. Omit to merge every look-alike group"),
    ] = None,
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Name to keep (default: first name)"),
    ] = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write the file"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Rename look-alike variables to a single name and save the file."""
    _json_logging(ctx, output_json)
    _check_file(path)
    result = coslang_consolidate(
        Workspace(dry_run=dry_run), path=str(path), names=names or None, target=target
    )
    if output_json:
        typer.echo(json.dumps(result, indent=2))
    elif result["success"]:
        for group in result["groups"]:
            typer.echo(f"{', '.join(group[1:])} -> {group[0]}")
        suffix = " (dry run)" if dry_run else ""
        typer.echo(f"Renamed {result['replaced']} occurrence(s){suffix}")
    else:
        typer.echo(result["error"])

    if not result["success"]:
        raise typer.Exit(1)


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from coslang_tools.mcp.server import run_mcp_server

    run_mcp_server()
