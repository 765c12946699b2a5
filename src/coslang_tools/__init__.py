"""Search, replace and static analysis for Coslang story scripts."""

from coslang_tools.buffer import FileBuffer
from coslang_tools.core.analysis.report import ContentAnalyzer, build_report
from coslang_tools.core.edit.planner import (
    apply_edits,
    plan_consolidation,
    plan_replace_all,
    plan_replace_one,
)
from coslang_tools.core.search.matcher import find_matches
from coslang_tools.core.search.session import SearchSession, SearchState
from coslang_tools.protocols import HostEditorProtocol, SchedulerProtocol

__all__ = [
    "ContentAnalyzer",
    "FileBuffer",
    "HostEditorProtocol",
    "SchedulerProtocol",
    "SearchSession",
    "SearchState",
    "apply_edits",
    "build_report",
    "find_matches",
    "plan_consolidation",
    "plan_replace_all",
    "plan_replace_one",
]
