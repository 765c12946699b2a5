"""Combine reference, variable and structure analysis into one report."""

from loguru import logger

from coslang_tools.config import AnalysisThresholds
from coslang_tools.core.analysis.references import build_reference_graph, scene_skeleton
from coslang_tools.core.analysis.structure import (
    compute_metrics,
    conditional_nesting,
    count_constructs,
    long_text_blocks,
    scene_spans,
)
from coslang_tools.core.analysis.variables import build_variable_table, similar_variable_groups
from coslang_tools.core.source import source_hash, split_lines
from coslang_tools.models.analysis import (
    PRIORITY_ORDER,
    AnalysisReport,
    AnalysisWarning,
    ReferenceGraph,
    Suggestion,
    VariableTable,
)


def _reference_suggestions(graph: ReferenceGraph) -> list[Suggestion]:
    suggestions = [
        Suggestion(
            kind="missing_scene",
            message=f"Scene '{name}' is referenced but not defined",
            priority="high",
            code=scene_skeleton(name),
            line=graph.reference_lines.get(name),
        )
        for name in sorted(graph.missing_scenes)
    ]
    # Scenes entered by external loaders land here as well.
    suggestions.extend(
        Suggestion(
            kind="unreachable_scene",
            message=f"Scene '{name}' is never the target of a choice",
            priority="low",
            line=graph.definition_lines.get(name),
        )
        for name in sorted(graph.unreachable_scenes)
    )
    return suggestions


def _variable_suggestions(table: VariableTable) -> list[Suggestion]:
    suggestions = [
        Suggestion(
            kind="unused_variable",
            message=f"Variable '{name}' is defined but never used",
            priority="medium",
            code=f"# Consider removing or using: set {name}",
            line=table.assignment_lines.get(name),
        )
        for name in sorted(table.unused)
    ]
    suggestions.extend(
        Suggestion(
            kind="undefined_variable",
            message=f"Variable '{name}' is interpolated but never set",
            priority="low",
            code=f"set {name} = 0",
            line=table.interpolation_lines.get(name),
        )
        for name in sorted(table.undefined)
    )
    for group in similar_variable_groups(sorted(table.assigned)):
        suggestions.append(
            Suggestion(
                kind="consolidate_variables",
                message=f"Variables {', '.join(group)} look alike; consider consolidating them",
                priority="low",
            )
        )
    return suggestions


def build_report(
    source_text: str,
    thresholds: AnalysisThresholds | None = None,
    *,
    entry_scene: str | None = None,
) -> AnalysisReport:
    """Analyze a snapshot without caching.

    The complexity score is scenes + choices + conditionals. Compare it
    between revisions of one story; it is not an absolute quality score.
    """
    thresholds = thresholds or AnalysisThresholds()
    lines = split_lines(source_text)

    warnings: list[AnalysisWarning] = []
    for span in scene_spans(lines):
        if span.length > thresholds.long_scene_chars:
            warnings.append(
                AnalysisWarning(
                    kind="long_scene",
                    message=(
                        f"Scene '{span.name}' is very long ({span.length} chars). "
                        "Consider splitting it into smaller scenes."
                    ),
                    severity="medium",
                    line=span.line,
                )
            )

    nesting = conditional_nesting(lines)
    if nesting.max_depth > thresholds.max_conditional_depth:
        warnings.append(
            AnalysisWarning(
                kind="deep_nesting",
                message=(
                    f"Deep conditional nesting detected ({nesting.max_depth} levels). "
                    "Consider simplifying logic."
                ),
                severity="high",
            )
        )
    for line_no in nesting.stray_closers:
        logger.warning("Unmatched closing brace at line {}", line_no)
        warnings.append(
            AnalysisWarning(
                kind="malformed_structure",
                message=f"Closing brace at line {line_no} has no matching opening brace",
                severity="medium",
                line=line_no,
            )
        )
    if nesting.unclosed:
        warnings.append(
            AnalysisWarning(
                kind="malformed_structure",
                message=f"{nesting.unclosed} block(s) are never closed",
                severity="medium",
            )
        )

    suggestions: list[Suggestion] = []
    if not any(line.strip().startswith("title:") for line in lines):
        suggestions.append(
            Suggestion(
                kind="metadata",
                message="Add story title for better organization",
                priority="high",
                code='title: "Your Story Title"',
            )
        )
    graph = build_reference_graph(source_text, entry_scene=entry_scene)
    suggestions.extend(_reference_suggestions(graph))
    suggestions.extend(_variable_suggestions(build_variable_table(source_text)))
    suggestions.extend(
        Suggestion(
            kind="long_text",
            message="Consider breaking this long text block into smaller paragraphs",
            priority="low",
            line=line_no,
        )
        for line_no in long_text_blocks(lines, thresholds.long_text_chars)
    )
    suggestions.sort(key=lambda s: PRIORITY_ORDER[s.priority])

    return AnalysisReport(
        source_hash=source_hash(source_text),
        complexity=count_constructs(lines),
        metrics=compute_metrics(lines),
        warnings=tuple(warnings),
        suggestions=tuple(suggestions),
        max_conditional_depth=nesting.max_depth,
    )


class ContentAnalyzer:
    """Analyze snapshots, reusing the last report while the content is unchanged.

    A single slot holds the most recent (hash, report) pair; any other hash
    replaces it.
    """

    def __init__(
        self,
        thresholds: AnalysisThresholds | None = None,
        *,
        entry_scene: str | None = None,
    ) -> None:
        self.thresholds = thresholds or AnalysisThresholds()
        self.entry_scene = entry_scene
        self._cached: AnalysisReport | None = None

    def analyze(self, source_text: str) -> AnalysisReport:
        digest = source_hash(source_text)
        if self._cached is not None and self._cached.source_hash == digest:
            logger.debug("Analysis cache hit for {}", digest[:12])
            return self._cached

        report = build_report(source_text, self.thresholds, entry_scene=self.entry_scene)
        self._cached = report
        return report

    def invalidate(self) -> None:
        self._cached = None
