"""Domain models for static analysis of Coslang sources."""

from dataclasses import dataclass, field
from typing import Literal

Priority = Literal["high", "medium", "low"]

PRIORITY_ORDER: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


@dataclass(frozen=True)
class ReferenceGraph:
    """Scene definitions versus scene references found by choice arrows."""

    defined_scenes: frozenset[str]
    referenced_scenes: frozenset[str]
    entry_scene: str | None = None
    definition_lines: dict[str, int] = field(default_factory=dict)
    reference_lines: dict[str, int] = field(default_factory=dict)

    @property
    def missing_scenes(self) -> frozenset[str]:
        return self.referenced_scenes - self.defined_scenes

    @property
    def unreachable_scenes(self) -> frozenset[str]:
        """Defined scenes no choice points at.

        Scenes entered from outside the choice syntax show up here too,
        so this set is informational only.
        """
        entry = {self.entry_scene} if self.entry_scene else set()
        return self.defined_scenes - self.referenced_scenes - entry


@dataclass(frozen=True)
class VariableTable:
    """Variables bound by ``set`` versus variables interpolated as ``{name}``."""

    assigned: frozenset[str]
    interpolated: frozenset[str]
    declared: frozenset[str] = frozenset()
    assignment_lines: dict[str, int] = field(default_factory=dict)
    interpolation_lines: dict[str, int] = field(default_factory=dict)

    @property
    def unused(self) -> frozenset[str]:
        return self.assigned - self.interpolated

    @property
    def undefined(self) -> frozenset[str]:
        return self.interpolated - self.assigned - self.declared


@dataclass(frozen=True)
class Complexity:
    """Construct counts. score is a relative indicator, not a quality grade."""

    scenes: int
    choices: int
    conditionals: int
    variables: int
    score: int


@dataclass(frozen=True)
class SourceMetrics:
    """Line based size metrics."""

    total_lines: int
    code_lines: int
    comment_lines: int
    comment_ratio: float
    avg_line_length: float


@dataclass(frozen=True)
class AnalysisWarning:
    """A structural problem worth the author's attention."""

    kind: str
    message: str
    severity: Priority
    line: int | None = None


@dataclass(frozen=True)
class Suggestion:
    """An advisory change, optionally with ready-to-insert code."""

    kind: str
    message: str
    priority: Priority
    code: str | None = None
    line: int | None = None


@dataclass(frozen=True)
class AnalysisReport:
    """Everything the analyzer knows about one source snapshot."""

    source_hash: str
    complexity: Complexity
    metrics: SourceMetrics
    warnings: tuple[AnalysisWarning, ...] = ()
    suggestions: tuple[Suggestion, ...] = ()
    max_conditional_depth: int = 0
