"""Scene definitions and choice-arrow references."""

import re

from coslang_tools.core.source import split_lines
from coslang_tools.models.analysis import ReferenceGraph

SCENE_DEFINITION = re.compile(r"\bscene\s+(\w+)\s*\{")
SCENE_REFERENCE = re.compile(r"->\s*(\w+)")


def build_reference_graph(source_text: str, *, entry_scene: str | None = None) -> ReferenceGraph:
    """Collect defined and referenced scene names.

    Extraction is order independent, so a choice may point at a scene
    defined further down. The entry scene (first definition unless given)
    is never reported as unreachable.
    """
    definition_lines: dict[str, int] = {}
    reference_lines: dict[str, int] = {}

    for line_no, line in enumerate(split_lines(source_text), start=1):
        for m in SCENE_DEFINITION.finditer(line):
            definition_lines.setdefault(m.group(1), line_no)
        for m in SCENE_REFERENCE.finditer(line):
            reference_lines.setdefault(m.group(1), line_no)

    if entry_scene is None and definition_lines:
        entry_scene = next(iter(definition_lines))

    return ReferenceGraph(
        defined_scenes=frozenset(definition_lines),
        referenced_scenes=frozenset(reference_lines),
        entry_scene=entry_scene,
        definition_lines=definition_lines,
        reference_lines=reference_lines,
    )


def scene_skeleton(name: str) -> str:
    """Ready-to-insert body for a scene that is referenced but missing."""
    return f'scene {name} {{\n\ttext: "Scene content"\n\tchoice "Continue" -> next_scene\n}}'
