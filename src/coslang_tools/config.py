"""Configuration constants for coslang-tools."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

# Delay before a typed query is evaluated. Newer queries supersede older ones.
DEBOUNCE_SECONDS: float = 0.3

# Search and replace histories keep this many entries, most recent first.
HISTORY_LIMIT: int = 10

# Comment line prefixes. The engine uses "//", older scripts use "#".
COMMENT_PREFIXES: tuple[str, ...] = ("//", "#")


@dataclass(frozen=True)
class AnalysisThresholds:
    """Limits above which the analyzer emits warnings or suggestions."""

    long_scene_chars: int = 1000
    max_conditional_depth: int = 3
    long_text_chars: int = 100


_THRESHOLD_ENV: dict[str, str] = {
    "long_scene_chars": "COSLANG_LONG_SCENE_CHARS",
    "max_conditional_depth": "COSLANG_MAX_CONDITIONAL_DEPTH",
    "long_text_chars": "COSLANG_LONG_TEXT_CHARS",
}


def load_thresholds(environ: Mapping[str, str] | None = None) -> AnalysisThresholds:
    """Build thresholds from defaults overridden by environment variables."""
    env = os.environ if environ is None else environ
    overrides: dict[str, int] = {}
    for field_name, var in _THRESHOLD_ENV.items():
        raw = env.get(var)
        if raw is None or not raw.strip():
            continue
        try:
            overrides[field_name] = int(raw)
        except ValueError:
            msg = f"{var} must be an integer, got {raw!r}"
            raise ValueError(msg) from None
    return AnalysisThresholds(**overrides)
