"""Shared constants for prompting and fallbacks."""

from __future__ import annotations

TRUNCATION_MARKER = "\n\n... (content truncated)"

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".js": "JavaScript",
    ".jsx": "React JSX",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "React TypeScript",
    ".py": "Python",
}

# Markdown fence info strings per language name.
FENCE_BY_LANGUAGE: dict[str, str] = {
    "JavaScript": "javascript",
    "React JSX": "jsx",
    "TypeScript": "typescript",
    "React TypeScript": "tsx",
    "Python": "python",
}

DEFAULT_TEMPERATURE = 0.2
SIMPLIFIED_TEMPERATURE = 0.3


__all__ = [
    "DEFAULT_TEMPERATURE",
    "FENCE_BY_LANGUAGE",
    "LANGUAGE_BY_EXTENSION",
    "SIMPLIFIED_TEMPERATURE",
    "TRUNCATION_MARKER",
]
