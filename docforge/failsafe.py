"""Deterministic documentation used when the generative service cannot deliver."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List

from .models import SymbolEntry
from .prompting.builder import language_for_path
from .prompting.constants import FENCE_BY_LANGUAGE

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .generator import GenerationUnit

_SOURCE_EXCERPT_CHARS = 1000
_BACKTICK_RUN = re.compile(r"`+")


def build_symbol_outline_doc(unit: "GenerationUnit", *, reason: str | None = None) -> str:
    """Return markdown built only from the symbols already extracted for ``unit``."""

    noun = "feature" if unit.kind == "group" else "file"
    lines: List[str] = [f"# {unit.label}", "", "## Overview", ""]
    lines.append(
        f"This {noun} could not be documented automatically. The outline below lists the "
        "declarations found in the source; refer to the code for details."
    )
    cleaned_reason = _format_reason(reason)
    if cleaned_reason:
        lines.extend(["", f"_Generation note: {cleaned_reason}._"])

    for parsed in unit.parsed:
        lines.extend(["", f"## `{parsed.path}`", ""])
        for entry in parsed.entries:
            lines.extend(_entry_lines(entry, depth=0))

    if unit.kind == "file" and unit.files:
        fence = FENCE_BY_LANGUAGE.get(language_for_path(unit.files[0]), "text")
        excerpt = unit.content[:_SOURCE_EXCERPT_CHARS].rstrip()
        ticks = _fence_for(excerpt)
        lines.extend(["", "## Source Excerpt", "", f"{ticks}{fence}", excerpt])
        if len(unit.content) > _SOURCE_EXCERPT_CHARS:
            lines.append("...")
        lines.append(ticks)

    return "\n".join(lines).strip() + "\n"


def _entry_lines(entry: SymbolEntry, *, depth: int) -> List[str]:
    indent = "  " * depth
    span = (
        f"line {entry.start_line}"
        if entry.start_line == entry.end_line
        else f"lines {entry.start_line}-{entry.end_line}"
    )
    lines = [f"{indent}- `{entry.name}` ({entry.label.replace('_', ' ')}, {span})"]
    for child in entry.children:
        lines.extend(_entry_lines(child, depth=depth + 1))
    return lines


def _fence_for(text: str) -> str:
    longest = max((len(run) for run in _BACKTICK_RUN.findall(text)), default=0)
    return "`" * max(3, longest + 1)


def _format_reason(reason: str | None) -> str | None:
    if not reason:
        return None
    cleaned = " ".join(str(reason).split())
    if not cleaned:
        return None
    if len(cleaned) > 200:
        cleaned = cleaned[:197].rstrip() + "..."
    return cleaned.rstrip(".")


__all__ = ["build_symbol_outline_doc"]
