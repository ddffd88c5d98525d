"""Tests for the symbol outline fallback document."""

from __future__ import annotations

from docforge.failsafe import build_symbol_outline_doc
from docforge.generator import GenerationUnit
from docforge.models import ParsedFile, SymbolEntry, SymbolKind


def _session_file() -> ParsedFile:
    return ParsedFile(
        path="src/auth/session.ts",
        entries=[
            SymbolEntry(
                SymbolKind.CLASS,
                "Session",
                1,
                12,
                children=[SymbolEntry(SymbolKind.METHOD, "refresh", 4, 4)],
                exported="default",
            ),
            SymbolEntry(SymbolKind.FUNCTION, "login", 14, 20, exported="named"),
        ],
    )


def test_group_outline_lists_every_symbol() -> None:
    unit = GenerationUnit.for_group("Authentication", [_session_file()])

    doc = build_symbol_outline_doc(unit, reason="LLM service returned status 503")

    assert doc.startswith("# Authentication\n")
    assert "## Overview" in doc
    assert "This feature could not be documented automatically." in doc
    assert "_Generation note: LLM service returned status 503._" in doc
    assert "## `src/auth/session.ts`" in doc
    assert "- `Session` (default exported class, lines 1-12)" in doc
    assert "  - `refresh` (method, line 4)" in doc
    assert "- `login` (exported function, lines 14-20)" in doc
    assert "```" not in doc


def test_file_outline_includes_source_excerpt() -> None:
    source = "export function login() {}\n" + "// filler\n" * 200
    unit = GenerationUnit.for_file(_session_file(), source, category="Authentication")

    doc = build_symbol_outline_doc(unit)

    assert doc.startswith("# session.ts\n")
    assert "This file could not be documented automatically." in doc
    assert "Generation note" not in doc
    assert "## Source Excerpt\n\n```typescript\nexport function login() {}" in doc
    assert doc.rstrip().endswith("...\n```")


def test_long_reasons_are_shortened() -> None:
    unit = GenerationUnit.for_group("API", [_session_file()])

    doc = build_symbol_outline_doc(unit, reason="x" * 500)

    note = next(line for line in doc.splitlines() if line.startswith("_Generation note"))
    assert len(note) < 230


def test_source_excerpt_fence_outlasts_backticks_in_source() -> None:
    source = "const md = `\n```ts\nrun();\n```\n`;\n"
    unit = GenerationUnit.for_file(_session_file(), source, category="Authentication")

    doc = build_symbol_outline_doc(unit)

    assert "## Source Excerpt\n\n````typescript\nconst md = `\n```ts\n" in doc
    assert doc.endswith("`;\n````\n")
