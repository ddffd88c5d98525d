"""Tests for the structural parser dispatch."""

from __future__ import annotations

from typing import List

import pytest

pytest.importorskip("tree_sitter_typescript")

from docforge.analyzers import LanguageAdapter, StructuralParser
from docforge.models import SourceFile, SymbolEntry, SymbolKind
from tests._fixtures.repo_builder import source


class _StaticAdapter(LanguageAdapter):
    languages = {".txt": "Plain Text"}

    def __init__(self, entries: List[SymbolEntry]) -> None:
        self.entries = entries
        self.calls: List[str] = []

    def extract(self, path: str, source: bytes) -> List[SymbolEntry]:
        self.calls.append(path)
        return list(self.entries)


def test_parser_returns_outline_for_supported_file() -> None:
    parser = StructuralParser()

    parsed = parser.parse(
        source(
            "src/auth/login.ts",
            """
            export function login(): void {}
            """,
        )
    )

    assert parsed is not None
    assert parsed.path == "src/auth/login.ts"
    assert parsed.language == "TypeScript"
    assert parsed.to_dict() == {
        "path": "src/auth/login.ts",
        "entries": [
            {"type": "exported_function", "name": "login", "startLine": 1, "endLine": 1}
        ],
    }


def test_parser_skips_unsupported_extension() -> None:
    parser = StructuralParser()

    assert parser.parse(SourceFile(path="main.rb", content=b"def main; end\n")) is None


def test_parser_skips_malformed_source() -> None:
    parser = StructuralParser()

    assert parser.parse(SourceFile(path="src/broken.ts", content=b"class {{{\n")) is None


def test_parser_skips_files_without_named_declarations() -> None:
    parser = StructuralParser()

    assert parser.parse(SourceFile(path="src/constants.ts", content=b"const limit = 10;\n")) is None


def test_parse_all_keeps_input_order_and_drops_empty_results() -> None:
    parser = StructuralParser()
    files = [
        source("b.py", "def beta():\n    pass\n"),
        SourceFile(path="notes.md", content=b"# Notes\n"),
        source("a.py", "def alpha():\n    pass\n"),
    ]

    parsed = parser.parse_all(files)

    assert [item.path for item in parsed] == ["b.py", "a.py"]
    assert [item.symbol_names() for item in parsed] == [["beta"], ["alpha"]]


def test_parser_uses_custom_adapters() -> None:
    adapter = _StaticAdapter([SymbolEntry(SymbolKind.FUNCTION, "read", 1, 2)])
    parser = StructuralParser([adapter])

    parsed = parser.parse(SourceFile(path="docs/readme.txt", content=b"read\n"))

    assert parsed is not None
    assert parsed.language == "Plain Text"
    assert adapter.calls == ["docs/readme.txt"]
    assert parser.parse(SourceFile(path="main.py", content=b"def f(): pass\n")) is None
