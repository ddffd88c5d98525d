"""Structural parser and the language adapters it dispatches to."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .base import LanguageAdapter, ParseError
from .tree_sitter import JavaScriptAdapter, PythonAdapter, TypeScriptAdapter
from ..logging import get_logger
from ..models import ParsedFile, SourceFile


def default_adapters() -> List[LanguageAdapter]:
    """Return the built-in adapters in dispatch order."""

    return [TypeScriptAdapter(), JavaScriptAdapter(), PythonAdapter()]


class StructuralParser:
    """Turn raw source files into symbol outlines, one adapter per language."""

    def __init__(self, adapters: Sequence[LanguageAdapter] | None = None) -> None:
        self.adapters = list(adapters) if adapters is not None else default_adapters()
        self.logger = get_logger("parser")

    def adapter_for(self, path: str) -> Optional[LanguageAdapter]:
        for adapter in self.adapters:
            if adapter.handles(path):
                return adapter
        return None

    def parse(self, file: SourceFile) -> Optional[ParsedFile]:
        """Return the file's outline, or ``None`` when it has nothing to document.

        Unsupported extensions, malformed sources and files without named
        declarations all yield ``None``; parse failures are logged as warnings.
        """

        adapter = self.adapter_for(file.path)
        if adapter is None:
            self.logger.debug("No adapter for %s; skipping", file.path)
            return None
        try:
            entries = adapter.extract(file.path, file.content)
        except ParseError as exc:
            self.logger.warning("Skipping unparseable file %s: %s", file.path, exc.reason)
            return None
        if not entries:
            self.logger.debug("No named declarations in %s", file.path)
            return None
        return ParsedFile(path=file.path, entries=entries, language=adapter.language_for(file.path))

    def parse_all(self, files: Iterable[SourceFile]) -> List[ParsedFile]:
        parsed: List[ParsedFile] = []
        for file in files:
            result = self.parse(file)
            if result is not None:
                parsed.append(result)
        return parsed


__all__ = [
    "JavaScriptAdapter",
    "LanguageAdapter",
    "ParseError",
    "PythonAdapter",
    "StructuralParser",
    "TypeScriptAdapter",
    "default_adapters",
]
