"""Base classes for language adapters used by the structural parser."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from ..models import SymbolEntry


class ParseError(RuntimeError):
    """Raised when an adapter cannot build a syntax tree for a file."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class LanguageAdapter(ABC):
    """Translate one parser library's tree into docforge symbol entries."""

    #: Extension -> human readable language name used in prompts.
    languages: Dict[str, str] = {}

    @property
    def extensions(self) -> Tuple[str, ...]:
        return tuple(self.languages)

    def handles(self, path: str) -> bool:
        return _extension(path) in self.languages

    def language_for(self, path: str) -> str:
        return self.languages.get(_extension(path), "Unknown")

    @abstractmethod
    def extract(self, path: str, source: bytes) -> List[SymbolEntry]:
        """Return top-level entries in document order or raise ``ParseError``."""


def _extension(path: str) -> str:
    name = path.replace("\\", "/").rsplit("/", 1)[-1].lower()
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1]


__all__ = ["LanguageAdapter", "ParseError"]
