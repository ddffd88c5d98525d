"""Builds chat prompts for feature groups and single files."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from .constants import (
    DEFAULT_TEMPERATURE,
    FENCE_BY_LANGUAGE,
    LANGUAGE_BY_EXTENSION,
    SIMPLIFIED_TEMPERATURE,
    TRUNCATION_MARKER,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..generator import GenerationUnit


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


@dataclass(frozen=True)
class PromptRequest:
    """System and user messages for one generation attempt."""

    system: str
    user: str
    temperature: float
    truncated: bool = False

    @property
    def messages(self) -> List[PromptMessage]:
        return [PromptMessage("system", self.system), PromptMessage("user", self.user)]


def truncate_content(text: str, limit: int) -> tuple[str, bool]:
    """Cap ``text`` at ``limit`` characters, appending the truncation marker when cut."""

    if limit <= 0 or len(text) <= limit:
        return text, False
    return text[:limit] + TRUNCATION_MARKER, True


def language_for_path(path: str) -> str:
    suffix = posixpath.splitext(path.lower())[1]
    return LANGUAGE_BY_EXTENSION.get(suffix, "source")


class PromptBuilder:
    """Renders the jinja2 prompt templates for a generation unit."""

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        truncate_chars: int = 30_000,
        fallback_truncate_chars: int = 45_000,
    ) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.truncate_chars = truncate_chars
        self.fallback_truncate_chars = fallback_truncate_chars
        self._env = self._create_env(self.templates_dir)

    def build(self, unit: "GenerationUnit", *, simplified: bool = False) -> PromptRequest:
        """Return the prompt for ``unit``; ``simplified`` selects the fallback tier."""

        limit = self.fallback_truncate_chars if simplified else self.truncate_chars
        content, truncated = truncate_content(unit.content, limit)
        context = self._context(unit, content)
        if simplified:
            system = self._render("system_simplified.j2", context)
            user = self._render("user_simplified.j2", context)
            temperature = SIMPLIFIED_TEMPERATURE
        else:
            system = self._render(f"system_{unit.kind}.j2", context)
            user = self._render(f"user_{unit.kind}.j2", context)
            temperature = DEFAULT_TEMPERATURE
        return PromptRequest(system=system, user=user, temperature=temperature, truncated=truncated)

    def _context(self, unit: "GenerationUnit", content: str) -> Dict[str, object]:
        languages = self._languages(unit)
        primary = languages[0] if languages else "source"
        return {
            "kind": unit.kind,
            "label": unit.label,
            "filename": unit.label,
            "file_count": len(unit.files),
            "language": primary,
            "languages": ", ".join(languages) if languages else "source",
            "fence": FENCE_BY_LANGUAGE.get(primary, "text"),
            "content": content,
        }

    @staticmethod
    def _languages(unit: "GenerationUnit") -> List[str]:
        seen: List[str] = []
        for path in unit.files:
            language = language_for_path(path)
            if language not in seen:
                seen.append(language)
        return seen

    def _render(self, template_name: str, context: Dict[str, object]) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).strip()

    @staticmethod
    def _create_env(templates_dir: Optional[Path]) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


__all__ = [
    "PromptBuilder",
    "PromptMessage",
    "PromptRequest",
    "language_for_path",
    "truncate_content",
]
