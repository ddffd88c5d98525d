"""Front matter rendering, parsing and identifier sanitising."""

from __future__ import annotations

import re
from typing import Dict, Tuple

_FRONT_MATTER_DELIMITER = "---"
_ESCAPED_CHARS = '":{}[]|'
_WHITESPACE = re.compile(r"\s+")
_NON_ID_CHARS = re.compile(r"[^\w-]")
_DASH_RUNS = re.compile(r"-+")
_UNESCAPE = re.compile(r"\\(.)")


def sanitize_id(value: str) -> str:
    """Lowercase ``value`` and reduce it to word characters joined by single dashes."""

    if not value:
        return ""
    slug = _WHITESPACE.sub("-", value.lower())
    slug = _NON_ID_CHARS.sub("-", slug)
    slug = _DASH_RUNS.sub("-", slug)
    return slug.strip("-")


def sanitize_front_matter_value(value: str) -> str:
    """Backslash-escape characters that would break a quoted key/value line."""

    if not value:
        return ""
    escaped = value.replace("\\", "\\\\")
    for char in _ESCAPED_CHARS:
        escaped = escaped.replace(char, f"\\{char}")
    return " ".join(escaped.splitlines())


def render_front_matter(doc_id: str, title: str, sidebar_position: int) -> str:
    return (
        f"{_FRONT_MATTER_DELIMITER}\n"
        f'id: "{sanitize_id(doc_id)}"\n'
        f'title: "{sanitize_front_matter_value(title)}"\n'
        f"sidebar_position: {int(sidebar_position)}\n"
        f"{_FRONT_MATTER_DELIMITER}\n"
    )


def split_front_matter(text: str) -> Tuple[Dict[str, str], str]:
    """Return ``(fields, body)``; ``fields`` is empty when there is no front matter."""

    normalized = text.replace("\r\n", "\n")
    if not normalized.startswith(_FRONT_MATTER_DELIMITER + "\n"):
        return {}, text
    lines = normalized.split("\n")
    for index in range(1, len(lines)):
        if lines[index].strip() == _FRONT_MATTER_DELIMITER:
            fields = _parse_fields(lines[1:index])
            body = "\n".join(lines[index + 1 :])
            return fields, body
    return {}, text


def _parse_fields(lines: list[str]) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for line in lines:
        if ":" not in line:
            continue
        key, raw = line.split(":", 1)
        key = key.strip()
        raw = raw.strip()
        if not key:
            continue
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ('"', "'"):
            raw = raw[1:-1]
        fields[key] = _UNESCAPE.sub(r"\1", raw)
    return fields


def title_from_slug(slug: str) -> str:
    """``error-handling`` -> ``Error Handling``."""

    words = re.split(r"[-_/\s]+", slug)
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


__all__ = [
    "render_front_matter",
    "sanitize_front_matter_value",
    "sanitize_id",
    "split_front_matter",
    "title_from_slug",
]
