"""Linting utilities for generated markdown."""

from __future__ import annotations

import re
from typing import List, Optional

from .frontmatter import split_front_matter

_FENCE = re.compile(r"^(`{3,})(.*)$")


class MarkdownLinter:
    """Normalises line endings, blank runs, headings and code fences.

    Any front matter the service emitted is dropped so the materializer's own
    block is the only one in the written file.
    """

    def lint(self, markdown: str) -> str:
        normalized = markdown.replace("\r\n", "\n").replace("\r", "\n")
        _, normalized = split_front_matter(normalized.lstrip("\n"))
        lines = normalized.split("\n")
        cleaned: List[str] = []
        open_fence: Optional[str] = None
        previous_blank = False

        for line in lines:
            stripped = line.rstrip()
            fence = _FENCE.match(stripped.lstrip())
            if fence and open_fence is None:
                open_fence = fence.group(1)
                cleaned.append(stripped)
                previous_blank = False
                continue
            if fence and open_fence is not None and _closes(fence, open_fence):
                open_fence = None
                cleaned.append(stripped)
                previous_blank = False
                continue

            if open_fence is None:
                if stripped.startswith("#") and cleaned and cleaned[-1] != "":
                    cleaned.append("")
                if not stripped:
                    if previous_blank or not cleaned:
                        continue
                    previous_blank = True
                    cleaned.append("")
                    continue

            cleaned.append(stripped)
            previous_blank = False

        if open_fence is not None:
            # Close a fence the service left open so later content renders.
            while cleaned and cleaned[-1] == "":
                cleaned.pop()
            cleaned.append(open_fence)

        while cleaned and cleaned[-1] == "":
            cleaned.pop()

        return "\n".join(cleaned) + "\n"


def _closes(fence: "re.Match[str]", open_fence: str) -> bool:
    # A closing fence is at least as long as the opener and carries no info string.
    return len(fence.group(1)) >= len(open_fence) and not fence.group(2).strip()


__all__ = ["MarkdownLinter"]
