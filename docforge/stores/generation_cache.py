"""Cache of accepted generation results keyed by unit identity and content."""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

from ..logging import get_logger

_CACHE_VERSION = 1

logger = get_logger("cache")


def cache_key(
    kind: str,
    label: str,
    files: Sequence[str],
    content: str,
    *,
    prefix_chars: int = 2000,
) -> str:
    """Return a stable key for a unit from its identity and a bounded content prefix."""

    digest = hashlib.sha256()
    for part in (kind, label, "\n".join(files), content[:prefix_chars]):
        digest.update(part.encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


class GenerationCache(Protocol):
    """Storage for validated document bodies."""

    def get(self, key: str) -> Optional[str]:
        ...

    def store(self, key: str, body: str) -> None:
        ...


class InMemoryGenerationCache:
    """Never-evicting in-process cache with an optional JSON snapshot on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, str]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry["body"]

    def store(self, key: str, body: str) -> None:
        self._entries[key] = {
            "body": body,
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {"version": _CACHE_VERSION, "entries": self._entries}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        self._dirty = False

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable generation cache %s: %s", path, exc)
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        self._entries = {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str) and isinstance(raw, dict) and isinstance(raw.get("body"), str)
        }
        self._dirty = False


__all__ = ["GenerationCache", "InMemoryGenerationCache", "cache_key"]
