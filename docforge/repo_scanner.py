"""Repository walking and the pre-filter applied before structural parsing."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .config import ConfigError, load_config
from .logging import get_logger
from .models import SourceFile

_EXCLUDED_DIRS = {
    "node_modules",
    ".git",
    "dist",
    "build",
    "target",
    "out",
    "bin",
    "obj",
    ".next",
    "coverage",
    "vendor",
}

_ARTIFACT_SUFFIXES = (".min.js", ".map", ".bundle.js")

MAX_FILE_BYTES = 1_000_000
_MAX_LINE_LENGTH = 500
_MIN_WHITESPACE_RATIO = 0.10
_MAX_CONTROL_RATIO = 0.10

logger = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .docforge.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _is_excluded_path(path: str) -> bool:
    parts = path.replace("\\", "/").split("/")
    if any(part in _EXCLUDED_DIRS for part in parts[:-1]):
        return True
    return parts[-1].lower().endswith(_ARTIFACT_SUFFIXES)


def _looks_binary(content: bytes) -> bool:
    if b"\x00" in content:
        return True
    if not content:
        return False
    control = sum(1 for byte in content if byte < 32 and byte not in (9, 10, 13))
    return control / len(content) > _MAX_CONTROL_RATIO


def _looks_minified(text: str) -> bool:
    if not text:
        return False
    if any(len(line) > _MAX_LINE_LENGTH for line in text.splitlines()):
        return True
    whitespace = sum(1 for char in text if char.isspace())
    return whitespace / len(text) < _MIN_WHITESPACE_RATIO


def should_document(path: str, content: bytes) -> bool:
    """Return True when ``path`` is worth handing to the structural parser."""

    if _is_excluded_path(path):
        return False
    if len(content) > MAX_FILE_BYTES:
        logger.debug("Skipping %s: larger than %d bytes", path, MAX_FILE_BYTES)
        return False
    if _looks_binary(content):
        logger.debug("Skipping %s: binary content", path)
        return False
    if _looks_minified(content.decode("utf-8", errors="replace")):
        logger.debug("Skipping %s: minified content", path)
        return False
    return True


def filter_source_files(files: Iterable[SourceFile]) -> List[SourceFile]:
    """Apply the skip lists and content heuristics to caller supplied files."""

    return [file for file in files if should_document(file.path, file.content)]


class RepoScanner:
    """Walks a local checkout and returns documentable source files."""

    def __init__(self, exclude_paths: Sequence[str] = ()) -> None:
        self.exclude_paths = list(exclude_paths)

    def collect(self, root: str | Path) -> List[SourceFile]:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        rules = self._load_ignore_rules(root_path)
        files: List[SourceFile] = []
        for path in self._iter_files(root_path, rules):
            rel_path = path.relative_to(root_path).as_posix()
            try:
                if path.stat().st_size > MAX_FILE_BYTES:
                    continue
                content = path.read_bytes()
            except OSError as exc:
                logger.warning("Unable to read %s: %s", rel_path, exc)
                continue
            if should_document(rel_path, content):
                files.append(SourceFile(path=rel_path, content=content))
        logger.info("Collected %d source files from %s", len(files), root_path)
        return files

    def _load_ignore_rules(self, root: Path) -> List[IgnoreRule]:
        rules = _parse_gitignore(root / ".gitignore")
        patterns = list(self.exclude_paths)
        config_path = root / ".docforge.yml"
        if config_path.exists():
            try:
                patterns.extend(load_config(config_path).exclude_paths)
            except ConfigError as exc:
                logger.warning("Ignoring exclude_paths from %s: %s", config_path, exc)
        for pattern in patterns:
            rule = _build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)
        return rules

    @staticmethod
    def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept_dirs = []
            for name in sorted(dirnames):
                if name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                yield current_dir / filename


__all__ = ["MAX_FILE_BYTES", "RepoScanner", "filter_source_files", "should_document"]
