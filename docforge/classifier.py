"""Keyword heuristics that bucket parsed files into feature groups."""

from __future__ import annotations

import posixpath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .logging import get_logger
from .models import FeatureGroups, ParsedFile

OTHER_FEATURE = "Other"

# Order is priority: the first feature whose keyword appears wins.
FEATURE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Authentication", ("auth", "login", "register", "password", "user", "jwt", "token")),
    ("API", ("api", "endpoint", "route", "controller", "handler", "router", "server")),
    (
        "Database",
        ("db", "database", "model", "schema", "query", "repository", "orm", "sql", "migration"),
    ),
    (
        "UI Components",
        ("component", "view", "page", "template", "ui", "frontend", "react", "jsx", "tsx"),
    ),
    ("Styling", ("style", "css", "scss", "styled", "theme")),
    ("Utilities", ("util", "helper", "common", "shared", "tools")),
    ("Testing", ("test", "spec", "mock", "benchmark")),
    ("Configuration", ("config", "setting", "env", "flags")),
    ("Security", ("security", "permission", "role", "encrypt", "crypto")),
    ("Logging", ("log", "logger", "trace", "debug")),
    ("Middleware", ("middleware", "interceptor", "filter")),
    ("CLI", ("cmd", "cli", "command", "flag")),
    ("HTTP", ("http", "client", "request", "response")),
    ("JSON", ("json", "marshal", "unmarshal")),
    ("Validation", ("validate", "validator", "validation")),
    ("Error Handling", ("error", "err", "exception")),
    ("State Management", ("store", "state", "redux", "context", "provider")),
    ("Hooks", ("hook", "use")),
)

logger = get_logger("classifier")


def _match(haystack: str, table: Sequence[Tuple[str, Tuple[str, ...]]]) -> Optional[str]:
    if not haystack:
        return None
    for feature, keywords in table:
        if any(keyword in haystack for keyword in keywords):
            return feature
    return None


def feature_for(
    file: ParsedFile,
    table: Sequence[Tuple[str, Tuple[str, ...]]] = FEATURE_KEYWORDS,
) -> str:
    """Return the single feature for ``file``.

    Directory path is checked first, then the file name, then the joined
    symbol names. Matching is plain case-insensitive substring containment,
    so ``database`` also matches ``databasement``.
    """

    path = file.path.replace("\\", "/").lower()
    directory, basename = posixpath.split(path)
    symbols = "".join(file.symbol_names()).lower()
    for haystack in (directory, basename, symbols):
        feature = _match(haystack, table)
        if feature is not None:
            return feature
    return OTHER_FEATURE


def classify(
    files: Iterable[ParsedFile],
    table: Sequence[Tuple[str, Tuple[str, ...]]] = FEATURE_KEYWORDS,
) -> FeatureGroups:
    """Group files by feature, pruning empty groups.

    Groups appear in table priority order with ``Other`` last; files keep
    their input order within a group.
    """

    buckets: Dict[str, List[ParsedFile]] = {feature: [] for feature, _ in table}
    buckets[OTHER_FEATURE] = []
    for file in files:
        feature = feature_for(file, table)
        buckets.setdefault(feature, []).append(file)
        logger.debug("Classified %s as %s", file.path, feature)
    return {feature: members for feature, members in buckets.items() if members}


__all__ = ["FEATURE_KEYWORDS", "OTHER_FEATURE", "classify", "feature_for"]
