"""Sidebar construction: a thin directory reader plus pure tree building."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .frontmatter import split_front_matter, title_from_slug
from ..logging import get_logger
from ..models import NavigationNode

logger = get_logger("navigation")

LANDING_STEMS = ("index", "overview")
LANDING_LABEL = "Overview"


@dataclass(frozen=True)
class DocFile:
    """A markdown file as seen by the sidebar: its stem plus front matter id/title."""

    stem: str
    front_matter_id: Optional[str] = None
    title: Optional[str] = None


@dataclass
class DirectoryListing:
    """Snapshot of one documentation directory and its subdirectories."""

    name: str
    files: List[DocFile] = field(default_factory=list)
    subdirs: List["DirectoryListing"] = field(default_factory=list)


def read_listing(root: Path) -> DirectoryListing:
    """Read markdown front matter and subdirectories below ``root``."""

    listing = DirectoryListing(name=root.name)
    for path in root.iterdir():
        if path.is_dir():
            listing.subdirs.append(read_listing(path))
        elif path.is_file() and path.suffix == ".md":
            try:
                fields, _ = split_front_matter(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Ignoring front matter of unreadable page %s: %s", path, exc)
                fields = {}
            listing.files.append(
                DocFile(
                    stem=path.stem,
                    front_matter_id=fields.get("id") or None,
                    title=fields.get("title") or None,
                )
            )
    return listing


def build_navigation(
    listing: DirectoryListing,
    prefix: str = "",
    *,
    label: Optional[str] = None,
) -> NavigationNode:
    """Return the category node for ``listing``.

    Landing pages (``index``/``overview``) come first, labelled "Overview",
    then remaining files by file name, then subdirectories by name. Empty
    subdirectories are left out.
    """

    landing = sorted(
        (doc for doc in listing.files if doc.stem in LANDING_STEMS),
        key=lambda doc: LANDING_STEMS.index(doc.stem),
    )
    regular = sorted(
        (doc for doc in listing.files if doc.stem not in LANDING_STEMS),
        key=lambda doc: doc.stem,
    )
    children: List[NavigationNode] = [
        NavigationNode(type="doc", id=_doc_id(doc, prefix), label=LANDING_LABEL) for doc in landing
    ]
    children.extend(
        NavigationNode(
            type="doc",
            id=_doc_id(doc, prefix),
            label=doc.title or title_from_slug(doc.stem),
        )
        for doc in regular
    )
    for subdir in sorted(listing.subdirs, key=lambda item: item.name):
        sub_prefix = f"{prefix}/{subdir.name}" if prefix else subdir.name
        node = build_navigation(subdir, sub_prefix)
        if node.children:
            children.append(node)

    return NavigationNode(
        type="category",
        label=label or _category_label(listing),
        children=children,
    )


def format_sidebar(node: NavigationNode, style: str = "json") -> str:
    """Serialise a category's items as ``sidebar.json`` or ``sidebar.js`` text."""

    items = json.dumps([child.to_dict() for child in node.children], indent=2)
    if style == "js":
        return f"module.exports = {items};\n"
    if style == "json":
        return items + "\n"
    raise ValueError(f"Unknown sidebar style: {style}")


def sidebar_filename(style: str) -> str:
    return "sidebar.js" if style == "js" else "sidebar.json"


def _doc_id(doc: DocFile, prefix: str) -> str:
    local = doc.front_matter_id or doc.stem
    return f"{prefix}/{local}" if prefix else local


def _category_label(listing: DirectoryListing) -> str:
    for doc in listing.files:
        if doc.stem == "index" and doc.title:
            return doc.title
    return title_from_slug(listing.name)


__all__ = [
    "DirectoryListing",
    "DocFile",
    "build_navigation",
    "format_sidebar",
    "read_listing",
    "sidebar_filename",
]
