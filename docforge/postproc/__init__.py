"""Post-processing of generated markdown and the documentation tree."""

from .frontmatter import (
    render_front_matter,
    sanitize_front_matter_value,
    sanitize_id,
    split_front_matter,
    title_from_slug,
)
from .lint import MarkdownLinter
from .navigation import DirectoryListing, DocFile, build_navigation, format_sidebar, read_listing

__all__ = [
    "DirectoryListing",
    "DocFile",
    "MarkdownLinter",
    "build_navigation",
    "format_sidebar",
    "read_listing",
    "render_front_matter",
    "sanitize_front_matter_value",
    "sanitize_id",
    "split_front_matter",
    "title_from_slug",
]
