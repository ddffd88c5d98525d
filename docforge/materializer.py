"""Writes generated documents into a navigable documentation tree."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .logging import get_logger
from .models import GeneratedDocument, NavigationNode
from .postproc.frontmatter import render_front_matter, sanitize_id
from .postproc.lint import MarkdownLinter
from .postproc.navigation import (
    LANDING_STEMS,
    build_navigation,
    format_sidebar,
    read_listing,
    sidebar_filename,
)
from .stores.job_store import JobStore

OVERVIEW_ID = "overview"
_DEFAULT_CATEGORY_SLUG = "other"


class WriteError(RuntimeError):
    """Raised when one document cannot be written to disk."""

    def __init__(self, path: Path, exc: OSError) -> None:
        super().__init__(f"Unable to write {path}: {exc}")
        self.path = path


class Materializer:
    """Owns every filesystem write of a documentation run."""

    def __init__(
        self,
        *,
        linter: MarkdownLinter | None = None,
        sidebar_format: str = "json",
        jobs: JobStore | None = None,
    ) -> None:
        self.linter = linter or MarkdownLinter()
        self.sidebar_format = sidebar_format
        self.jobs = jobs
        self.logger = get_logger("materializer")

    def materialize(
        self,
        documents: Sequence[GeneratedDocument],
        destination: Path,
        category_of: Callable[[GeneratedDocument], str] | None = None,
        *,
        job_id: Optional[str] = None,
        title: str = "Overview",
    ) -> NavigationNode:
        """Write ``documents`` below ``destination`` and rebuild its sidebars.

        A failed document write is logged and skipped; the overview, category
        indexes and sidebars are still produced for everything else.
        """

        root = Path(destination)
        root.mkdir(parents=True, exist_ok=True)
        categorise = category_of or (lambda document: document.category)

        written: List[Tuple[GeneratedDocument, str, str]] = []
        category_titles: Dict[str, str] = {}
        taken: Dict[str, Set[str]] = {}
        for document in documents:
            category = categorise(document) or "Other"
            slug = sanitize_id(category) or _DEFAULT_CATEGORY_SLUG
            doc_id = _unique_id(_file_id(document.id), taken.setdefault(slug, set()))
            try:
                self._write_document(root / slug, doc_id, document)
            except WriteError as exc:
                self.logger.warning("%s", exc)
                self._note(job_id, f"Failed to write {document.title}: {exc}")
                continue
            category_titles.setdefault(slug, category)
            written.append((document, slug, doc_id))
            self._note(job_id, f"Wrote {slug}/{doc_id}.md")

        for slug, category in category_titles.items():
            self._ensure_category_index(root / slug, slug, category)

        self._write_text(
            root / f"{OVERVIEW_ID}.md", self._overview(title, written, category_titles)
        )

        listing = read_listing(root)
        navigation = build_navigation(listing, label=title)
        self._write_text(
            root / sidebar_filename(self.sidebar_format),
            format_sidebar(navigation, self.sidebar_format),
        )
        for subdir in listing.subdirs:
            node = build_navigation(subdir, subdir.name)
            self._write_text(
                root / subdir.name / sidebar_filename(self.sidebar_format),
                format_sidebar(node, self.sidebar_format),
            )
        return navigation

    def _write_document(self, directory: Path, doc_id: str, document: GeneratedDocument) -> None:
        path = directory / f"{doc_id}.md"
        content = (
            render_front_matter(doc_id, document.title, document.sidebar_position)
            + "\n"
            + self.linter.lint(document.body)
        )
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise WriteError(path, exc) from exc

    def _ensure_category_index(self, directory: Path, slug: str, category: str) -> None:
        index_path = directory / "index.md"
        if index_path.exists():
            return
        body = (
            f"# {category}\n\nThis section contains documentation related to {category}.\n"
        )
        self._write_text(index_path, render_front_matter(f"{slug}-index", category, 1) + "\n" + body)

    def _overview(
        self,
        title: str,
        written: Sequence[Tuple[GeneratedDocument, str, str]],
        category_titles: Dict[str, str],
    ) -> str:
        lines = [f"# {title}", ""]
        if not written:
            lines.append("No documentation was generated for this repository.")
        else:
            lines.append("Documentation generated for each feature of this repository.")
        current: Optional[str] = None
        for document, slug, doc_id in sorted(
            written, key=lambda item: (item[1], item[0].sidebar_position, item[2])
        ):
            if slug != current:
                lines.extend(["", f"## {category_titles[slug]}", ""])
                current = slug
            sources = ", ".join(f"`{path}`" for path in document.source_files[:5])
            if len(document.source_files) > 5:
                sources += f" and {len(document.source_files) - 5} more"
            entry = f"- [{document.title}](./{slug}/{doc_id}.md)"
            lines.append(f"{entry} ({sources})" if sources else entry)
        body = "\n".join(lines)
        return render_front_matter(OVERVIEW_ID, title, 1) + "\n" + self.linter.lint(body)

    def _write_text(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            self.logger.warning("Unable to write %s: %s", path, exc)

    def _note(self, job_id: Optional[str], message: str) -> None:
        if self.jobs is not None and job_id is not None:
            self.jobs.append(job_id, message)


def _file_id(doc_id: str) -> str:
    slug = sanitize_id(doc_id) or "document"
    if slug in LANDING_STEMS:
        # Keep generated pages from shadowing the landing pages.
        return f"{slug}-doc"
    return slug


def _unique_id(doc_id: str, taken: Set[str]) -> str:
    candidate = doc_id
    suffix = 2
    while candidate in taken:
        candidate = f"{doc_id}-{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


__all__ = ["Materializer", "OVERVIEW_ID", "WriteError"]
