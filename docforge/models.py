"""Core data models shared across docforge components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class SourceFile:
    """Raw repository file handed to the pipeline by the caller."""

    path: str
    content: bytes

    @property
    def extension(self) -> str:
        name = self.path.rsplit("/", 1)[-1]
        if "." not in name:
            return ""
        return "." + name.rsplit(".", 1)[-1].lower()

    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class SymbolKind(str, Enum):
    """Declaration kinds the structural parser can emit."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    VARIABLE = "variable"

    @property
    def is_container(self) -> bool:
        return self in (SymbolKind.CLASS, SymbolKind.INTERFACE)


@dataclass
class SymbolEntry:
    """Named, line-ranged declaration extracted from a source file."""

    kind: SymbolKind
    name: str
    start_line: int
    end_line: int
    children: List["SymbolEntry"] = field(default_factory=list)
    exported: Optional[str] = None  # "named", "default" or None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("SymbolEntry requires a non-empty name")
        if self.end_line < self.start_line:
            self.end_line = self.start_line
        if self.children and not self.kind.is_container:
            raise ValueError(f"{self.kind.value} entries cannot own children")

    @property
    def label(self) -> str:
        """Kind label with export tagging, e.g. ``exported_function``."""
        if self.exported == "default":
            return f"default_exported_{self.kind.value}"
        if self.exported == "named":
            return f"exported_{self.kind.value}"
        return self.kind.value

    def walk(self) -> List["SymbolEntry"]:
        """Return this entry and all descendants in pre-order."""
        ordered = [self]
        for child in self.children:
            ordered.extend(child.walk())
        return ordered

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "type": self.label,
            "name": self.name,
            "startLine": self.start_line,
            "endLine": self.end_line,
        }
        if self.children:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


@dataclass
class ParsedFile:
    """Symbol outline for one source file. Never constructed with zero entries."""

    path: str
    entries: List[SymbolEntry]
    language: Optional[str] = None

    def symbol_names(self) -> List[str]:
        return [entry.name for top in self.entries for entry in top.walk()]

    def to_dict(self) -> Dict[str, object]:
        return {"path": self.path, "entries": [entry.to_dict() for entry in self.entries]}


FeatureGroups = Dict[str, List[ParsedFile]]


class JobStatus(str, Enum):
    """Lifecycle states for a documentation job."""

    INITIALIZING = "INITIALIZING"
    ANALYZING = "ANALYZING"
    GENERATING = "GENERATING"
    FINALIZING = "FINALIZING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class GenerationJob:
    """Progress record for one end-to-end pipeline run."""

    id: str
    status: JobStatus = JobStatus.INITIALIZING
    progress_percent: int = 0
    current_step: str = "initializing"
    log: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class GeneratedDocument:
    """Validated documentation page ready to be materialized."""

    id: str
    title: str
    sidebar_position: int
    body: str
    source_files: Tuple[str, ...]
    category: str = "Other"
    # "service", "simplified", "template" or "cache"; provenance only.
    origin: str = field(default="service", compare=False)


@dataclass
class NavigationNode:
    """Sidebar node mirroring the on-disk documentation tree."""

    type: str  # "doc" or "category"
    label: str
    id: Optional[str] = None
    children: List["NavigationNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        if self.type == "doc":
            return {"type": "doc", "id": self.id, "label": self.label}
        return {
            "type": "category",
            "label": self.label,
            "items": [child.to_dict() for child in self.children],
        }
