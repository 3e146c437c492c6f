"""Data models for PARA Publisher."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


CATEGORIES = ("projects", "areas", "resources", "archives")
ROOT_CATEGORY = "root"


class ParaPublisherError(Exception):
    """Base class for all PARA Publisher errors."""


class DirectoryNotFoundError(ParaPublisherError):
    """Raised when the input directory does not exist."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Directory not found: {path}")


class InvalidPathError(ParaPublisherError):
    """Raised when an input or output path cannot be used."""


class ParseError(ParaPublisherError):
    """Raised when a single document cannot be parsed."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.message = message
        self.path = path
        if path is not None:
            super().__init__(f"{path}: {message}")
        else:
            super().__init__(message)


class LinkRewriteError(ParseError):
    """Raised when a wiki-link href cannot be represented as text."""


class BuildError(ParaPublisherError):
    """Raised when a build cannot produce any documents."""


class BuildStage(str, Enum):
    """Stages of a site build, in execution order."""

    DISCOVER = "discover"
    PARSE_ALL = "parse_all"
    BUILD_LOOKUP = "build_lookup"
    RESOLVE_LINKS_ALL = "resolve_links_all"
    INDEX_BACKLINKS = "index_backlinks"
    DONE = "done"
    FAILED = "failed"


@dataclass
class DocumentInfo:
    """A markdown file found during traversal, before it is read."""
    path: Path
    relative_path: Path
    stem: str
    category: str

    def read_raw(self) -> str:
        """Read file contents on demand."""
        return self.path.read_text(encoding='utf-8')


@dataclass
class DocumentMetadata:
    """Frontmatter fields of a document.

    Keys without a dedicated field are kept in ``custom`` so arbitrary
    frontmatter survives a parse unchanged.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    date: Optional[datetime] = None
    status: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    custom: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_dates(self) -> bool:
        return any(d is not None for d in (self.date, self.modified, self.created))


@dataclass
class WikiLink:
    """A ``[[target]]`` or ``[[target|display]]`` occurrence in a body.

    ``start`` and ``end`` form the half-open span of ``full_match`` in the
    body the link was parsed from.
    """
    full_match: str
    target: str
    display: Optional[str]
    start: int
    end: int

    @property
    def page(self) -> str:
        """Target without a trailing ``#section``."""
        return self.target.split('#', 1)[0].strip()

    @property
    def section(self) -> Optional[str]:
        if '#' not in self.target:
            return None
        section = self.target.split('#', 1)[1].strip()
        return section or None


@dataclass(frozen=True)
class ResolvedLink:
    """A wiki-link paired with the output path it points at, if any."""
    wiki_link: WikiLink
    resolved_path: Optional[Path] = None

    @property
    def is_broken(self) -> bool:
        return self.resolved_path is None

    @property
    def target(self) -> str:
        return self.wiki_link.target


@dataclass(frozen=True)
class BacklinkReference:
    """An inbound link, as seen from the document being linked to."""
    source_path: Path
    source_title: str
    link_context: Optional[str] = None


@dataclass
class Document:
    """A parsed markdown document moving through the build.

    ``raw_content`` is the body after frontmatter and is never rewritten;
    link rewriting only replaces ``html_content``.
    """
    source_path: Path
    relative_path: Path
    output_path: Path
    category: str
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    raw_content: str = ""
    html_content: str = ""
    wiki_links: List[ResolvedLink] = field(default_factory=list)
    backlinks: List[BacklinkReference] = field(default_factory=list)

    @classmethod
    def new(cls, source_path: Path, relative_path: Path, category: str) -> "Document":
        """Create a document whose output path mirrors the relative path as HTML."""
        relative_path = Path(relative_path)
        return cls(
            source_path=Path(source_path),
            relative_path=relative_path,
            output_path=relative_path.with_suffix('.html'),
            category=category,
        )

    @property
    def title(self) -> str:
        """Title from frontmatter, falling back to the filename stem."""
        if self.metadata.title:
            return self.metadata.title
        return self.relative_path.stem or "Untitled"

    @property
    def effective_category(self) -> str:
        return self.metadata.category or self.category

    @property
    def is_draft(self) -> bool:
        return self.metadata.status == "draft"

    @property
    def date(self) -> Optional[datetime]:
        """Most relevant date: publish date, then modified, then created."""
        return self.metadata.date or self.metadata.modified or self.metadata.created


@dataclass
class LinkStatistics:
    """Link counts derived from a finished document set."""
    total_documents: int = 0
    total_links: int = 0
    valid_links: int = 0
    broken_links: int = 0
    documents_with_backlinks: int = 0
    orphaned_documents: List[Path] = field(default_factory=list)


@dataclass
class ParaStatistics:
    """Number of discovered documents per PARA category."""
    projects_count: int = 0
    areas_count: int = 0
    resources_count: int = 0
    archives_count: int = 0
    root_count: int = 0

    @property
    def total_count(self) -> int:
        return (
            self.projects_count
            + self.areas_count
            + self.resources_count
            + self.archives_count
            + self.root_count
        )

    @classmethod
    def from_documents(cls, infos: List[DocumentInfo]) -> "ParaStatistics":
        stats = cls()
        for info in infos:
            attr = f"{info.category}_count"
            setattr(stats, attr, getattr(stats, attr) + 1)
        return stats

    def as_dict(self) -> Dict[str, int]:
        return {
            "projects": self.projects_count,
            "areas": self.areas_count,
            "resources": self.resources_count,
            "archives": self.archives_count,
            ROOT_CATEGORY: self.root_count,
        }


@dataclass
class DocumentError:
    """An error that made the build drop a document.

    ``stage`` is the build stage the document was dropped in.
    """
    path: Path
    error: str
    stage: BuildStage = BuildStage.PARSE_ALL
    title: Optional[str] = None


@dataclass
class BuildResult:
    """Result of a build, handed to the rendering layer."""
    documents: List[Document] = field(default_factory=list)
    link_statistics: LinkStatistics = field(default_factory=LinkStatistics)
    para_statistics: ParaStatistics = field(default_factory=ParaStatistics)
    failures: List[DocumentError] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    stage: BuildStage = BuildStage.DONE

    @property
    def parse_errors(self) -> int:
        return sum(1 for f in self.failures if f.stage == BuildStage.PARSE_ALL)
