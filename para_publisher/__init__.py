"""
PARA Publisher - Turn a PARA-filed markdown tree into a linked document set

Discovers markdown documents filed under Projects, Areas, Resources and
Archives, and prepares them for a static site renderer with support for:
- YAML frontmatter with passthrough of custom fields
- Wikilink resolution by title, filename or path
- Backlink indexing and orphan detection
- Parallel parsing and link resolution
"""

from para_publisher.core.models import (
    BacklinkReference,
    BuildError,
    BuildResult,
    BuildStage,
    DirectoryNotFoundError,
    Document,
    DocumentError,
    DocumentInfo,
    DocumentMetadata,
    InvalidPathError,
    LinkStatistics,
    ParaPublisherError,
    ParaStatistics,
    ParseError,
    ResolvedLink,
    WikiLink,
)
from para_publisher.core.discovery import ContentDiscovery
from para_publisher.core.links import DocumentLookup
from para_publisher.core.processor import DocumentProcessor
from para_publisher.core.pipeline import SiteBuilder, generate_site
from para_publisher.config import BuildConfig, load_config
from para_publisher.transforms.markdown import MarkdownRenderer

__version__ = "0.1.0"

__all__ = [
    "BacklinkReference",
    "BuildError",
    "BuildResult",
    "BuildStage",
    "DirectoryNotFoundError",
    "Document",
    "DocumentError",
    "DocumentInfo",
    "DocumentMetadata",
    "InvalidPathError",
    "LinkStatistics",
    "ParaPublisherError",
    "ParaStatistics",
    "ParseError",
    "ResolvedLink",
    "WikiLink",
    "ContentDiscovery",
    "DocumentLookup",
    "DocumentProcessor",
    "SiteBuilder",
    "generate_site",
    "BuildConfig",
    "load_config",
    "MarkdownRenderer",
]
