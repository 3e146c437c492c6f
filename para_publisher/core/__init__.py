"""Core components for PARA Publisher."""

from para_publisher.core.models import BuildResult, BuildStage, Document, DocumentError, DocumentInfo, DocumentMetadata
from para_publisher.core.discovery import ContentDiscovery, traverse_directory
from para_publisher.core.links import DocumentLookup
from para_publisher.core.processor import DocumentProcessor
from para_publisher.core.pipeline import BuildCounters, SiteBuilder, generate_site

__all__ = [
    "BuildResult",
    "BuildStage",
    "Document",
    "DocumentError",
    "DocumentInfo",
    "DocumentMetadata",
    "ContentDiscovery",
    "traverse_directory",
    "DocumentLookup",
    "DocumentProcessor",
    "BuildCounters",
    "SiteBuilder",
    "generate_site",
]
