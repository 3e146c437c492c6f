"""Per-document processing: parsing (pass 1) and link resolution (pass 2)."""

import datetime
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from para_publisher.core.links import DocumentLookup, get_broken_links, markdown_to_html_with_wiki_links
from para_publisher.core.models import (
    BuildStage,
    Document,
    DocumentError,
    DocumentInfo,
    ParseError,
)
from para_publisher.transforms.frontmatter import parse_frontmatter
from para_publisher.transforms.markdown import MarkdownRenderer

log = logging.getLogger(__name__)

Renderer = Callable[[str], str]


def parse_document(source_path: Path, relative_path: Path, category: str,
                   renderer: Optional[Renderer] = None) -> Document:
    """Read a markdown file and build a Document from it.

    When the frontmatter carries no date at all, the file's modification
    time becomes the document's ``modified`` date.

    Raises:
        OSError: If the file cannot be read
        ParseError: If the frontmatter is invalid
    """
    source_path = Path(source_path)
    content = source_path.read_text(encoding='utf-8')

    metadata, raw_content = parse_frontmatter(content)

    if not metadata.has_dates:
        mtime = source_path.stat().st_mtime
        metadata.modified = datetime.datetime.fromtimestamp(mtime, tz=datetime.timezone.utc)

    render = renderer or MarkdownRenderer()

    doc = Document.new(source_path, relative_path, category)
    doc.metadata = metadata
    doc.raw_content = raw_content
    doc.html_content = render(raw_content)
    return doc


class DocumentProcessor:
    """Processes single documents for the build pipeline.

    Each method handles exactly one document and never raises for
    document-level problems: failures come back as DocumentError so a
    parallel map over many documents keeps going.
    """

    def __init__(self, renderer: Optional[Renderer] = None):
        """Initialize DocumentProcessor.

        Args:
            renderer: Callable turning markdown into HTML
                      (default: MarkdownRenderer())
        """
        self.renderer = renderer or MarkdownRenderer()

    def parse(self, info: DocumentInfo) -> Union[Document, DocumentError]:
        """Parse one discovered file (pass 1)."""
        try:
            return parse_document(info.path, info.relative_path, info.category, self.renderer)
        except (ParseError, OSError, UnicodeDecodeError) as e:
            message = e.message if isinstance(e, ParseError) else str(e)
            log.warning("Failed to parse '%s': %s", info.path, message)
            return DocumentError(path=info.path, error=message, stage=BuildStage.PARSE_ALL)

    def resolve_links(self, doc: Document, lookup: DocumentLookup) -> Union[Document, DocumentError]:
        """Resolve wiki-links and re-render the body (pass 2).

        The document's ``raw_content`` is left as parsed.
        """
        try:
            html_content, resolved = markdown_to_html_with_wiki_links(
                doc.raw_content,
                doc.output_path,
                lookup,
                self.renderer,
            )
        except ParseError as e:
            log.warning("Failed to rewrite links in '%s': %s", doc.source_path, e.message)
            return DocumentError(
                path=doc.source_path,
                error=e.message,
                stage=BuildStage.RESOLVE_LINKS_ALL,
                title=doc.title,
            )

        doc.html_content = html_content
        doc.wiki_links = resolved

        for link in get_broken_links(resolved):
            log.debug("Broken link in '%s': [[%s]]", doc.relative_path, link.target)

        return doc
