"""Backlink indexing and link statistics."""

from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional

from para_publisher.core.models import BacklinkReference, Document, LinkStatistics

CONTEXT_CHARS = 50

INDEX_PAGE_NAMES = frozenset({'index.md', '_index.md', 'readme.md'})

BacklinkIndex = Dict[Path, List[BacklinkReference]]


def build_backlink_index(documents: List[Document]) -> BacklinkIndex:
    """Invert resolved outgoing links into inbound references.

    Broken links are skipped.

    Returns:
        Dict mapping a target output path to the references pointing at it
    """
    index: BacklinkIndex = defaultdict(list)

    for doc in documents:
        title = doc.title
        for link in doc.wiki_links:
            if link.is_broken:
                continue
            index[link.resolved_path].append(BacklinkReference(
                source_path=doc.relative_path,
                source_title=title,
                link_context=extract_link_context(doc.raw_content, link.wiki_link.full_match),
            ))

    return dict(index)


def apply_backlinks_to_documents(documents: List[Document], index: BacklinkIndex) -> None:
    """Attach backlinks from the index to each document, sorted by source title."""
    for doc in documents:
        backlinks = index.get(doc.output_path, [])
        doc.backlinks = sorted(
            backlinks,
            key=lambda b: (b.source_title, b.source_path.as_posix()),
        )


def extract_link_context(content: str, link_text: str, radius: int = CONTEXT_CHARS) -> Optional[str]:
    """Extract the text around the first occurrence of link_text.

    Takes ``radius`` characters on either side, joins lines with spaces
    and drops words cut in half at a truncated edge. Truncated sides are
    marked with ``...``.

    Returns:
        The context, or None if link_text does not occur in content
    """
    pos = content.find(link_text)
    if pos == -1:
        return None

    start = max(0, pos - radius)
    end = min(len(content), pos + len(link_text) + radius)

    before = content[start:pos]
    after = content[pos + len(link_text):end]

    # Cut mid-word on either side: drop the partial word
    if start > 0 and before and not content[start - 1].isspace() and not before[0].isspace():
        parts = before.split(None, 1)
        before = parts[1] if len(parts) > 1 else ''
    if end < len(content) and after and not content[end].isspace() and not after[-1].isspace():
        parts = after.rsplit(None, 1)
        after = parts[0] if len(parts) > 1 else ''

    context = ' '.join((before + link_text + after).split())

    result = ''
    if start > 0:
        result += '...'
    result += context
    if end < len(content):
        result += '...'
    return result


def is_index_page(path: Path) -> bool:
    """Whether a document is an index or landing page."""
    return Path(path).name.lower() in INDEX_PAGE_NAMES


def calculate_link_statistics(documents: List[Document]) -> LinkStatistics:
    """Calculate link statistics from a finished document set."""
    stats = LinkStatistics(total_documents=len(documents))

    for doc in documents:
        stats.total_links += len(doc.wiki_links)
        broken = sum(1 for link in doc.wiki_links if link.is_broken)
        stats.broken_links += broken
        stats.valid_links += len(doc.wiki_links) - broken

        if doc.backlinks:
            stats.documents_with_backlinks += 1
        elif not is_index_page(doc.relative_path):
            stats.orphaned_documents.append(doc.relative_path)

    return stats
