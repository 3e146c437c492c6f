"""Wiki-link parsing, resolution and rewriting."""

import html
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from para_publisher.core.models import LinkRewriteError, ResolvedLink, WikiLink
from para_publisher.transforms.markdown import heading_id, markdown_to_html

# Pattern for wikilinks: [[target]] or [[target|display]]
WIKILINK_PATTERN = re.compile(r'\[\[([^\[\]|]+)(?:\|([^\[\]|]+))?\]\]')

_SEPARATORS = re.compile(r'[-_\s]+')

# Lookup key priorities, lower wins on collision
TITLE_PRIORITY = 0
STEM_PRIORITY = 1
PATH_PRIORITY = 2


def normalize_key(text: str) -> str:
    """Normalize a title, filename or link target for lookup.

    Case-folds, turns hyphens and underscores into spaces and collapses
    runs of whitespace, so ``My_Note``, ``my-note`` and ``My  Note`` all
    map to ``my note``.
    """
    return _SEPARATORS.sub(' ', text.casefold()).strip()


def parse_wiki_links(content: str) -> List[WikiLink]:
    """Find every wiki-link in content, in order of appearance."""
    links = []
    for match in WIKILINK_PATTERN.finditer(content):
        target = match.group(1).strip()
        display = match.group(2)
        if display is not None:
            display = display.strip() or None
        links.append(WikiLink(
            full_match=match.group(0),
            target=target,
            display=display,
            start=match.start(),
            end=match.end(),
        ))
    return links


@dataclass
class DocumentLookup:
    """Index mapping normalized keys to document output paths.

    Every document is reachable by its title, its filename stem and its
    relative path without extension. Title keys take precedence over stem
    keys, which take precedence over path keys. Between two documents
    claiming the same key at the same priority, the smaller output path
    wins, so the table does not depend on the order documents arrive in.
    """

    entries: Dict[str, Path] = field(default_factory=dict)

    @classmethod
    def from_documents(cls, documents: Iterable[Tuple[Path, str]]) -> "DocumentLookup":
        """Build a lookup from (output_path, title) pairs."""
        ranked: Dict[str, Tuple[int, str, Path]] = {}

        for output_path, title in documents:
            output_path = Path(output_path)
            path_key = output_path.with_suffix('').as_posix()
            candidates = (
                (TITLE_PRIORITY, title),
                (STEM_PRIORITY, output_path.stem),
                (PATH_PRIORITY, path_key),
            )
            for priority, raw_key in candidates:
                key = normalize_key(raw_key)
                if not key:
                    continue
                rank = (priority, output_path.as_posix(), output_path)
                current = ranked.get(key)
                if current is None or rank[:2] < current[:2]:
                    ranked[key] = rank

        return cls({key: rank[2] for key, rank in ranked.items()})

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "DocumentLookup":
        """Build a lookup from an already prepared key->path mapping."""
        return cls({normalize_key(k): Path(v) for k, v in data.items()})

    def get(self, target: str) -> Optional[Path]:
        """Get the output path for a link target, or None."""
        return self.entries.get(normalize_key(target))

    def __contains__(self, key: str) -> bool:
        return normalize_key(key) in self.entries

    def __len__(self) -> int:
        return len(self.entries)


def resolve_wiki_links(links: List[WikiLink], lookup: DocumentLookup) -> List[ResolvedLink]:
    """Resolve each link's page against the lookup.

    Unresolvable targets are returned as broken links, not errors.
    """
    return [ResolvedLink(wiki_link=link, resolved_path=lookup.get(link.page)) for link in links]


def get_broken_links(resolved: List[ResolvedLink]) -> List[ResolvedLink]:
    return [link for link in resolved if link.is_broken]


def _text_parts(path: PurePath) -> Tuple[str, ...]:
    parts = tuple(p for p in path.parts if p not in ('', '.'))
    for part in parts:
        try:
            part.encode('utf-8')
        except UnicodeEncodeError as e:
            raise LinkRewriteError(f"Path is not valid UTF-8 text: {path}") from e
    return parts


def relative_href(current_path: PurePath, target_path: PurePath) -> str:
    """Compute the href from one output page to another.

    The common directory prefix is stripped, then one ``..`` is emitted
    per remaining directory of the current page, followed by the
    remaining components of the target.

    Raises:
        LinkRewriteError: If either path cannot be represented as text
    """
    from_dirs = _text_parts(PurePath(current_path).parent)
    to_parts = _text_parts(PurePath(target_path))
    to_dirs = to_parts[:-1]

    common = 0
    for a, b in zip(from_dirs, to_dirs):
        if a != b:
            break
        common += 1

    segments = ['..'] * (len(from_dirs) - common) + list(to_parts[common:])
    return '/'.join(segments)


def render_link(resolved: ResolvedLink, current_path: PurePath) -> str:
    """Render one resolved link as an HTML anchor or broken-link span.

    A ``[[Page#Section]]`` link gets a ``#heading_id(Section)`` fragment,
    which only lands on a heading when the target page was rendered with
    heading ids (``MarkdownRenderer(heading_ids=True)``, the build default).
    """
    link = resolved.wiki_link
    text = html.escape(link.display or link.target)

    if resolved.is_broken:
        title = html.escape(link.target, quote=True)
        return f'<span class="wiki-link broken" title="Link target not found: {title}">{text}</span>'

    href = relative_href(current_path, resolved.resolved_path)
    if link.section:
        href = f"{href}#{heading_id(link.section)}"
    return f'<a href="{html.escape(href, quote=True)}" class="wiki-link">{text}</a>'


def replace_wiki_links_with_html(
    content: str,
    resolved_links: List[ResolvedLink],
    current_path: PurePath,
) -> str:
    """Replace each link's literal span with its HTML rendering.

    Spans are replaced from the highest start offset down, so a
    replacement never shifts the offsets of spans still to be replaced.

    Raises:
        LinkRewriteError: If a link href cannot be represented as text
    """
    result = content
    for resolved in sorted(resolved_links, key=lambda r: r.wiki_link.start, reverse=True):
        link = resolved.wiki_link
        replacement = render_link(resolved, current_path)
        result = result[:link.start] + replacement + result[link.end:]
    return result


def markdown_to_html_with_wiki_links(
    content: str,
    current_path: PurePath,
    lookup: DocumentLookup,
    renderer: Optional[Callable[[str], str]] = None,
) -> Tuple[str, List[ResolvedLink]]:
    """Resolve wiki-links in raw markdown, then render it.

    Links are rewritten to HTML before markdown rendering so the renderer
    sees them as ordinary inline HTML.

    Returns:
        Tuple of (html, resolved links in order of appearance)
    """
    resolved = resolve_wiki_links(parse_wiki_links(content), lookup)
    rewritten = replace_wiki_links_with_html(content, resolved, current_path)
    render = renderer or markdown_to_html
    return render(rewritten), resolved
