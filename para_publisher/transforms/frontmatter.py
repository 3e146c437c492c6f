"""YAML frontmatter parsing for PARA Publisher.

A document may start with a metadata block delimited by ``---`` lines:

    ---
    title: My Note
    tags: [para, notes]
    ---
    # Body

Fields with a dedicated slot in DocumentMetadata are typed; anything else
is passed through untouched in ``DocumentMetadata.custom``.
"""

import datetime
import re
from typing import Any, Dict, Optional, Tuple

import yaml

from para_publisher.core.models import DocumentMetadata, ParseError

DELIMITER = '---'

DATE_FIELDS = ('created', 'modified', 'date')
TEXT_FIELDS = ('title', 'description', 'status', 'category', 'author')

TAB_MESSAGE = "Tab characters are not allowed for indentation"

_TAB_INDENT = re.compile(r'^ *\t', re.MULTILINE)


def _split(content: str) -> Optional[Tuple[str, str]]:
    """Split content into (yaml_block, body).

    Returns None when the content has no frontmatter.

    Raises:
        ParseError: If the opening delimiter is never closed
    """
    if content.startswith('---\n'):
        rest = content[4:]
    elif content.startswith('---\r\n'):
        rest = content[5:]
    else:
        return None

    # Empty block: closing delimiter right after the opening one
    for closing in ('---\n', '---\r\n'):
        if rest.startswith(closing):
            return '', rest[len(closing):]
    if rest in ('---', '---\r'):
        return '', ''

    for closing in ('\n---\n', '\r\n---\r\n'):
        end = rest.find(closing)
        if end != -1:
            return rest[:end], rest[end + len(closing):]

    # Closing delimiter as the last line of the file
    for closing in ('\n---', '\r\n---'):
        if rest.endswith(closing):
            return rest[:-len(closing)], ''

    raise ParseError("Frontmatter starting delimiter found but no closing delimiter")


def extract_frontmatter(content: str) -> Optional[str]:
    """Return the raw YAML block, or None if there is none or it is unclosed."""
    try:
        parts = _split(content)
    except ParseError:
        return None
    return parts[0] if parts else None


def parse_frontmatter(content: str) -> Tuple[DocumentMetadata, str]:
    """Parse frontmatter and return (metadata, body).

    Content without frontmatter is returned unchanged as the body.

    Args:
        content: Full file text

    Returns:
        Tuple of (DocumentMetadata, body without the frontmatter block)

    Raises:
        ParseError: If the block is unclosed or its YAML is invalid
    """
    parts = _split(content)
    if parts is None:
        return DocumentMetadata(), content

    yaml_block, body = parts
    data = _load_yaml(yaml_block)
    return metadata_from_dict(data), body


def _is_tab_error(yaml_block: str, error: yaml.YAMLError) -> bool:
    """Whether a YAML error was caused by a tab-indented line."""
    if "'\\t'" in (getattr(error, 'problem', None) or ''):
        return True
    mark = getattr(error, 'problem_mark', None)
    if mark is None:
        return False
    lines = yaml_block.splitlines()
    return mark.line < len(lines) and bool(_TAB_INDENT.match(lines[mark.line]))


def _load_yaml(yaml_block: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(yaml_block)
    except yaml.YAMLError as e:
        if _is_tab_error(yaml_block, e):
            raise ParseError(f"Failed to parse YAML frontmatter: {TAB_MESSAGE}: {e}") from e
        raise ParseError(f"Failed to parse YAML frontmatter: {e}") from e
    except ValueError as e:
        # Well-formed but impossible values, e.g. a timestamp with month 13
        raise ParseError(f"Failed to parse YAML frontmatter: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(
            f"Failed to parse YAML frontmatter: expected a mapping, got {type(data).__name__}"
        )
    return data


def metadata_from_dict(data: Dict[str, Any]) -> DocumentMetadata:
    """Build DocumentMetadata from a loaded frontmatter mapping.

    Raises:
        ParseError: If a date field holds something that is not a date
    """
    metadata = DocumentMetadata()

    for key, value in data.items():
        key = str(key)
        if key in TEXT_FIELDS:
            setattr(metadata, key, None if value is None else str(value))
        elif key in DATE_FIELDS:
            setattr(metadata, key, _parse_date(key, value))
        elif key == 'tags':
            metadata.tags = _extract_tags(value)
        else:
            metadata.custom[key] = value

    return metadata


def _extract_tags(tag_data: Any) -> list:
    """Extract tags from either a list or a single string."""
    if tag_data is None:
        return []
    if isinstance(tag_data, list):
        return [str(tag) for tag in tag_data if tag is not None]
    return [str(tag_data)]


def _parse_date(key: str, value: Any) -> Optional[datetime.datetime]:
    """Convert a frontmatter date value to an aware datetime.

    Naive values are taken to be UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, datetime.date):
        parsed = datetime.datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.datetime.fromisoformat(text)
        except ValueError as e:
            raise ParseError(
                f"Failed to parse YAML frontmatter: invalid date for '{key}': {value!r}"
            ) from e
    else:
        raise ParseError(
            f"Failed to parse YAML frontmatter: invalid date for '{key}': {value!r}"
        )

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed
