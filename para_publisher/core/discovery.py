"""Content discovery: finding markdown files and their PARA categories."""

import logging
from pathlib import Path
from typing import Iterator, List, Optional

import titlecase as tc

from para_publisher.core.models import (
    CATEGORIES,
    ROOT_CATEGORY,
    DirectoryNotFoundError,
    DocumentInfo,
    InvalidPathError,
    ParaStatistics,
)

log = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ('.md', '.markdown')


def detect_para_category(relative_path: Path) -> str:
    """Detect the PARA category from a path relative to the input root.

    Only the first directory component counts. Files directly in the root,
    or under any other directory, are in the root category.
    """
    parts = Path(relative_path).parts
    if len(parts) < 2:
        return ROOT_CATEGORY

    first = parts[0].lower()
    if first in CATEGORIES:
        return first
    return ROOT_CATEGORY


def category_label(category: str) -> str:
    """Display label for a category, e.g. ``projects`` -> ``Projects``."""
    return tc.titlecase(category.replace('_', ' ').replace('-', ' '))


def is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_EXTENSIONS


def _walk(directory: Path) -> Iterator[Path]:
    """Yield markdown files depth-first, skipping hidden directories.

    Symbolic links are not followed. Errors listing a directory propagate
    to the caller.
    """
    for entry in sorted(directory.iterdir()):
        if entry.is_symlink():
            continue
        if entry.is_dir():
            if entry.name.startswith('.'):
                continue
            yield from _walk(entry)
        elif entry.is_file() and is_markdown_file(entry):
            yield entry


def traverse_directory(root: Path) -> List[DocumentInfo]:
    """Recursively collect markdown files under root.

    Args:
        root: Input directory

    Returns:
        DocumentInfo for every markdown file, in sorted depth-first order

    Raises:
        OSError: If any directory cannot be listed
    """
    root = Path(root).resolve()
    infos = []
    for path in _walk(root):
        relative_path = path.relative_to(root)
        infos.append(DocumentInfo(
            path=path,
            relative_path=relative_path,
            stem=path.stem,
            category=detect_para_category(relative_path),
        ))
    return infos


class ContentDiscovery:
    """Discovers PARA-filed markdown documents under an input directory."""

    def __init__(self, input_path: Path):
        """Initialize ContentDiscovery.

        Args:
            input_path: Path to the input directory root
        """
        self.input_path = Path(input_path)

    def validate(self) -> None:
        """Check that the input path is an existing directory.

        Raises:
            DirectoryNotFoundError: If the path does not exist
            InvalidPathError: If the path is not a directory
        """
        if not self.input_path.exists():
            raise DirectoryNotFoundError(self.input_path)
        if not self.input_path.is_dir():
            raise InvalidPathError(f"Input path '{self.input_path}' is not a directory")

    def discover_all(self) -> List[DocumentInfo]:
        """Find all markdown documents under the input directory.

        Returns:
            List of DocumentInfo, one per markdown file
        """
        self.validate()
        infos = traverse_directory(self.input_path)
        log.debug("Discovered %d documents in %s", len(infos), self.input_path)
        return infos

    def get_document(self, name_or_path: str) -> Optional[DocumentInfo]:
        """Get a single document by relative path, filename or stem.

        Args:
            name_or_path: Path relative to the input root, filename
                          (with or without extension), or absolute path

        Returns:
            DocumentInfo if found, None otherwise
        """
        path = Path(name_or_path)
        if path.suffix and not is_markdown_file(path):
            return None

        infos = self.discover_all()
        root = self.input_path.resolve()

        if path.is_absolute():
            try:
                relative = path.resolve().relative_to(root)
            except ValueError:
                return None
            return next((i for i in infos if i.relative_path == relative), None)

        for info in infos:
            if info.relative_path == path:
                return info

        stem = path.stem.lower()
        for info in infos:
            if info.stem.lower() == stem:
                return info

        return None

    def has_para_structure(self) -> bool:
        """Check whether at least one PARA category directory exists."""
        if not self.input_path.is_dir():
            return False
        return any(
            entry.is_dir() and entry.name.lower() in CATEGORIES
            for entry in self.input_path.iterdir()
        )

    def statistics(self, infos: Optional[List[DocumentInfo]] = None) -> ParaStatistics:
        """Count documents per category."""
        if infos is None:
            infos = self.discover_all()
        return ParaStatistics.from_documents(infos)
