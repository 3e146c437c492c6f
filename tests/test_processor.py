"""Tests for document parsing and link resolution."""

import datetime
import os
from pathlib import Path

import pytest

from para_publisher.core.links import DocumentLookup
from para_publisher.core.models import BuildStage, Document, DocumentError, DocumentInfo, ParseError
from para_publisher.core.processor import DocumentProcessor, parse_document


def _info(root: Path, relative: str, category: str = "root") -> DocumentInfo:
    path = root / relative
    return DocumentInfo(path=path, relative_path=Path(relative), stem=path.stem, category=category)


class TestParseDocument:
    """Tests for parse_document."""

    def test_complete_document(self, write_doc):
        path = write_doc("test.md", """---
title: Test Document
tags:
  - python
  - testing
created: 2023-01-15T10:00:00Z
---
# Test Document

This is a test document with **markdown**.

- Item 1
- Item 2
""")

        doc = parse_document(path, Path("test.md"), "root")

        assert doc.metadata.title == "Test Document"
        assert doc.metadata.tags == ["python", "testing"]
        assert doc.raw_content.startswith("# Test Document")
        assert "<h1>Test Document</h1>" in doc.html_content
        assert "<strong>markdown</strong>" in doc.html_content
        assert doc.category == "root"
        assert doc.output_path == Path("test.html")
        assert doc.source_path == path

    def test_no_frontmatter(self, write_doc):
        content = "# Simple Document\n\nNo frontmatter here."
        path = write_doc("simple.md", content)

        doc = parse_document(path, Path("simple.md"), "root")

        assert doc.metadata.title is None
        assert doc.title == "simple"
        assert doc.raw_content == content
        assert "<h1>Simple Document</h1>" in doc.html_content

    def test_mtime_fallback_without_dates(self, write_doc):
        path = write_doc("plain.md", "---\ntitle: Plain\n---\nBody")
        os.utime(path, (1700000000, 1700000000))

        doc = parse_document(path, Path("plain.md"), "root")

        assert doc.metadata.modified == datetime.datetime.fromtimestamp(
            1700000000, tz=datetime.timezone.utc
        )
        assert doc.metadata.created is None

    def test_no_mtime_fallback_with_dates(self, write_doc):
        path = write_doc("dated.md", "---\ncreated: 2024-01-01\n---\nBody")

        doc = parse_document(path, Path("dated.md"), "root")

        assert doc.metadata.modified is None
        assert doc.date == datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)

    def test_output_path_keeps_directories(self, write_doc):
        path = write_doc("projects/sub/plan.md", "# Plan")

        doc = parse_document(path, Path("projects/sub/plan.md"), "projects")

        assert doc.output_path == Path("projects/sub/plan.html")

    def test_custom_renderer(self, write_doc):
        path = write_doc("x.md", "body")

        doc = parse_document(path, Path("x.md"), "root", renderer=lambda text: f"<pre>{text}</pre>")

        assert doc.html_content == "<pre>body</pre>"

    def test_unclosed_frontmatter_raises(self, write_doc):
        path = write_doc("unclosed.md", "---\ntitle: Test\nNo closing delimiter\n# Content")

        with pytest.raises(ParseError) as exc_info:
            parse_document(path, Path("unclosed.md"), "root")
        assert "no closing delimiter" in str(exc_info.value)

    def test_tab_indentation_raises(self, write_doc):
        path = write_doc("tabs.md", "---\ntitle: Test\ntags:\n\t- tab-indented\n---\n# Content")

        with pytest.raises(ParseError) as exc_info:
            parse_document(path, Path("tabs.md"), "root")
        assert "Tab characters are not allowed" in str(exc_info.value)


class TestDocumentProcessor:
    """Tests for DocumentProcessor class."""

    def test_parse_success(self, tmp_path, write_doc):
        write_doc("projects/a.md", "---\ntitle: A\n---\nHello")

        result = DocumentProcessor().parse(_info(tmp_path, "projects/a.md", "projects"))

        assert isinstance(result, Document)
        assert result.title == "A"
        assert result.category == "projects"

    def test_parse_failure_is_returned(self, tmp_path, write_doc):
        write_doc("bad.md", "---\ntitle: Test\nNo closing delimiter")

        result = DocumentProcessor().parse(_info(tmp_path, "bad.md"))

        assert isinstance(result, DocumentError)
        assert result.path == tmp_path / "bad.md"
        assert result.stage == BuildStage.PARSE_ALL
        assert "no closing delimiter" in result.error

    def test_parse_unreadable_file(self, tmp_path):
        result = DocumentProcessor().parse(_info(tmp_path, "gone.md"))

        assert isinstance(result, DocumentError)

    def test_parse_invalid_utf8(self, tmp_path):
        (tmp_path / "binary.md").write_bytes(b"\xff\xfe\xfa not text")

        result = DocumentProcessor().parse(_info(tmp_path, "binary.md"))

        assert isinstance(result, DocumentError)

    def test_resolve_links(self, tmp_path, write_doc):
        write_doc("projects/a.md", "---\ntitle: A\n---\nSee [[B Doc]] and [[missing-doc]].")
        processor = DocumentProcessor()
        doc = processor.parse(_info(tmp_path, "projects/a.md", "projects"))
        raw = doc.raw_content
        lookup = DocumentLookup.from_documents([
            (Path("projects/a.html"), "A"),
            (Path("resources/b.html"), "B Doc"),
        ])

        result = processor.resolve_links(doc, lookup)

        assert result is doc
        assert '<a href="../resources/b.html" class="wiki-link">B Doc</a>' in doc.html_content
        assert 'class="wiki-link broken"' in doc.html_content
        assert [l.is_broken for l in doc.wiki_links] == [False, True]
        assert doc.raw_content == raw

    def test_resolve_links_unrepresentable_path(self, tmp_path, write_doc):
        write_doc("a.md", "[[Bad]]")
        processor = DocumentProcessor()
        doc = processor.parse(_info(tmp_path, "a.md"))
        lookup = DocumentLookup.from_documents([(Path("bad\udcff.html"), "Bad")])

        result = processor.resolve_links(doc, lookup)

        assert isinstance(result, DocumentError)
        assert result.stage == BuildStage.RESOLVE_LINKS_ALL
        assert result.title == "a"
