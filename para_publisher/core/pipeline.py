"""Build pipeline: discovery, parsing, link resolution and backlinks.

A build runs these stages in order:

    DISCOVER -> PARSE_ALL -> BUILD_LOOKUP -> RESOLVE_LINKS_ALL
             -> INDEX_BACKLINKS -> DONE

PARSE_ALL and RESOLVE_LINKS_ALL fan out over a thread pool, one task per
document. BUILD_LOOKUP runs on the calling thread between them, because
resolving any document's links needs every document's title.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple, Union

from para_publisher._logging import configure_logging
from para_publisher.core.backlinks import (
    apply_backlinks_to_documents,
    build_backlink_index,
    calculate_link_statistics,
)
from para_publisher.core.discovery import ContentDiscovery, category_label
from para_publisher.core.links import DocumentLookup, get_broken_links
from para_publisher.core.models import (
    BuildError,
    BuildResult,
    BuildStage,
    Document,
    DocumentError,
    DocumentInfo,
    ParaStatistics,
)
from para_publisher.core.processor import DocumentProcessor, Renderer
from para_publisher.transforms.markdown import MarkdownRenderer

if TYPE_CHECKING:
    from para_publisher.config import BuildConfig

log = logging.getLogger(__name__)

ProgressCallback = Callable[[BuildStage, int, int], None]

LONG_TITLE_CHARS = 100
MAX_NESTING_DEPTH = 5
PROGRESS_EVERY = 10


class BuildCounters:
    """Thread-safe counters shared by the parallel stages.

    Workers receive this handle explicitly and only ever add to it.
    """

    NAMES = (
        "documents_processed",
        "documents_linked",
        "documents_parsed",
        "parse_errors",
        "links_resolved",
        "broken_links",
        "link_errors",
        "orphaned_documents",
    )

    def __init__(self):
        self._lock = threading.Lock()
        self._values: Dict[str, int] = {name: 0 for name in self.NAMES}

    def add(self, name: str, amount: int = 1) -> int:
        """Add to a counter and return its new value."""
        with self._lock:
            self._values[name] += amount
            return self._values[name]

    def set(self, name: str, value: int) -> None:
        with self._lock:
            self._values[name] = value

    def get(self, name: str) -> int:
        with self._lock:
            return self._values[name]

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._values)


class SiteBuilder:
    """Runs a full build and returns the enriched document set.

    Does not write any files; rendering the result is up to the caller.
    """

    PROGRESS_COUNTERS = {
        BuildStage.PARSE_ALL: "documents_processed",
        BuildStage.RESOLVE_LINKS_ALL: "documents_linked",
    }

    def __init__(
        self,
        config: "BuildConfig",
        renderer: Optional[Renderer] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        """Initialize SiteBuilder.

        Args:
            config: Build configuration
            renderer: Markdown renderer (default: MarkdownRenderer honouring
                      config.heading_ids)
            progress: Called as progress(stage, done, total) from worker threads
        """
        self.config = config
        self.processor = DocumentProcessor(
            renderer or MarkdownRenderer(heading_ids=config.heading_ids)
        )
        self.progress = progress
        self.stage = BuildStage.DISCOVER
        self.counters = BuildCounters()

    def build(self) -> BuildResult:
        """Run every stage of the build.

        Returns:
            BuildResult with documents, statistics and failures

        Raises:
            DirectoryNotFoundError: If the input directory does not exist
            InvalidPathError: If the input is not a directory or the output
                              path is an existing file
            BuildError: If every discovered document failed to parse
            OSError: If the input tree cannot be traversed
        """
        start_time = time.monotonic()
        self.counters = BuildCounters()
        try:
            result = self._run()
        except Exception:
            self.stage = BuildStage.FAILED
            raise

        log.info("Build finished in %.2fs", time.monotonic() - start_time)
        return result

    def _run(self) -> BuildResult:
        self.stage = BuildStage.DISCOVER
        self.config.validate()

        discovery = ContentDiscovery(self.config.input_dir)
        infos = discovery.discover_all()
        para_stats = ParaStatistics.from_documents(infos)
        warnings: List[str] = []

        if para_stats.total_count == 0:
            log.warning("No markdown documents found in '%s'", self.config.input_dir)
            self.stage = BuildStage.DONE
            return BuildResult(
                para_statistics=para_stats,
                counters=self.counters.snapshot(),
                stage=self.stage,
            )

        self._log_discovery(para_stats)
        if not discovery.has_para_structure():
            warnings.append("No PARA structure detected in input directory")
            log.warning("No PARA structure detected in '%s'", self.config.input_dir)

        self.stage = BuildStage.PARSE_ALL
        documents, failures = self.parse_all(infos)
        if not documents:
            raise BuildError(f"All {len(infos)} document(s) failed to parse")
        warnings.extend(self._document_warnings(documents))

        self.stage = BuildStage.BUILD_LOOKUP
        lookup = self.build_lookup(documents)

        self.stage = BuildStage.RESOLVE_LINKS_ALL
        documents, link_failures = self.resolve_links_all(documents, lookup)
        failures.extend(link_failures)

        self.stage = BuildStage.INDEX_BACKLINKS
        index = build_backlink_index(documents)
        apply_backlinks_to_documents(documents, index)
        link_stats = calculate_link_statistics(documents)
        self.counters.set("orphaned_documents", len(link_stats.orphaned_documents))

        self.stage = BuildStage.DONE
        result = BuildResult(
            documents=documents,
            link_statistics=link_stats,
            para_statistics=para_stats,
            failures=failures,
            counters=self.counters.snapshot(),
            warnings=warnings,
            stage=self.stage,
        )
        self._log_summary(result)
        return result

    def parse_all(self, infos: List[DocumentInfo]) -> Tuple[List[Document], List[DocumentError]]:
        """Parse every discovered file in parallel.

        Failed documents are dropped and returned as errors.
        """
        counters = self.counters
        total = len(infos)

        def task(info: DocumentInfo) -> Union[Document, DocumentError]:
            result = self.processor.parse(info)
            if isinstance(result, DocumentError):
                counters.add("parse_errors")
            else:
                counters.add("documents_parsed")
            self._report(counters, BuildStage.PARSE_ALL, total)
            return result

        documents, failures = self._map(task, infos)
        if failures:
            log.warning("%d document(s) failed to parse", len(failures))
        log.info("Parsed %d documents", len(documents))
        return documents, failures

    def build_lookup(self, documents: List[Document]) -> DocumentLookup:
        """Build the link lookup from every parsed document."""
        return DocumentLookup.from_documents((doc.output_path, doc.title) for doc in documents)

    def resolve_links_all(
        self, documents: List[Document], lookup: DocumentLookup,
    ) -> Tuple[List[Document], List[DocumentError]]:
        """Resolve wiki-links of every document in parallel."""
        counters = self.counters
        total = len(documents)

        def task(doc: Document) -> Union[Document, DocumentError]:
            result = self.processor.resolve_links(doc, lookup)
            if isinstance(result, DocumentError):
                counters.add("link_errors")
            else:
                counters.add("links_resolved", len(result.wiki_links))
                broken = len(get_broken_links(result.wiki_links))
                if broken:
                    counters.add("broken_links", broken)
            self._report(counters, BuildStage.RESOLVE_LINKS_ALL, total)
            return result

        resolved, failures = self._map(task, documents)

        broken_total = counters.get("broken_links")
        if broken_total:
            log.warning("Total broken wiki links: %d", broken_total)
        else:
            log.info("All wiki links resolved successfully")
        return resolved, failures

    def _map(self, task, items) -> Tuple[List[Document], List[DocumentError]]:
        """Run task over items on the worker pool, keeping input order."""
        documents: List[Document] = []
        failures: List[DocumentError] = []
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            for result in executor.map(task, items):
                if isinstance(result, DocumentError):
                    failures.append(result)
                else:
                    documents.append(result)
        return documents, failures

    def _report(self, counters: BuildCounters, stage: BuildStage, total: int) -> None:
        done = counters.add(self.PROGRESS_COUNTERS[stage])
        if self.progress is not None:
            self.progress(stage, done, total)
        if done % PROGRESS_EVERY == 0 or done == total:
            log.debug("%s progress: %d/%d documents", stage.value, done, total)

    def _document_warnings(self, documents: List[Document]) -> List[str]:
        warnings = []
        for doc in documents:
            path = doc.relative_path.as_posix()
            if doc.metadata.title is None:
                warnings.append(f"'{path}' has no title in frontmatter")
            if not doc.metadata.tags:
                warnings.append(f"'{path}' has no tags")
            if len(doc.title) > LONG_TITLE_CHARS:
                warnings.append(f"Document '{path}' has a very long title ({len(doc.title)} chars)")
            depth = len(doc.relative_path.parts)
            if depth > MAX_NESTING_DEPTH:
                warnings.append(f"Document '{path}' is deeply nested ({depth} levels)")
        for warning in warnings:
            log.debug(warning)
        return warnings

    def _log_discovery(self, stats: ParaStatistics) -> None:
        log.info("Found %d documents", stats.total_count)
        for category, count in stats.as_dict().items():
            if count:
                log.info("  %s: %d", category_label(category), count)

    def _log_summary(self, result: BuildResult) -> None:
        stats = result.link_statistics
        log.info(
            "Links: %d total, %d valid, %d broken; %d document(s) with backlinks",
            stats.total_links, stats.valid_links, stats.broken_links,
            stats.documents_with_backlinks,
        )
        if stats.orphaned_documents:
            log.info("Orphaned documents: %d", len(stats.orphaned_documents))
            for orphan in stats.orphaned_documents:
                log.debug("  orphan: %s", orphan.as_posix())
        if result.parse_errors:
            log.warning("Parse errors: %d", result.parse_errors)


def generate_site(config: "BuildConfig", progress: Optional[ProgressCallback] = None) -> BuildResult:
    """Build the enriched document set for a configuration.

    Sets up package logging on first use.
    """
    configure_logging(verbose=config.verbose)
    return SiteBuilder(config, progress=progress).build()
