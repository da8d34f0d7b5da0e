"""Document session: runs the ingestion pipeline and tracks the current chapter."""

import asyncio
import logging
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from typing import Callable

from flowreader.config import IngestConfig
from flowreader.core.archive import extract_async
from flowreader.core.container import resolve_opf_path
from flowreader.core.content_loader import ChapterLoader
from flowreader.core.navigation import apply_titles, collect_titles
from flowreader.core.package import parse_package
from flowreader.errors import LoadSupersededError
from flowreader.models.epub import (
    Document,
    LoadWarning,
    PackageDocument,
    ReadingProgress,
    SourceArchive,
)

log = logging.getLogger(__name__)

Subscriber = Callable[[Document | None], None]


class SessionState(str, Enum):
    """Lifecycle of a session."""

    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"


class Direction(IntEnum):
    BACKWARD = -1
    FORWARD = 1


class DocumentSession:
    """Owns one loaded book and its scratch directory.

    Every change is published as a new immutable ``Document``. Observers
    either poll ``document`` or register with ``subscribe``. When loads
    overlap, the most recently started one wins; older ones clean up
    after themselves and raise ``LoadSupersededError``.
    """

    def __init__(self, config: IngestConfig | None = None):
        self.config = config or IngestConfig()
        self._state = SessionState.EMPTY
        self._document: Document | None = None
        self._archive: SourceArchive | None = None
        self._warnings: tuple[LoadWarning, ...] = ()
        self._progress: ReadingProgress | None = None
        self._generation = 0
        self._subscribers: list[Subscriber] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def archive(self) -> SourceArchive | None:
        return self._archive

    @property
    def warnings(self) -> tuple[LoadWarning, ...]:
        """Chapters skipped during the last successful load."""
        return self._warnings

    @property
    def progress(self) -> ReadingProgress | None:
        return self._progress

    @property
    def is_first(self) -> bool:
        return self._document is not None and self._document.is_first

    @property
    def is_last(self) -> bool:
        return self._document is not None and self._document.is_last

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, source_path: Path) -> Document:
        """Load an EPUB, replacing whatever this session held.

        Raises:
            ArchiveError, ContainerError, PackageError: If a stage fails.
                No document is published and the previous one stays.
            LoadSupersededError: If another load started before this
                one finished.
        """
        self._generation += 1
        generation = self._generation
        self._discard_archive()
        self._state = SessionState.LOADING
        log.debug("Loading %s (generation %d)", source_path, generation)

        archive: SourceArchive | None = None
        try:
            archive = await extract_async(Path(source_path), self.config)
            self._ensure_latest(generation)
            self._archive = archive

            package = await self._read_package(archive)
            self._ensure_latest(generation)

            loader = ChapterLoader(
                package.base_dir, self.config.encodings, root=archive.scratch_dir
            )
            result = await loader.load_async(package.spine, package.manifest)
            self._ensure_latest(generation)
        except BaseException:
            if archive is not None:
                archive.remove()
                if self._archive is archive:
                    self._archive = None
            if generation == self._generation:
                self._state = SessionState.LOADED if self._document else SessionState.EMPTY
            raise

        document = Document.from_chapters(package.metadata, result.chapters)
        self._warnings = result.warnings
        self._progress = ReadingProgress(chapter_index=0) if document.chapters else None
        self._state = SessionState.LOADED
        log.debug(
            "Loaded %r: %d chapter(s), %d skipped",
            document.metadata.title,
            len(document.chapters),
            len(result.warnings),
        )
        self._publish(document)
        return document

    async def _read_package(self, archive: SourceArchive) -> PackageDocument:
        opf_path = await asyncio.to_thread(resolve_opf_path, archive.scratch_dir)
        package = await asyncio.to_thread(parse_package, archive.scratch_dir / opf_path)
        if self.config.use_navigation_titles:
            titles = await asyncio.to_thread(collect_titles, package, archive.scratch_dir)
            package = apply_titles(package, titles)
        return package

    def _ensure_latest(self, generation: int) -> None:
        if generation != self._generation:
            raise LoadSupersededError()

    def _discard_archive(self) -> None:
        if self._archive is not None:
            log.debug("Removing scratch directory %s", self._archive.scratch_dir)
            self._archive.remove()
            self._archive = None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def set_current_chapter(self, chapter_id: str) -> None:
        """Select the first chapter with ``chapter_id``. Unknown ids are ignored."""
        if self._document is None:
            return
        for chapter in self._document.chapters:
            if chapter.id == chapter_id:
                self._select(chapter.index)
                return

    def can_advance(self, direction: Direction) -> bool:
        if self._document is None or self._document.current_index is None:
            return False
        target = self._document.current_index + int(direction)
        return 0 <= target < len(self._document.chapters)

    def advance(self, direction: Direction) -> None:
        """Move to the adjacent chapter, or do nothing at either end."""
        if not self.can_advance(direction):
            return
        self._select(self._document.current_index + int(direction))

    def _select(self, index: int) -> None:
        if self._document.current_index == index:
            return
        self._progress = ReadingProgress(chapter_index=index)
        self._publish(self._document.with_current(index))

    def update_progress(self, position: float) -> ReadingProgress | None:
        """Record the reading position (0.0 to 1.0) within the current chapter."""
        if self._document is None or self._document.current_index is None:
            return None
        self._progress = ReadingProgress(
            chapter_index=self._document.current_index,
            position=position,
            last_read=datetime.now(),
        )
        return self._progress

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` with every published document.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, document: Document | None) -> None:
        self._document = document
        for callback in list(self._subscribers):
            callback(document)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop the document and scratch directory; pending loads are superseded."""
        self._generation += 1
        self._discard_archive()
        had_document = self._document is not None
        self._warnings = ()
        self._progress = None
        self._state = SessionState.EMPTY
        if had_document:
            self._publish(None)

    def teardown(self) -> None:
        """Reset and forget subscribers. Safe to call more than once."""
        self.reset()
        self._subscribers.clear()

    async def __aenter__(self) -> "DocumentSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.teardown()


def load_document(
    source_path: Path, config: IngestConfig | None = None
) -> tuple[Document, tuple[LoadWarning, ...]]:
    """Load a book synchronously and discard its scratch directory.

    Returns:
        The document and the chapters skipped while loading
    """

    async def _run() -> tuple[Document, tuple[LoadWarning, ...]]:
        async with DocumentSession(config) as session:
            document = await session.load(source_path)
            return document, session.warnings

    return asyncio.run(_run())
