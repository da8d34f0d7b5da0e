"""Load spine chapters from the unpacked archive."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from flowreader.config import DEFAULT_ENCODINGS
from flowreader.core.archive import resolve_within
from flowreader.core.normalizer import normalize
from flowreader.models.epub import Chapter, LoadWarning, ManifestEntry

log = logging.getLogger(__name__)


def decode_bytes(data: bytes, encodings: Iterable[str] = DEFAULT_ENCODINGS) -> str:
    """Decode with the first encoding that succeeds.

    Falls back to latin-1, which accepts any byte sequence, so this
    never raises.
    """
    for encoding in encodings:
        try:
            if encoding.replace("_", "-").lower() in ("utf-8", "utf8"):
                return data.decode("utf-8-sig")
            return data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue
    return data.decode("latin-1")


@dataclass
class ChapterLoadResult:
    """Chapters in reading order plus the entries that were skipped."""

    chapters: tuple[Chapter, ...] = ()
    warnings: tuple[LoadWarning, ...] = ()


@dataclass
class _Accumulator:
    chapters: list[Chapter] = field(default_factory=list)
    skipped: list[LoadWarning] = field(default_factory=list)

    def add(self, entry: ManifestEntry, text: str) -> None:
        """Append a chapter unless ``text`` is empty; indices stay contiguous."""
        if not text:
            log.debug("Dropping empty chapter %s (%s)", entry.id, entry.href)
            return
        index = len(self.chapters)
        self.chapters.append(
            Chapter(
                id=entry.id,
                title=entry.title or f"Chapter {index + 1}",
                content=text,
                index=index,
                href=entry.href,
            )
        )

    def skip(self, entry: ManifestEntry, error: Exception) -> None:
        log.warning("Skipping chapter %s (%s): %s", entry.id, entry.href, error)
        self.skipped.append(
            LoadWarning(chapter_id=entry.id, href=entry.href, message=str(error))
        )

    def result(self) -> ChapterLoadResult:
        return ChapterLoadResult(chapters=tuple(self.chapters), warnings=tuple(self.skipped))


class ChapterLoader:
    """Resolve, read, decode and normalize spine entries in order.

    Files are only read from inside ``root`` (the scratch directory),
    which defaults to ``base_dir``. Entries whose href points elsewhere
    are skipped like unreadable ones.
    """

    def __init__(
        self,
        base_dir: Path,
        encodings: Iterable[str] = DEFAULT_ENCODINGS,
        root: Path | None = None,
    ):
        self.base_dir = Path(base_dir)
        self.encodings = tuple(encodings)
        self.root = Path(root) if root is not None else self.base_dir

    def _entries(
        self, spine: Iterable[str], manifest: Mapping[str, ManifestEntry]
    ) -> list[ManifestEntry]:
        entries = []
        for idref in spine:
            entry = manifest.get(idref)
            if entry is None:
                log.debug("Spine entry %s is not renderable content, skipping", idref)
                continue
            entries.append(entry)
        return entries

    def _read_text(self, entry: ManifestEntry) -> str:
        # ValueError: href escapes the root or is not a valid path
        path = resolve_within(self.root, self.base_dir, entry.href)
        return normalize(decode_bytes(path.read_bytes(), self.encodings))

    def load(
        self, spine: Iterable[str], manifest: Mapping[str, ManifestEntry]
    ) -> ChapterLoadResult:
        """Load every renderable spine entry."""
        acc = _Accumulator()
        for entry in self._entries(spine, manifest):
            try:
                text = self._read_text(entry)
            except (OSError, ValueError) as e:
                acc.skip(entry, e)
                continue
            acc.add(entry, text)
        return acc.result()

    async def load_async(
        self, spine: Iterable[str], manifest: Mapping[str, ManifestEntry]
    ) -> ChapterLoadResult:
        """Same as ``load`` but reads each file in a worker thread.

        Files are still read one at a time, in spine order.
        """
        acc = _Accumulator()
        for entry in self._entries(spine, manifest):
            try:
                text = await asyncio.to_thread(self._read_text, entry)
            except (OSError, ValueError) as e:
                acc.skip(entry, e)
                continue
            acc.add(entry, text)
        return acc.result()


def load_chapters(
    spine: Iterable[str],
    manifest: Mapping[str, ManifestEntry],
    base_dir: Path,
    encodings: Iterable[str] = DEFAULT_ENCODINGS,
    root: Path | None = None,
) -> ChapterLoadResult:
    """Load chapters for ``spine`` from files under ``base_dir``."""
    return ChapterLoader(base_dir, encodings, root).load(spine, manifest)


async def load_chapters_async(
    spine: Iterable[str],
    manifest: Mapping[str, ManifestEntry],
    base_dir: Path,
    encodings: Iterable[str] = DEFAULT_ENCODINGS,
    root: Path | None = None,
) -> ChapterLoadResult:
    return await ChapterLoader(base_dir, encodings, root).load_async(spine, manifest)
