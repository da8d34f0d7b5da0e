"""Data models for a loaded EPUB."""

import shutil
import uuid
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class SourceArchive(BaseModel):
    """Original EPUB path plus the scratch directory it was unpacked into."""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    scratch_dir: Path

    def exists(self) -> bool:
        return self.scratch_dir.exists()

    def remove(self) -> None:
        """Delete the scratch directory. Safe to call more than once."""
        shutil.rmtree(self.scratch_dir, ignore_errors=True)


class PackageMetadata(BaseModel):
    """Bibliographic metadata from the package document."""

    model_config = ConfigDict(frozen=True)

    title: str = "Untitled"
    creator: str | None = None
    language: str = "en"
    identifier: str = Field(default_factory=lambda: str(uuid.uuid4()))
    publisher: str | None = None
    date: str | None = None
    rights: str | None = None


class ManifestEntry(BaseModel):
    """Single resource declared in the manifest."""

    model_config = ConfigDict(frozen=True)

    id: str
    href: str  # relative to the package document's directory
    media_type: str
    title: str | None = None
    properties: str | None = None

    @property
    def is_content(self) -> bool:
        """Whether this entry is renderable (X)HTML.

        Deliberately loose: any media type mentioning "html" qualifies.
        """
        return "html" in self.media_type or "xhtml" in self.media_type


class PackageDocument(BaseModel):
    """Parsed package document (OPF)."""

    model_config = ConfigDict(frozen=True)

    opf_path: Path
    metadata: PackageMetadata
    manifest: dict[str, ManifestEntry] = Field(default_factory=dict)
    resources: dict[str, ManifestEntry] = Field(default_factory=dict)
    spine: tuple[str, ...] = ()
    toc_id: str | None = None

    @property
    def base_dir(self) -> Path:
        """Directory manifest hrefs are relative to."""
        return self.opf_path.parent

    def as_tuple(self) -> tuple[PackageMetadata, dict[str, ManifestEntry], tuple[str, ...]]:
        return self.metadata, self.manifest, self.spine


class Chapter(BaseModel):
    """One rendered chapter in reading order."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content: str
    index: int
    href: str = ""


class LoadWarning(BaseModel):
    """A spine entry that was skipped because it could not be read."""

    model_config = ConfigDict(frozen=True)

    chapter_id: str
    href: str
    message: str


class Document(BaseModel):
    """A loaded book: metadata, chapters, and the current chapter."""

    model_config = ConfigDict(frozen=True)

    metadata: PackageMetadata
    chapters: tuple[Chapter, ...] = ()
    current_index: int | None = None

    @classmethod
    def from_chapters(
        cls, metadata: PackageMetadata, chapters: tuple[Chapter, ...]
    ) -> "Document":
        """Build a document with the first chapter selected."""
        return cls(
            metadata=metadata,
            chapters=chapters,
            current_index=0 if chapters else None,
        )

    @property
    def is_empty(self) -> bool:
        return not self.chapters

    @property
    def current_chapter(self) -> Chapter | None:
        if self.current_index is None:
            return None
        return self.chapters[self.current_index]

    @property
    def current_chapter_id(self) -> str | None:
        chapter = self.current_chapter
        return chapter.id if chapter else None

    @property
    def is_first(self) -> bool:
        return self.current_index == 0

    @property
    def is_last(self) -> bool:
        return self.current_index is not None and self.current_index == len(self.chapters) - 1

    def chapter_by_id(self, chapter_id: str) -> Chapter | None:
        """Return the first chapter with this id."""
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter
        return None

    def with_current(self, index: int) -> "Document":
        """Return a copy with a different current chapter."""
        if not 0 <= index < len(self.chapters):
            raise IndexError(f"Chapter index out of range: {index}")
        return self.model_copy(update={"current_index": index})


class ReadingProgress(BaseModel):
    """Position within the current chapter. Not persisted here."""

    chapter_index: int = 0
    position: float = Field(default=0.0, ge=0.0, le=1.0)
    last_read: datetime = Field(default_factory=datetime.now)
