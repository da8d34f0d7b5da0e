"""Data models."""

from flowreader.models.epub import (
    Chapter,
    Document,
    LoadWarning,
    ManifestEntry,
    PackageDocument,
    PackageMetadata,
    ReadingProgress,
    SourceArchive,
)

__all__ = [
    "SourceArchive",
    "PackageMetadata",
    "ManifestEntry",
    "PackageDocument",
    "Chapter",
    "LoadWarning",
    "Document",
    "ReadingProgress",
]
