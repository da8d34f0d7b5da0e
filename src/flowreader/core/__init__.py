"""EPUB ingestion pipeline."""

from flowreader.core.archive import extract, extract_async
from flowreader.core.container import resolve_opf_path
from flowreader.core.content_loader import ChapterLoadResult, decode_bytes, load_chapters
from flowreader.core.normalizer import normalize
from flowreader.core.package import parse_package
from flowreader.core.session import Direction, DocumentSession, SessionState, load_document

__all__ = [
    "extract",
    "extract_async",
    "resolve_opf_path",
    "parse_package",
    "load_chapters",
    "decode_bytes",
    "ChapterLoadResult",
    "normalize",
    "Direction",
    "DocumentSession",
    "SessionState",
    "load_document",
]
