"""flowreader - turn EPUB books into navigable plain-text chapters."""

from flowreader.core.session import Direction, DocumentSession, SessionState, load_document

__version__ = "0.1.0"

__all__ = ["Direction", "DocumentSession", "SessionState", "load_document"]
