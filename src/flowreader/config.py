"""Configuration for the ingestion pipeline."""

from dataclasses import dataclass
from pathlib import Path

CONTAINER_PATH = "META-INF/container.xml"

# Tried in order; latin-1 maps every byte so the chain always succeeds.
DEFAULT_ENCODINGS = ("utf-8", "utf-16", "latin-1")


@dataclass(frozen=True)
class IngestConfig:
    """Settings shared by every stage of a load."""

    scratch_root: Path | None = None  # None = system temp dir
    scratch_prefix: str = "flowreader-"
    encodings: tuple[str, ...] = DEFAULT_ENCODINGS
    use_navigation_titles: bool = True
