"""Resolve the package document path from META-INF/container.xml."""

import logging
from pathlib import Path

from lxml import etree

from flowreader.config import CONTAINER_PATH
from flowreader.core.archive import resolve_within
from flowreader.core.xml_utils import children_named, first_child, parse_xml
from flowreader.errors import ContainerError

log = logging.getLogger(__name__)


def resolve_opf_path(scratch_dir: Path) -> str:
    """Return the ``full-path`` of the first rootfile.

    Args:
        scratch_dir: Root of the unpacked archive

    Returns:
        Package document path, relative to ``scratch_dir``

    Raises:
        ContainerError: If the descriptor is missing, malformed, or names
            no package document inside ``scratch_dir``
    """
    try:
        root = parse_xml(Path(scratch_dir) / CONTAINER_PATH)
    except (OSError, etree.XMLSyntaxError) as e:
        raise ContainerError(f"Cannot read {CONTAINER_PATH}: {e}") from e

    rootfiles = first_child(root, "rootfiles")
    if rootfiles is None:
        raise ContainerError(f"{CONTAINER_PATH} has no rootfiles element")

    candidates = children_named(rootfiles, "rootfile")
    if not candidates:
        raise ContainerError(f"{CONTAINER_PATH} has no rootfile element")
    if len(candidates) > 1:
        # Only one rendition is supported.
        log.debug("Ignoring %d additional rootfile(s)", len(candidates) - 1)

    full_path = (candidates[0].get("full-path") or "").strip()
    if not full_path:
        raise ContainerError(f"{CONTAINER_PATH} rootfile has no full-path attribute")
    try:
        resolve_within(scratch_dir, full_path)
    except ValueError as e:
        raise ContainerError(f"Package document path is outside the book: {full_path}") from e

    log.debug("Package document: %s", full_path)
    return full_path
