"""Unpack an EPUB into a private scratch directory."""

import asyncio
import logging
import shutil
import tempfile
import zipfile
from pathlib import Path

from flowreader.config import IngestConfig
from flowreader.errors import ArchiveError
from flowreader.models.epub import SourceArchive

log = logging.getLogger(__name__)


def _make_scratch_dir(config: IngestConfig) -> Path:
    """Create a fresh, uniquely named scratch directory."""
    root = config.scratch_root
    if root is not None:
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveError(f"Cannot create scratch root {root}: {e}") from e
    try:
        return Path(
            tempfile.mkdtemp(prefix=config.scratch_prefix, dir=str(root) if root else None)
        ).resolve()
    except OSError as e:
        raise ArchiveError(f"Cannot create scratch directory: {e}") from e


def resolve_within(root: Path, *parts: str | Path) -> Path:
    """Resolve ``parts`` against ``root``, requiring the result to stay inside it.

    Absolute parts and ``..`` segments are allowed only as long as the
    resolved path does not leave ``root``.

    Raises:
        ValueError: If the path escapes ``root`` or is not a valid path
    """
    root = Path(root).resolve()
    target = root.joinpath(*parts).resolve()
    if target != root and root not in target.parents:
        raise ValueError(f"{Path(*parts)} escapes {root}")
    return target


def _safe_extract(zf: zipfile.ZipFile, target: Path) -> None:
    """Extract every member, refusing paths that escape the target."""
    for member in zf.infolist():
        try:
            resolve_within(target, member.filename)
        except ValueError as e:
            raise ArchiveError(
                f"Archive member escapes extraction directory: {member.filename}"
            ) from e
    zf.extractall(target)


def extract(source_path: Path, config: IngestConfig | None = None) -> SourceArchive:
    """Unpack an EPUB archive.

    Args:
        source_path: Path to the .epub file
        config: Scratch directory settings

    Returns:
        SourceArchive owning the new scratch directory. The caller must
        call ``remove()`` on it when done.

    Raises:
        ArchiveError: If the file is missing, not a zip archive, or the
            scratch directory cannot be created
    """
    config = config or IngestConfig()
    source_path = Path(source_path)

    if not source_path.is_file():
        raise ArchiveError(f"File not found: {source_path}")

    scratch_dir = _make_scratch_dir(config)
    try:
        with zipfile.ZipFile(source_path) as zf:
            _safe_extract(zf, scratch_dir)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
        shutil.rmtree(scratch_dir, ignore_errors=True)
        raise ArchiveError(f"Cannot unpack {source_path.name}: {e}") from e
    except BaseException:
        shutil.rmtree(scratch_dir, ignore_errors=True)
        raise

    log.debug("Extracted %s into %s", source_path, scratch_dir)
    return SourceArchive(source_path=source_path.resolve(), scratch_dir=scratch_dir)


def _discard_orphan(task: "asyncio.Future[SourceArchive]") -> None:
    if task.cancelled() or task.exception() is not None:
        return
    archive = task.result()
    log.debug("Removing scratch directory of abandoned load: %s", archive.scratch_dir)
    archive.remove()


async def extract_async(source_path: Path, config: IngestConfig | None = None) -> SourceArchive:
    """Run ``extract`` in a worker thread.

    If the caller is cancelled while the thread is still unpacking, the
    scratch directory is removed once the thread finishes.
    """
    task = asyncio.ensure_future(asyncio.to_thread(extract, source_path, config))
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(_discard_orphan)
        raise
