"""Tests for archive extraction."""

import asyncio
import zipfile
from pathlib import Path

import pytest

from flowreader.config import IngestConfig
from flowreader.core.archive import extract, extract_async
from flowreader.errors import ArchiveError


def test_extract_unpacks_into_fresh_directory(sample_epub: Path, scratch_root: Path) -> None:
    config = IngestConfig(scratch_root=scratch_root)
    archive = extract(sample_epub, config)

    assert archive.scratch_dir.parent == scratch_root.resolve()
    assert archive.scratch_dir.name.startswith("flowreader-")
    assert (archive.scratch_dir / "META-INF" / "container.xml").is_file()
    assert (archive.scratch_dir / "OEBPS" / "ch1.xhtml").is_file()
    assert archive.source_path == sample_epub.resolve()

    archive.remove()
    assert not archive.exists()
    archive.remove()  # idempotent


def test_each_extraction_gets_its_own_directory(sample_epub: Path, scratch_root: Path) -> None:
    config = IngestConfig(scratch_root=scratch_root)
    first = extract(sample_epub, config)
    second = extract(sample_epub, config)
    try:
        assert first.scratch_dir != second.scratch_dir
        assert first.exists() and second.exists()
    finally:
        first.remove()
        second.remove()


def test_missing_file_raises(tmp_path: Path, scratch_root: Path) -> None:
    with pytest.raises(ArchiveError):
        extract(tmp_path / "missing.epub", IngestConfig(scratch_root=scratch_root))
    assert list(scratch_root.iterdir()) == []


def test_not_a_zip_raises_and_cleans_up(tmp_path: Path, scratch_root: Path) -> None:
    bogus = tmp_path / "bogus.epub"
    bogus.write_text("definitely not a zip archive")

    with pytest.raises(ArchiveError) as exc_info:
        extract(bogus, IngestConfig(scratch_root=scratch_root))

    assert isinstance(exc_info.value.__cause__, zipfile.BadZipFile)
    assert list(scratch_root.iterdir()) == []


def test_rejects_members_escaping_scratch_dir(tmp_path: Path, scratch_root: Path) -> None:
    evil = tmp_path / "evil.epub"
    with zipfile.ZipFile(evil, "w") as zf:
        zf.writestr("../outside.txt", "gotcha")

    with pytest.raises(ArchiveError, match="escapes"):
        extract(evil, IngestConfig(scratch_root=scratch_root))

    assert not (scratch_root / "outside.txt").exists()
    assert not (scratch_root.parent / "outside.txt").exists()
    assert list(scratch_root.iterdir()) == []


def test_unusable_scratch_root_raises(sample_epub: Path, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with pytest.raises(ArchiveError):
        extract(sample_epub, IngestConfig(scratch_root=blocker / "scratch"))


@pytest.mark.asyncio
async def test_extract_async(sample_epub: Path, scratch_root: Path) -> None:
    archive = await extract_async(sample_epub, IngestConfig(scratch_root=scratch_root))
    try:
        assert (archive.scratch_dir / "OEBPS" / "content.opf").is_file()
    finally:
        archive.remove()


@pytest.mark.asyncio
async def test_cancelled_extraction_leaves_no_directory(
    sample_epub: Path, scratch_root: Path
) -> None:
    task = asyncio.create_task(extract_async(sample_epub, IngestConfig(scratch_root=scratch_root)))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    # Let the worker thread finish and its cleanup callback run
    for _ in range(100):
        if not list(scratch_root.iterdir()):
            break
        await asyncio.sleep(0.01)
    assert list(scratch_root.iterdir()) == []
