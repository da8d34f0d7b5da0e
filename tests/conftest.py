"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from tests.helpers import build_opf, write_epub, xhtml

EpubFactory = Callable[..., Path]


@pytest.fixture
def make_epub(tmp_path: Path) -> EpubFactory:
    """Factory building an EPUB from OPF pieces and chapter bodies.

    ``chapters`` maps hrefs (relative to OEBPS/) to file contents.
    """
    counter = {"n": 0}

    def factory(
        metadata: dict[str, str] | None = None,
        manifest: list[tuple[str, str, str]] | None = None,
        spine: list[str] | None = None,
        chapters: dict[str, str | bytes] | None = None,
        toc: str | None = None,
        extra_manifest: str = "",
        name: str | None = None,
    ) -> Path:
        counter["n"] += 1
        files: dict[str, str | bytes] = {
            "OEBPS/content.opf": build_opf(metadata, manifest, spine, toc, extra_manifest)
        }
        for href, data in (chapters or {}).items():
            files[f"OEBPS/{href}"] = data
        return write_epub(tmp_path / (name or f"book{counter['n']}.epub"), files)

    return factory


@pytest.fixture
def sample_epub(make_epub: EpubFactory) -> Path:
    """Three readable chapters plus a cover image."""
    return make_epub(
        metadata={"title": "Sample Book", "creator": "Jane Doe", "language": "fr"},
        manifest=[
            ("ch1", "ch1.xhtml", "application/xhtml+xml"),
            ("ch2", "ch2.xhtml", "application/xhtml+xml"),
            ("ch3", "ch3.xhtml", "application/xhtml+xml"),
            ("cover", "cover.png", "image/png"),
        ],
        spine=["ch1", "ch2", "ch3"],
        chapters={
            "ch1.xhtml": xhtml("<p>First chapter.</p>"),
            "ch2.xhtml": xhtml("<p>Second chapter.</p>"),
            "ch3.xhtml": xhtml("<p>Third chapter.</p>"),
            "cover.png": b"\x89PNG\r\n\x1a\n",
        },
    )


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    root = tmp_path / "scratch"
    root.mkdir()
    return root
