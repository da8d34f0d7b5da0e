"""Helpers for building small EPUB archives on disk."""

from __future__ import annotations

import zipfile
from pathlib import Path

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

OPF_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="bookid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
{metadata}
  </metadata>
  <manifest>
{manifest}
  </manifest>
  <spine{toc}>
{spine}
  </spine>
</package>
"""


def build_opf(
    metadata: dict[str, str] | None = None,
    manifest: list[tuple[str, str, str]] | None = None,
    spine: list[str] | None = None,
    toc: str | None = None,
    extra_manifest: str = "",
) -> str:
    """Render a package document. ``manifest`` holds (id, href, media-type)."""
    metadata = {"title": "Test"} if metadata is None else metadata
    manifest = manifest or []
    spine = spine or []
    metadata_xml = "\n".join(
        f"    <dc:{name}>{value}</dc:{name}>" for name, value in metadata.items()
    )
    manifest_xml = "\n".join(
        f'    <item id="{item_id}" href="{href}" media-type="{media_type}"/>'
        for item_id, href, media_type in manifest
    )
    spine_xml = "\n".join(f'    <itemref idref="{idref}"/>' for idref in spine)
    return OPF_TEMPLATE.format(
        metadata=metadata_xml,
        manifest=manifest_xml + extra_manifest,
        spine=spine_xml,
        toc=f' toc="{toc}"' if toc else "",
    )


def xhtml(body: str, title: str = "") -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<html xmlns="http://www.w3.org/1999/xhtml">'
        f"<head><title>{title}</title></head><body>{body}</body></html>"
    )


def write_epub(
    path: Path,
    files: dict[str, str | bytes],
    opf_path: str | None = "OEBPS/content.opf",
    container: str | None = None,
) -> Path:
    """Write an EPUB archive containing ``files`` plus a container descriptor."""
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip")
        if container is not None:
            zf.writestr("META-INF/container.xml", container)
        elif opf_path is not None:
            zf.writestr("META-INF/container.xml", CONTAINER_XML.format(opf_path=opf_path))
        for name, data in files.items():
            zf.writestr(name, data)
    return path


