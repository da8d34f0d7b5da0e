"""Package document (OPF) parsing."""

import logging
from pathlib import Path
from urllib.parse import unquote

from lxml import etree

from flowreader.core.xml_utils import (
    children_named,
    descendants_named,
    first_child,
    parse_xml,
    text_of,
)
from flowreader.errors import PackageError, PackageErrorKind
from flowreader.models.epub import ManifestEntry, PackageDocument, PackageMetadata

log = logging.getLogger(__name__)

METADATA_FIELDS = ("title", "creator", "language", "identifier", "publisher", "date", "rights")


class PackageParser:
    """Parse a package document into metadata, manifest and spine."""

    def __init__(self, opf_path: Path):
        self.opf_path = Path(opf_path)

    def parse(self) -> PackageDocument:
        """Parse the package document.

        Raises:
            PackageError: If the document cannot be parsed or lacks its
                metadata, manifest or spine section
        """
        try:
            root = parse_xml(self.opf_path)
        except (OSError, etree.XMLSyntaxError) as e:
            raise PackageError(
                PackageErrorKind.INVALID_OPF, f"Cannot parse {self.opf_path.name}: {e}"
            ) from e

        metadata = self._get_metadata(root)
        resources = self._get_manifest(root)
        spine_element = first_child(root, "spine")
        if spine_element is None:
            raise PackageError(PackageErrorKind.INVALID_SPINE)

        manifest = {key: entry for key, entry in resources.items() if entry.is_content}
        spine = self._get_spine(spine_element)
        log.debug(
            "Parsed %s: %d resources, %d content, %d spine entries",
            self.opf_path.name,
            len(resources),
            len(manifest),
            len(spine),
        )

        return PackageDocument(
            opf_path=self.opf_path.resolve(),
            metadata=metadata,
            manifest=manifest,
            resources=resources,
            spine=spine,
            toc_id=spine_element.get("toc") or None,
        )

    def _get_metadata(self, root: etree._Element) -> PackageMetadata:
        """Extract first-match Dublin Core fields; absent ones use defaults."""
        element = first_child(root, "metadata")
        if element is None:
            raise PackageError(PackageErrorKind.INVALID_METADATA)

        values: dict[str, str] = {}
        for name in METADATA_FIELDS:
            matches = descendants_named(element, name)
            value = text_of(matches[0]) if matches else None
            if value is not None:
                values[name] = value
        return PackageMetadata(**values)

    def _get_manifest(self, root: etree._Element) -> dict[str, ManifestEntry]:
        """Collect every well-formed manifest item, keyed by id."""
        element = first_child(root, "manifest")
        if element is None:
            raise PackageError(PackageErrorKind.INVALID_MANIFEST)

        entries: dict[str, ManifestEntry] = {}
        for item in children_named(element, "item"):
            item_id = item.get("id")
            href = item.get("href")
            media_type = item.get("media-type")
            if not item_id or not href or not media_type:
                log.debug("Skipping incomplete manifest item: %s", dict(item.attrib))
                continue
            # Last one wins on duplicate ids
            entries[item_id] = ManifestEntry(
                id=item_id,
                href=unquote(href),
                media_type=media_type,
                properties=item.get("properties"),
            )
        return entries

    def _get_spine(self, element: etree._Element) -> tuple[str, ...]:
        """Reading order as manifest ids."""
        return tuple(
            idref for idref in (ref.get("idref") for ref in children_named(element, "itemref")) if idref
        )


def parse_package(opf_path: Path) -> PackageDocument:
    """Parse the package document at ``opf_path``."""
    return PackageParser(opf_path).parse()
