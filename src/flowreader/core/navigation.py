"""Chapter titles from the book's navigation document (EPUB 3 nav or NCX)."""

import logging
import posixpath
import warnings
from pathlib import Path
from urllib.parse import unquote

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from lxml import etree

from flowreader.core.archive import resolve_within
from flowreader.core.xml_utils import descendants_named, first_child, parse_xml, text_of
from flowreader.models.epub import ManifestEntry, PackageDocument

# Suppress XML parsing warnings - nav documents are XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)

NCX_MEDIA_TYPE = "application/x-dtbncx+xml"


def _resolve_href(doc_href: str, link: str) -> str | None:
    """Resolve a link inside ``doc_href`` to a path relative to the OPF dir."""
    target = unquote(link.split("#", 1)[0]).strip()
    if not target or "://" in target:
        return None
    return posixpath.normpath(posixpath.join(posixpath.dirname(doc_href), target))


def _find_nav_entry(package: PackageDocument) -> ManifestEntry | None:
    for entry in package.resources.values():
        if entry.properties and "nav" in entry.properties.split():
            return entry
    return None


def _find_ncx_entry(package: PackageDocument) -> ManifestEntry | None:
    if package.toc_id and package.toc_id in package.resources:
        return package.resources[package.toc_id]
    for entry in package.resources.values():
        if entry.media_type == NCX_MEDIA_TYPE:
            return entry
    return None


def _titles_from_nav(entry: ManifestEntry, path: Path) -> dict[str, str]:
    soup = BeautifulSoup(path.read_bytes(), "lxml")
    navs = soup.find_all("nav")
    if not navs:
        return {}
    toc_nav = next((nav for nav in navs if nav.get("epub:type") == "toc"), navs[0])

    titles: dict[str, str] = {}
    for link in toc_nav.find_all("a", href=True):
        href = _resolve_href(entry.href, link["href"])
        title = link.get_text(" ", strip=True)
        if href and title and href not in titles:
            titles[href] = title
    return titles


def _titles_from_ncx(entry: ManifestEntry, path: Path) -> dict[str, str]:
    root = parse_xml(path)
    titles: dict[str, str] = {}
    for point in descendants_named(root, "navPoint"):
        label = first_child(point, "navLabel")
        content = first_child(point, "content")
        if label is None or content is None:
            continue
        title = text_of(first_child(label, "text"))
        href = _resolve_href(entry.href, content.get("src") or "")
        if href and title and href not in titles:
            titles[href] = title
    return titles


def collect_titles(package: PackageDocument, root: Path | None = None) -> dict[str, str]:
    """Map content hrefs (relative to the OPF dir) to navigation labels.

    Prefers the EPUB 3 nav document and falls back to the NCX. Navigation
    is optional, so any failure yields an empty mapping. Documents outside
    ``root`` (default: the OPF dir) are ignored.
    """
    root = root if root is not None else package.base_dir
    sources = (
        (_find_nav_entry(package), _titles_from_nav),
        (_find_ncx_entry(package), _titles_from_ncx),
    )
    for entry, reader in sources:
        if entry is None:
            continue
        try:
            titles = reader(entry, resolve_within(root, package.base_dir, entry.href))
        except (OSError, etree.XMLSyntaxError, ValueError) as e:
            log.warning("Ignoring unreadable navigation document %s: %s", entry.href, e)
            continue
        if titles:
            return titles
    return {}


def apply_titles(package: PackageDocument, titles: dict[str, str]) -> PackageDocument:
    """Return a package whose content entries carry navigation titles."""
    if not titles:
        return package

    manifest = {}
    for key, entry in package.manifest.items():
        title = titles.get(posixpath.normpath(entry.href))
        if title and not entry.title:
            entry = entry.model_copy(update={"title": title})
        manifest[key] = entry
    return package.model_copy(update={"manifest": manifest})
