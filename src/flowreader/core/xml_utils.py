"""Namespace-agnostic helpers over lxml trees."""

from pathlib import Path

from lxml import etree

XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


def parse_xml(path: Path) -> etree._Element:
    """Parse an XML file and return its root element.

    Raises:
        OSError: If the file cannot be read
        etree.XMLSyntaxError: If the file is not well-formed
    """
    return etree.parse(str(path), XML_PARSER).getroot()


def local_name(element: etree._Element) -> str:
    """Tag name without its namespace."""
    if not isinstance(element.tag, str):
        return ""  # comments and processing instructions
    return etree.QName(element).localname


def children_named(element: etree._Element, name: str) -> list[etree._Element]:
    """Direct children whose local name is ``name``, in document order."""
    return [child for child in element if local_name(child) == name]


def first_child(element: etree._Element, name: str) -> etree._Element | None:
    matches = children_named(element, name)
    return matches[0] if matches else None


def descendants_named(element: etree._Element, name: str) -> list[etree._Element]:
    return [node for node in element.iter() if local_name(node) == name]


def text_of(element: etree._Element | None) -> str | None:
    """Stripped text content, or None when empty."""
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None
