"""Convert chapter markup into paragraph-structured plain text.

This is a best-effort regex pipeline, not an HTML parser. Malformed or
deeply nested markup may leave stray characters behind.
"""

import re

_LINE_ENDINGS = re.compile(r"\r\n?")
_SCRIPT_STYLE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_BLOCK_TAG = re.compile(r"</?(?:p|div|h[1-6]|br|li|tr)\b[^>]*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"[ \t]+")
_SPACE_AROUND_NEWLINE = re.compile(r" ?\n ?")
_BLANK_LINES = re.compile(r"\n{2,}")

# &amp; must stay last so "&amp;lt;" decodes to "&lt;" and not "<".
ENTITIES = (
    ("&nbsp;", " "),
    ("&quot;", '"'),
    ("&apos;", "'"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
)


class PlainText(str):
    """Text that has already been normalized."""


def decode_entities(text: str) -> str:
    for entity, char in ENTITIES:
        text = text.replace(entity, char)
    return text


def normalize(raw: str) -> PlainText:
    """Strip markup from ``raw`` and return plain text.

    Never raises. Already-normalized text is returned unchanged, so
    decoded entities are not decoded or stripped a second time.

    That guarantee rides on the ``PlainText`` type. A result converted
    back to a plain ``str`` (``str(text)``, or stored and reloaded) is
    treated as markup again: ``normalize(str(normalize("&amp;lt;")))``
    gives ``"<"``, not ``"&lt;"``.
    """
    if isinstance(raw, PlainText):
        return raw
    if not raw:
        return PlainText("")

    text = _LINE_ENDINGS.sub("\n", raw)
    text = _SCRIPT_STYLE.sub("", text)
    text = _COMMENT.sub("", text)
    text = _BLOCK_TAG.sub("\n", text)
    text = _ANY_TAG.sub("", text)
    text = _SPACES.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _BLANK_LINES.sub("\n\n", text)
    text = decode_entities(text)
    return PlainText(text.strip())
