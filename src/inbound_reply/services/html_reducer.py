import re
from typing import Iterator

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, PreformattedString, Tag

from inbound_reply.config import DEFAULT_REPLY_DELIMITER

_INVISIBLE_TAGS = ("script", "style", "head", "title")
_INLINE_SPACE_RE = re.compile(r"[ \t\f\v\xa0]+")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def _find_marker(soup: BeautifulSoup, marker: str) -> PageElement | None:
    node = soup.find(string=lambda s: bool(s) and marker in s and not isinstance(s, PreformattedString))
    if node is None:
        return None
    parent = node.parent
    # The whole element goes when the marker is its only text.
    if isinstance(parent, Tag) and parent is not soup and parent.get_text().strip() == marker:
        return parent
    return node


def _text_before(soup: BeautifulSoup, stop: PageElement | None) -> Iterator[str]:
    for node in soup.descendants:
        if node is stop:
            break
        if isinstance(node, PreformattedString):
            continue
        if isinstance(node, NavigableString):
            yield str(node)
        elif isinstance(node, Tag) and node.name == "br":
            yield "\n"


def collapse_whitespace(text: str) -> str:
    lines = [_INLINE_SPACE_RE.sub(" ", line).rstrip() for line in text.replace("\r", "").split("\n")]
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines)).strip()


def reduce_html(html: str, marker: str = DEFAULT_REPLY_DELIMITER) -> str:
    """Reduce an HTML body to plain text.

    The element carrying ``marker`` and everything after it in document order
    are dropped, remaining tags are stripped and entities decoded.
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(list(_INVISIBLE_TAGS)):
        tag.decompose()

    stop = _find_marker(soup, marker) if marker else None
    if isinstance(stop, NavigableString):
        # Marker shares a text node with reply content: keep the text before it.
        prefix = str(stop).split(marker, 1)[0]
        text = "".join(_text_before(soup, stop)) + prefix
    else:
        text = "".join(_text_before(soup, stop))
    return collapse_whitespace(text)
