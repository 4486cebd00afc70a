"""
Queryable view over a fetched HTML page.

Analyzers only talk to Document and Element, never to BeautifulSoup
directly, so every heuristic can be exercised against a small HTML fixture.
"""
import logging
import re
from typing import List, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from soupsieve import SelectorSyntaxError

from app.features.scan.exceptions import FetchError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

# Text inside these tags is never visible page copy
NON_TEXT_TAGS = {"script", "style", "noscript", "template"}


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _safe_select(root: Tag, selector: str) -> List[Tag]:
    try:
        return root.select(selector)
    except (SelectorSyntaxError, ValueError) as e:
        logger.debug(f"Ignoring unusable selector {selector!r}: {e}")
        return []


class Element:
    """A single parsed element."""

    def __init__(self, tag: Tag):
        self._tag = tag

    @property
    def tag(self) -> str:
        return (self._tag.name or "").lower()

    def attr(self, name: str) -> Optional[str]:
        """Attribute value, or None when the attribute is absent."""
        value = self._tag.get(name)
        if value is None:
            return None
        # bs4 hands multi-valued attributes (class, rel) back as lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def has_attr(self, name: str) -> bool:
        return self._tag.has_attr(name)

    def text(self) -> str:
        if self.tag in NON_TEXT_TAGS:
            return (self._tag.string or "").strip()

        parts = []
        for node in self._tag.descendants:
            # Comments, CDATA and doctypes are NavigableString subclasses
            if type(node) is not NavigableString:
                continue
            if node.parent is not None and node.parent.name in NON_TEXT_TAGS:
                continue
            parts.append(str(node))
        return collapse_whitespace("".join(parts))

    def select(self, selector: str) -> List["Element"]:
        return [Element(tag) for tag in _safe_select(self._tag, selector)]

    def __repr__(self) -> str:
        return f"<Element {self.tag}>"


class Document:
    """A parsed page plus its raw source."""

    def __init__(self, soup: BeautifulSoup, html: str):
        self._soup = soup
        self.html = html

    @classmethod
    def from_html(cls, html: Union[bytes, str]) -> "Document":
        """
        Parse untrusted HTML. Malformed markup is parsed best-effort; only an
        empty page or a parser crash is treated as unparseable.

        Raw bytes are decoded by BeautifulSoup, which reads a BOM or
        <meta charset> before guessing; `html` keeps the decoded source.

        Raises:
            FetchError: the page offers nothing to analyze
        """
        if html is None or not html.strip():
            raise FetchError("Fetched document is empty")

        try:
            soup = BeautifulSoup(html, "lxml")
        except Exception as e:
            raise FetchError(f"Could not parse document: {e}") from e

        if soup.find(True) is None:
            raise FetchError("Fetched document contains no elements")

        if isinstance(html, bytes):
            try:
                html = html.decode(soup.original_encoding or "utf-8", errors="replace")
            except LookupError:
                html = html.decode("utf-8", errors="replace")

        return cls(soup, html)

    def select(self, selector: str) -> List[Element]:
        return [Element(tag) for tag in _safe_select(self._soup, selector)]

    def select_first(self, selector: str) -> Optional[Element]:
        matches = self.select(selector)
        return matches[0] if matches else None

    def text(self, selector: str = "body") -> str:
        """Whitespace-collapsed text of the first match, or "" when nothing matches."""
        element = self.select_first(selector)
        return element.text() if element is not None else ""
