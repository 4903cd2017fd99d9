"""
Host Document Access
====================

Read-only tree-query capability over the host page. Every resolver in the
core receives a HostDocument explicitly; nothing reads a global document.

The concrete implementation wraps BeautifulSoup trees and evaluates CSS
with soupsieve, so extraction can run against a live capture or against a
synthetic HTML fixture alike.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

import soupsieve
from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Attribute written by the page capture with getBoundingClientRect().top
POSITION_ATTR = "data-assist-top"


class DocumentNode(Protocol):
    """Interface for a single element of the host document."""

    @property
    def tag(self) -> str: ...

    @property
    def text(self) -> str: ...

    @property
    def parent(self) -> Optional["DocumentNode"]: ...

    @property
    def position(self) -> Tuple[Optional[float], int]: ...

    def attr(self, name: str) -> Optional[str]: ...

    def select_one(self, selector: str) -> Optional["DocumentNode"]: ...

    def select(self, selector: str) -> List["DocumentNode"]: ...

    def closest(self, selector: str) -> Optional["DocumentNode"]: ...

    def matches(self, selector: str) -> bool: ...


class _TreeIndex:
    """Document-order index for one parsed tree."""

    def __init__(self, root: Tag, base: int = 0):
        self.order: Dict[int, int] = {id(root): base}
        for offset, node in enumerate(root.descendants, start=1):
            if isinstance(node, Tag):
                self.order[id(node)] = base + offset
        self.size = len(self.order) + base


class SoupNode:
    """DocumentNode backed by a BeautifulSoup Tag."""

    __slots__ = ("_tag", "_index")

    def __init__(self, tag: Tag, index: _TreeIndex):
        self._tag = tag
        self._index = index

    def __repr__(self) -> str:
        return f"SoupNode(<{self._tag.name}> {self.text.strip()[:40]!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SoupNode) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    @property
    def tag(self) -> str:
        return self._tag.name or ""

    @property
    def text(self) -> str:
        return self._tag.get_text()

    @property
    def parent(self) -> Optional["SoupNode"]:
        parent = self._tag.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return SoupNode(parent, self._index)

    @property
    def position(self) -> Tuple[Optional[float], int]:
        """(measured top offset if captured, document order)."""
        top: Optional[float] = None
        raw = self._tag.get(POSITION_ATTR)
        if raw is not None:
            try:
                top = float(raw)
            except (TypeError, ValueError):
                top = None
        return top, self._index.order.get(id(self._tag), -1)

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return " ".join(value)
        return str(value)

    def _wrap(self, tags: Iterable[Tag]) -> List["SoupNode"]:
        return [SoupNode(t, self._index) for t in tags]

    def select_one(self, selector: str) -> Optional["SoupNode"]:
        try:
            found = soupsieve.select_one(selector, self._tag)
        except soupsieve.SelectorSyntaxError:
            logger.debug("Skipping unsupported selector: %s", selector)
            return None
        return SoupNode(found, self._index) if found is not None else None

    def select(self, selector: str) -> List["SoupNode"]:
        try:
            return self._wrap(soupsieve.select(selector, self._tag))
        except soupsieve.SelectorSyntaxError:
            logger.debug("Skipping unsupported selector: %s", selector)
            return []

    def closest(self, selector: str) -> Optional["SoupNode"]:
        try:
            found = soupsieve.closest(selector, self._tag)
        except soupsieve.SelectorSyntaxError:
            return None
        return SoupNode(found, self._index) if found is not None else None

    def matches(self, selector: str) -> bool:
        try:
            return bool(soupsieve.match(selector, self._tag))
        except soupsieve.SelectorSyntaxError:
            return False


def precedes(first: DocumentNode, second: DocumentNode) -> bool:
    """True when `first` is at or above `second` on screen.

    Measured offsets win when both nodes carry one; otherwise document
    order decides.
    """
    first_top, first_order = first.position
    second_top, second_order = second.position
    if first_top is not None and second_top is not None:
        return first_top <= second_top
    return first_order <= second_order


def node_text(node: Optional[DocumentNode]) -> str:
    """Trimmed text content with inner whitespace collapsed."""
    if node is None:
        return ""
    return " ".join(node.text.split())


@dataclass
class HostDocument:
    """The primary tree plus detached sub-documents (shadow trees)."""

    root: DocumentNode
    detached: Sequence[DocumentNode] = field(default_factory=tuple)
    url: str = ""

    @property
    def roots(self) -> List[DocumentNode]:
        return [self.root, *self.detached]


def parse_document(
    html: str,
    shadow_html: Sequence[str] = (),
    url: str = "",
) -> HostDocument:
    """
    Parse a page capture into a HostDocument.

    Args:
        html: Serialized primary document
        shadow_html: Serialized contents of detached shadow roots
        url: Page URL the capture was taken from

    Returns:
        HostDocument ready for selector resolution
    """
    soup = BeautifulSoup(html or "", "html.parser")
    index = _TreeIndex(soup)
    root = SoupNode(soup, index)

    detached: List[DocumentNode] = []
    base = index.size
    for fragment in shadow_html:
        if not fragment:
            continue
        shadow_soup = BeautifulSoup(fragment, "html.parser")
        shadow_index = _TreeIndex(shadow_soup, base=base)
        base = shadow_index.size
        detached.append(SoupNode(shadow_soup, shadow_index))

    return HostDocument(root=root, detached=tuple(detached), url=url)
