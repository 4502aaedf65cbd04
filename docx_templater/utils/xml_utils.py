"""Helper functions to parse document XML and locate element source spans."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional
from xml.etree import ElementTree as ET
from xml.parsers import expat

from docx_templater.utils.errors import MalformedXmlError


@dataclass(slots=True)
class ElementSpan:
    """Byte offsets of one element inside the encoded source document.

    ``start``/``end`` cover the whole element, ``open_end`` is the offset just
    after the start tag and ``close_start`` the offset of the end tag. For an
    empty-element tag (``<w:br/>``) ``open_end == close_start == end``.
    """

    name: str
    start: int
    open_end: int
    close_start: int = -1
    end: int = -1
    children: List["ElementSpan"] = field(default_factory=list)

    @property
    def local_name(self) -> str:
        return local_name(self.name)

    @property
    def is_empty(self) -> bool:
        return self.open_end == self.end

    def iter(self) -> Iterator["ElementSpan"]:
        """Yield this span and every descendant span in document order."""
        yield self
        for child in self.children:
            yield from child.iter()


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` or ``prefix:`` qualifier from a tag name."""
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


def parse_xml(data: bytes) -> ET.ElementTree:
    """Parse XML from raw bytes with sane defaults."""
    try:
        return ET.ElementTree(ET.fromstring(data))
    except ET.ParseError as exc:
        raise MalformedXmlError(f"Document XML is not well formed: {exc}") from exc


def find_first(root: ET.Element, name: str) -> Optional[ET.Element]:
    """Return the first element (document order) with the given local name."""
    for element in root.iter():
        if local_name(element.tag) == name:
            return element
    return None


def element_text(element: ET.Element) -> str:
    """Concatenate every text node below ``element``."""
    return "".join(element.itertext())


def scan_spans(data: bytes) -> ElementSpan:
    """Return the span tree of the document's root element.

    Offsets index into ``data``; slicing ``data[span.start:span.end]`` yields
    the element exactly as written in the source.
    """
    parser = expat.ParserCreate()
    stack: List[ElementSpan] = []
    roots: List[ElementSpan] = []

    def start_element(name: str, _attrs: dict) -> None:
        start = parser.CurrentByteIndex
        span = ElementSpan(name=name, start=start, open_end=_tag_end(data, start))
        if stack:
            stack[-1].children.append(span)
        else:
            roots.append(span)
        stack.append(span)

    def end_element(_name: str) -> None:
        span = stack.pop()
        if data[span.open_end - 2:span.open_end] == b"/>":
            span.close_start = span.end = span.open_end
            return
        span.close_start = parser.CurrentByteIndex
        span.end = data.index(b">", span.close_start) + 1

    parser.StartElementHandler = start_element
    parser.EndElementHandler = end_element
    try:
        parser.Parse(data, True)
    except expat.ExpatError as exc:
        raise MalformedXmlError(f"Document XML is not well formed: {exc}") from exc
    return roots[0]


def _tag_end(data: bytes, start: int) -> int:
    """Return the offset just past the ``>`` closing the tag at ``start``."""
    quote: Optional[int] = None
    for index in range(start + 1, len(data)):
        char = data[index]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in (0x22, 0x27):  # " or '
            quote = char
        elif char == 0x3E:  # >
            return index + 1
    raise MalformedXmlError(f"Unterminated tag at offset {start}")
