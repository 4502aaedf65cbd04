"""Parse document.xml and expose the body's direct children with their source XML."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional
from xml.etree import ElementTree as ET

from docx_templater.model.template_model import BodyLayout
from docx_templater.utils.errors import MalformedXmlError, MissingBodyError
from docx_templater.utils.logger import get_logger
from docx_templater.utils.xml_utils import ElementSpan, element_text, find_first, parse_xml, scan_spans

LOGGER = get_logger(__name__)

BODY_TAG = "body"
SECTION_PROPERTIES_TAG = "sectPr"


@dataclass(slots=True)
class BodyChild:
    """A top-level block of the body: its parsed element and exact source text."""

    element: ET.Element
    raw_xml: str

    @property
    def tag(self) -> str:
        return self.element.tag.split("}", 1)[-1]

    @property
    def text(self) -> str:
        return element_text(self.element)


class DocumentBody:
    """document.xml parsed twice: as an element tree and as source byte spans."""

    def __init__(self, source: bytes, body: ET.Element, span: ElementSpan) -> None:
        self._source = source
        self._body = body
        self._span = span

    def children(self) -> Iterator[BodyChild]:
        """Yield the body's direct element children in document order."""
        for element, span in zip(list(self._body), self._span.children):
            yield BodyChild(element=element, raw_xml=self._slice(span.start, span.end))

    def section_properties(self) -> Optional[BodyChild]:
        for child in self.children():
            if child.tag == SECTION_PROPERTIES_TAG:
                return child
        return None

    def layout(self) -> BodyLayout:
        """Split the source around the body so a new body can be spliced in."""
        span = self._span
        if span.is_empty:
            open_tag = self._slice(span.start, span.end)[:-2].rstrip() + ">"
            close_tag = f"</{span.name}>"
        else:
            open_tag = self._slice(span.start, span.open_end)
            close_tag = self._slice(span.close_start, span.end)
        section = self.section_properties()
        return BodyLayout(
            prefix=self._slice(0, span.start),
            open_tag=open_tag,
            close_tag=close_tag,
            section_properties=section.raw_xml if section is not None else "",
            suffix=self._slice(span.end, len(self._source)),
        )

    def _slice(self, start: int, end: int) -> str:
        return self._source[start:end].decode("utf-8")


class DocumentParser:
    """Locates the body element of a WordprocessingML main document part."""

    def __init__(self, xml_text: str) -> None:
        self._source = xml_text.encode("utf-8")

    def parse(self) -> DocumentBody:
        root = parse_xml(self._source).getroot()
        body = find_first(root, BODY_TAG)
        body_span = self._find_body_span(scan_spans(self._source))
        if body is None or body_span is None:
            raise MissingBodyError("document.xml has no body element")
        if len(body) != len(body_span.children):  # pragma: no cover
            raise MalformedXmlError("Body children could not be matched to their source text")
        LOGGER.debug("Body has %d top-level elements", len(body_span.children))
        return DocumentBody(self._source, body, body_span)

    @staticmethod
    def _find_body_span(root: ElementSpan) -> Optional[ElementSpan]:
        for span in root.iter():
            if span.local_name == BODY_TAG:
                return span
        return None


def parse_document(xml_text: str) -> DocumentBody:
    return DocumentParser(xml_text).parse()
