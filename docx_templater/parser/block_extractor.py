"""Split the document body into named template blocks.

Authors delimit a block with two marker paragraphs::

    #! BLOCK: invoice_lines
    ... paragraphs and tables ...
    #! ENDBLOCK

Everything between the markers becomes the block's template text. Inside a
block, a paragraph starting with ``#!`` carries raw template syntax (loops,
conditions): its text is emitted without the surrounding Word markup.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from docx_templater.parser.document_parser import BodyChild, parse_document
from docx_templater.utils.logger import get_logger
from docx_templater.utils.text_normalizer import ESCAPE_SENTINEL, unescape_authoring_line

LOGGER = get_logger(__name__)

BLOCK_SENTINEL = "#! BLOCK:"
ENDBLOCK_SENTINEL = "#! ENDBLOCK"


@dataclass(slots=True)
class _OpenBlock:
    name: str
    lines: List[str] = field(default_factory=list)


class BlockExtractor:
    """Scans the body's top-level elements and collects marked blocks."""

    def __init__(self, xml_text: str) -> None:
        self._xml_text = xml_text

    def extract(self) -> Dict[str, str]:
        """Return block name -> template text for every closed block.

        Blocks left open when the body ends are dropped. A repeated block name
        replaces the earlier block.
        """
        body = parse_document(self._xml_text)
        blocks: Dict[str, str] = {}
        current: Optional[_OpenBlock] = None

        for child in body.children():
            text = child.text
            if current is None:
                if text.startswith(BLOCK_SENTINEL):
                    current = _OpenBlock(name=text[len(BLOCK_SENTINEL):].strip())
                    LOGGER.debug("Opening block %r", current.name)
                continue

            if text.lstrip().startswith(ENDBLOCK_SENTINEL):
                if current.name in blocks:
                    LOGGER.warning("Block %r defined more than once; keeping the last one", current.name)
                blocks[current.name] = "\n".join(current.lines)
                LOGGER.debug("Closed block %r with %d elements", current.name, len(current.lines))
                current = None
            else:
                current.lines.append(self._block_line(child, text))

        if current is not None:
            LOGGER.warning("Block %r has no %s marker and was dropped", current.name, ENDBLOCK_SENTINEL)
        return blocks

    @staticmethod
    def _block_line(child: BodyChild, text: str) -> str:
        if text.lstrip().startswith(ESCAPE_SENTINEL):
            return unescape_authoring_line(text)
        return child.raw_xml


def extract_blocks(xml_text: str) -> Dict[str, str]:
    return BlockExtractor(xml_text).extract()
