"""Render stored block templates with data and splice them into a DOCX body."""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from jinja2 import TemplateNotFound

from docx_templater.model.template_model import RenderRequest
from docx_templater.parser.document_parser import parse_document
from docx_templater.parser.docx_loader import read_body, write_body
from docx_templater.renderer.environment import create_environment
from docx_templater.utils.errors import PartNotFoundError
from docx_templater.utils.logger import get_logger
from docx_templater.utils.template_store import TemplateStore

LOGGER = get_logger(__name__)

RENDERED_PREFIX = "rendered_"


class BlockRenderer:
    """Renders blocks from a template directory, in the order requested."""

    def __init__(self, templates_dir: Path) -> None:
        self._store = TemplateStore(templates_dir)
        self._environment = create_environment(self._store.directory)

    def render_blocks(self, requests: Sequence[RenderRequest]) -> List[str]:
        rendered: List[str] = []
        for request in requests:
            template_name = self._store.fragment_path(request.block_name).name
            try:
                template = self._environment.get_template(template_name)
            except TemplateNotFound as exc:
                raise PartNotFoundError(
                    f"No template for block {request.block_name!r} in {self._store.directory}"
                ) from exc
            rendered.append(template.render(_context(request)))
            LOGGER.debug("Rendered block %r", request.block_name)
        return rendered

    def render_document(self, requests: Sequence[RenderRequest], document_xml: str) -> str:
        """Replace the body content of ``document_xml`` with the rendered blocks.

        The body's own tags, its trailing section properties and everything
        outside the body are kept exactly as in the source.
        """
        layout = parse_document(document_xml).layout()
        return layout.assemble("".join(self.render_blocks(requests)))


def rendered_path(docx_path: Path) -> Path:
    docx_path = Path(docx_path)
    return docx_path.with_name(f"{RENDERED_PREFIX}{docx_path.name}")


def render_docx(templates_dir: Path, docx_path: Path, requests: Sequence[RenderRequest]) -> Path:
    """Render ``requests`` into a copy of ``docx_path`` and return the new path."""
    document_xml = read_body(docx_path)
    new_document_xml = BlockRenderer(templates_dir).render_document(requests, document_xml)
    return write_body(docx_path, rendered_path(docx_path), new_document_xml)


def _context(request: RenderRequest) -> dict:
    if isinstance(request.block_data, dict):
        return request.block_data
    if request.block_data is not None:
        LOGGER.warning("Data for block %r is not an object; rendering without data", request.block_name)
    return {}
