"""Entry-point for the docx templater: create templates from a DOCX, or render one."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import TemplateError

from docx_templater.model.schema_model import BlockSchema
from docx_templater.model.template_model import RenderRequest
from docx_templater.parser.block_extractor import extract_blocks
from docx_templater.parser.docx_loader import read_body
from docx_templater.parser.schema_inferencer import infer_schemas
from docx_templater.renderer.block_renderer import render_docx
from docx_templater.utils.errors import TemplaterError
from docx_templater.utils.logger import get_logger, set_verbosity
from docx_templater.utils.template_store import TemplateStore

LOGGER = get_logger(__name__)

DEFAULT_TEMPLATES_DIR = "templates"


def create_templates(docx_path: Path, out_dir: Path) -> List[BlockSchema]:
    """Extract the marked blocks of a DOCX into ``out_dir`` with their schemas."""
    store = TemplateStore(Path(out_dir))
    document_xml = read_body(Path(docx_path))
    blocks = extract_blocks(document_xml)
    LOGGER.debug("Found %d blocks in %s", len(blocks), Path(docx_path).name)

    store.save_fragments(blocks)
    schemas = infer_schemas(blocks)
    store.save_schemas(schemas)
    return schemas


def render_document(templates_dir: Path, docx_path: Path, schema_path: Path) -> Path:
    """Render the blocks listed in ``schema_path`` into ``rendered_<docx name>``."""
    requests = RenderRequest.load_all(Path(schema_path))
    return render_docx(Path(templates_dir), Path(docx_path), requests)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docx-templater",
        description="Generate DOCX files from Jinja XML templates, or extract templates from a DOCX",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Extract template blocks and their schemas from a DOCX")
    create.add_argument("--docx", required=True, type=Path, help="Source DOCX containing block markers")
    create.add_argument(
        "--out",
        type=Path,
        default=Path(DEFAULT_TEMPLATES_DIR),
        help="Directory to store extracted templates (created if missing)",
    )

    render = commands.add_parser("render", help="Render a DOCX from templates and a render schema")
    render.add_argument("--templates", required=True, type=Path, help="Directory containing template XML files")
    render.add_argument("--docx", required=True, type=Path, help="DOCX whose body is replaced")
    render.add_argument(
        "--schema", required=True, type=Path, help="JSON list of {block_name, block_data} records"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    set_verbosity(args.verbose)

    try:
        if args.command == "create":
            create_templates(args.docx, args.out)
            LOGGER.info("Templates and schemas created in %s", args.out)
        else:
            output = render_document(args.templates, args.docx, args.schema)
            LOGGER.info("Successfully rendered %s -> %s", args.docx.name, output.name)
    except (TemplaterError, TemplateError, ValueError) as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
