"""Persist extracted fragments and inferred schemas on disk."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Mapping

from docx_templater.model.schema_model import BlockSchema
from docx_templater.utils.errors import PackageIOError
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

TEMPLATE_SUFFIX = ".xml"
SCHEMAS_FILENAME = "schemas.json"


class TemplateStore:
    """Directory holding one ``<block>.xml`` file per fragment plus schemas.json.

    Files are written one at a time; when a write fails, fragments stored
    before the failure are left in place.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def fragment_path(self, block_name: str) -> Path:
        return self.directory / f"{block_name}{TEMPLATE_SUFFIX}"

    @property
    def schemas_path(self) -> Path:
        return self.directory / SCHEMAS_FILENAME

    def save_fragments(self, blocks: Mapping[str, str]) -> List[Path]:
        """Write every fragment as a standalone UTF-8 file, one per block."""
        written: List[Path] = []
        for name, content in blocks.items():
            path = self.fragment_path(name)
            self._write(path, content)
            LOGGER.debug("Stored fragment %s (%d chars)", path.name, len(content))
            written.append(path)
        return written

    def save_schemas(self, schemas: Iterable[BlockSchema]) -> Path:
        """Persist all block schemas as a single pretty-printed JSON list."""
        payload = [schema.to_dict() for schema in schemas]
        self._write(self.schemas_path, json.dumps(payload, indent=2, ensure_ascii=False))
        return self.schemas_path

    def _write(self, path: Path, content: str) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise PackageIOError(f"Cannot write {path}: {exc}") from exc
