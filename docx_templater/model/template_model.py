"""Models shared by extraction and rendering of template blocks."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping

from docx_templater.utils.errors import PackageIOError


@dataclass(slots=True)
class RenderRequest:
    """One entry of a render schema: a block name and the data bound to it."""

    block_name: str
    block_data: Any = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RenderRequest":
        if not isinstance(payload, Mapping):
            raise ValueError(f"Render schema entry must be an object, got {type(payload).__name__}")
        if "block_name" not in payload:
            raise ValueError("Render schema entry is missing 'block_name'")
        return cls(block_name=str(payload["block_name"]), block_data=payload.get("block_data"))

    @classmethod
    def load_all(cls, schema_path: Path) -> List["RenderRequest"]:
        """Read a JSON list of ``{block_name, block_data}`` records."""
        try:
            payload = json.loads(Path(schema_path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise PackageIOError(f"Cannot read render schema {schema_path}: {exc}") from exc
        if not isinstance(payload, list):
            raise ValueError("Render schema must be a JSON list of block records")
        return [cls.from_dict(item) for item in payload]


@dataclass(slots=True)
class BodyLayout:
    """Source text of a document split around its body element.

    ``prefix`` and ``suffix`` are everything before and after the body,
    ``open_tag``/``close_tag`` are the body's own tags as written, and
    ``section_properties`` is the raw trailing ``w:sectPr`` (empty if absent).
    """

    prefix: str
    open_tag: str
    close_tag: str
    section_properties: str
    suffix: str

    def assemble(self, content: str) -> str:
        """Return the full document with ``content`` as the new body."""
        return f"{self.prefix}{self.open_tag}{content}{self.section_properties}{self.close_tag}{self.suffix}"
