"""Jinja environment shared by schema inference and block rendering."""
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from jinja2 import ChainableUndefined, Environment, FileSystemLoader, select_autoescape


class BlockEnvironment(Environment):
    """Environment whose dotted access reads mapping keys before attributes.

    Block data comes from JSON, so ``order.items`` must reach the ``items``
    key rather than the ``dict.items`` method.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except KeyError:
                pass
        return super().getattr(obj, attribute)


def create_environment(templates_dir: Optional[Path] = None) -> Environment:
    """Build the environment used to parse and render block templates.

    Block files are XML, so substituted values are escaped. Missing data
    (including attribute chains on missing data) renders as an empty string.
    """
    loader = FileSystemLoader(str(templates_dir)) if templates_dir is not None else None
    return BlockEnvironment(
        loader=loader,
        autoescape=select_autoescape(enabled_extensions=("xml",), default_for_string=True),
        undefined=ChainableUndefined,
    )
