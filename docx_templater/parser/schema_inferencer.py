"""Infer the data shape a block template expects from its Jinja AST.

Only two constructs contribute: output expressions (``{{ a.b.c }}``) and for
loops (``{% for item in a.items %}``). Everything else, including filters,
calls and subscripts, is ignored. Loop variables are tracked in an alias
table so ``{{ item.name }}`` inside the loop lands under ``a.items[].name``.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from jinja2 import Environment, nodes

from docx_templater.model.schema_model import BlockSchema, SchemaNode
from docx_templater.renderer.environment import create_environment
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

AliasTable = Dict[str, List[str]]


class SchemaInferencer:
    """Walks a parsed template and widens a schema tree as references appear."""

    def __init__(self, environment: Optional[Environment] = None) -> None:
        self._environment = environment or create_environment()

    def infer(self, source: str, name: Optional[str] = None) -> SchemaNode:
        """Return the schema for ``source``.

        Raises ``jinja2.TemplateSyntaxError`` when the template does not parse;
        no partial schema is produced in that case.
        """
        template = self._environment.parse(source, name=name)
        root = SchemaNode()
        self._visit(template, root, {})
        return root

    def _visit(self, node: nodes.Node, root: SchemaNode, aliases: AliasTable) -> None:
        if isinstance(node, nodes.Template):
            for child in node.body:
                self._visit(child, root, aliases)
        elif isinstance(node, nodes.Output):
            for expr in node.nodes:
                if isinstance(expr, nodes.TemplateData):
                    continue
                path = _resolve(expr, aliases)
                if path is not None:
                    root.ensure_path(path)
        elif isinstance(node, nodes.For):
            self._visit_for(node, root, aliases)

    def _visit_for(self, node: nodes.For, root: SchemaNode, aliases: AliasTable) -> None:
        path = _resolve(node.iter, aliases)
        if path is None:
            return
        target = root.ensure_path(path)
        target.become(SchemaNode.array(target.clone()))

        if not isinstance(node.target, nodes.Name):
            LOGGER.debug("Skipping loop body with unpacking target over %s", ".".join(path))
            return
        loop_aliases = dict(aliases)
        loop_aliases[node.target.name] = path
        for child in node.body:
            self._visit(child, root, loop_aliases)


def flatten_path(expr: nodes.Expr) -> Optional[Tuple[str, List[str]]]:
    """Split ``a.b.c`` into ``("a", ["b", "c"])``; ``None`` for anything else."""
    attributes: List[str] = []
    current = expr
    while isinstance(current, nodes.Getattr):
        attributes.append(current.attr)
        current = current.node
    if not isinstance(current, nodes.Name):
        return None
    attributes.reverse()
    return current.name, attributes


def _resolve(expr: nodes.Expr, aliases: Mapping[str, List[str]]) -> Optional[List[str]]:
    flattened = flatten_path(expr)
    if flattened is None:
        return None
    variable, attributes = flattened
    return list(aliases.get(variable, [variable])) + attributes


def infer_schemas(blocks: Mapping[str, str], environment: Optional[Environment] = None) -> List[BlockSchema]:
    """Infer one :class:`BlockSchema` per block, in block order."""
    inferencer = SchemaInferencer(environment)
    schemas: List[BlockSchema] = []
    for name, content in blocks.items():
        schema = inferencer.infer(content, name=name)
        LOGGER.debug("Block %r expects %s", name, schema.kind.value)
        schemas.append(BlockSchema(block_name=name, block_data_type=schema))
    return schemas
