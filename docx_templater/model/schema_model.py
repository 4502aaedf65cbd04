"""Schema model describing the data shape a template fragment expects."""
from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional


class SchemaKind(str, Enum):
    """Tag of a schema node, serialised verbatim as ``kind``."""

    STRING = "String"
    OBJECT = "Object"
    ARRAY = "Array"
    UNKNOWN = "Unknown"


@dataclass(slots=True)
class SchemaNode:
    """Recursive shape description: scalar, object of fields, or array.

    Nodes are refined in place while a template is analysed, so a reference
    obtained from :meth:`ensure_path` stays valid when the node changes kind.
    """

    kind: SchemaKind = SchemaKind.UNKNOWN
    properties: Dict[str, "SchemaNode"] = field(default_factory=dict)
    element_type: Optional["SchemaNode"] = None

    @classmethod
    def string(cls) -> "SchemaNode":
        return cls(kind=SchemaKind.STRING)

    @classmethod
    def object(cls, properties: Optional[Dict[str, "SchemaNode"]] = None) -> "SchemaNode":
        return cls(kind=SchemaKind.OBJECT, properties=dict(properties or {}))

    @classmethod
    def array(cls, element_type: "SchemaNode") -> "SchemaNode":
        return cls(kind=SchemaKind.ARRAY, element_type=element_type)

    def ensure_path(self, path: Iterable[str]) -> "SchemaNode":
        """Make sure ``path`` exists below this node and return its leaf.

        Arrays are traversed through their element type, anything that is not
        an object is widened into an empty one, and missing fields default to
        strings. Existing objects and arrays are never narrowed.
        """
        current = self
        for key in path:
            if current.kind is SchemaKind.ARRAY and current.element_type is not None:
                current = current.element_type
            if current.kind is not SchemaKind.OBJECT:
                current.become(SchemaNode.object())
            current = current.properties.setdefault(key, SchemaNode.string())
        return current

    def become(self, other: "SchemaNode") -> None:
        """Replace this node's shape with ``other`` while keeping its identity."""
        self.kind = other.kind
        self.properties = other.properties
        self.element_type = other.element_type

    def clone(self) -> "SchemaNode":
        return deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value}
        if self.kind is SchemaKind.OBJECT:
            payload["properties"] = {name: node.to_dict() for name, node in self.properties.items()}
        elif self.kind is SchemaKind.ARRAY:
            element = self.element_type or SchemaNode()
            payload["element_type"] = element.to_dict()
        return payload


@dataclass(slots=True)
class BlockSchema:
    """Inferred data schema for one named template block."""

    block_name: str
    block_data_type: SchemaNode

    def to_dict(self) -> Dict[str, Any]:
        return {"block_name": self.block_name, "block_data_type": self.block_data_type.to_dict()}
