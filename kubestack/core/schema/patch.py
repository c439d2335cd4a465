"""JSON patch data structures.

A Patch is the sole artifact kubestack exchanges with a resource store. It is
serialized as an RFC 6902 array::

    [
      {"op": "replace", "path": "/spec/ports/0/port", "value": 80},
      {"op": "remove", "path": "/metadata/labels/tier"},
      {"op": "add", "path": "/metadata/labels/app~1name", "value": "web"}
    ]

``path`` uses the ``/``-delimited pointer syntax with ``~0`` / ``~1`` escapes.
``remove`` operations carry no ``value`` key.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List

PATCH_OPS = ("add", "remove", "replace")


@dataclass
class PatchOp:
    """Single JSON patch operation.

    Attributes:
        op: "add", "remove" or "replace"
        path: Encoded pointer string
        value: New value (ignored for "remove")
    """

    op: str
    path: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"op": self.op, "path": self.path}
        if self.op != "remove":
            result["value"] = self.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchOp":
        return cls(op=data["op"], path=data["path"], value=data.get("value"))


@dataclass
class Patch:
    """Ordered sequence of patch operations.

    Operations keep the order in which the diff discovered them.

    Attributes:
        ops: List of patch operations to apply sequentially
    """

    ops: List[PatchOp] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ops)

    def __iter__(self) -> Iterator[PatchOp]:
        return iter(self.ops)

    def __bool__(self) -> bool:
        return bool(self.ops)

    def to_list(self) -> List[Dict[str, Any]]:
        """Convert to the wire format (list of op dicts)."""
        return [op.to_dict() for op in self.ops]

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_list(), **kwargs)

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> "Patch":
        return cls(ops=[PatchOp.from_dict(item) for item in data])
