"""Apply JSON patches to documents.

Operations are applied sequentially to a deep copy, so the input document is
never modified.
"""

import copy
from typing import Any, List

from kubestack.core.errors import PatchApplyError
from kubestack.core.pointer import decode_pointer
from kubestack.core.schema.document import Document
from kubestack.core.schema.patch import PATCH_OPS, Patch, PatchOp


def apply_patch(document: Document, patch: Patch) -> Document:
    """Apply every operation of a patch and return the patched document.

    Args:
        document: Document to patch (left unchanged)
        patch: Operations to apply in order

    Returns:
        New patched document

    Example:
        >>> doc = {"spec": {"replicas": 2}}
        >>> apply_patch(doc, Patch([PatchOp("replace", "/spec/replicas", 3)]))
        {'spec': {'replicas': 3}}
    """
    result = copy.deepcopy(document)
    for op in patch:
        result = apply_op(result, op)
    return result


def apply_op(document: Document, op: PatchOp) -> Document:
    """Apply a single operation in place (the root may be replaced).

    Returns:
        The document after the operation

    Raises:
        PatchApplyError: If the operation is unknown or its path is invalid
    """
    if op.op not in PATCH_OPS:
        raise PatchApplyError(f"Unknown patch operation: {op.op}", patch_op=op)
    try:
        tokens = decode_pointer(op.path)
    except ValueError as e:
        raise PatchApplyError(str(e), patch_op=op) from e

    if not tokens:
        if op.op == "remove":
            raise PatchApplyError("Cannot remove the document root", patch_op=op)
        return copy.deepcopy(op.value)

    parent = _resolve(document, tokens[:-1], op)
    last = tokens[-1]

    if isinstance(parent, dict):
        if op.op != "add" and last not in parent:
            raise PatchApplyError(f"Path not found: {op.path}", patch_op=op)
        if op.op == "remove":
            del parent[last]
        else:
            parent[last] = copy.deepcopy(op.value)
    elif isinstance(parent, list):
        if op.op == "add" and last == "-":
            parent.append(copy.deepcopy(op.value))
            return document
        index = _list_index(parent, last, op, allow_end=(op.op == "add"))
        if op.op == "add":
            parent.insert(index, copy.deepcopy(op.value))
        elif op.op == "remove":
            del parent[index]
        else:
            parent[index] = copy.deepcopy(op.value)
    else:
        raise PatchApplyError(
            f"Cannot address into {type(parent).__name__} at {op.path}", patch_op=op
        )
    return document


def _resolve(document: Any, tokens: List[str], op: PatchOp) -> Any:
    current = document
    for token in tokens:
        if isinstance(current, dict):
            if token not in current:
                raise PatchApplyError(f"Path not found: {op.path}", patch_op=op)
            current = current[token]
        elif isinstance(current, list):
            current = current[_list_index(current, token, op)]
        else:
            raise PatchApplyError(f"Path not found: {op.path}", patch_op=op)
    return current


def _list_index(sequence: list, token: str, op: PatchOp, allow_end: bool = False) -> int:
    if not token.isdigit() or (len(token) > 1 and token.startswith("0")):
        raise PatchApplyError(f"Invalid list index {token!r} in {op.path}", patch_op=op)
    index = int(token)
    limit = len(sequence) if allow_end else len(sequence) - 1
    if index > limit:
        raise PatchApplyError(f"List index {index} out of range in {op.path}", patch_op=op)
    return index
