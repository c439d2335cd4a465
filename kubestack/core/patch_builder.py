"""Build JSON patches from change records."""

from typing import Iterable

from kubestack.core.differ import diff
from kubestack.core.errors import InternalDiffError
from kubestack.core.pointer import encode_path
from kubestack.core.schema.change import ChangeKind, ChangeRecord
from kubestack.core.schema.document import Document
from kubestack.core.schema.patch import Patch, PatchOp


def build_patch(records: Iterable[ChangeRecord]) -> Patch:
    """Map change records to patch operations, keeping their order.

    - ADD → ``{"op": "add", "path", "value"}``
    - REMOVE → ``{"op": "remove", "path"}``
    - REPLACE → ``{"op": "replace", "path", "value"}``

    Args:
        records: Change records as produced by ``diff``

    Returns:
        Patch with one operation per record

    Raises:
        InternalDiffError: If a record has an unknown change kind
    """
    ops = []
    for record in records:
        path = encode_path(record.path)
        if record.kind is ChangeKind.REMOVE:
            ops.append(PatchOp(op="remove", path=path))
        elif record.kind is ChangeKind.ADD:
            ops.append(PatchOp(op="add", path=path, value=record.new_value))
        elif record.kind is ChangeKind.REPLACE:
            ops.append(PatchOp(op="replace", path=path, value=record.new_value))
        else:
            raise InternalDiffError(f"Unknown diff operator: {record.kind!r}")
    return Patch(ops=ops)


def json_patch(patch_to: Document, patch_from: Document) -> Patch:
    """Produce the patch that turns ``patch_to`` into ``patch_from``.

    Used to patch a live resource (``patch_to``) into its declared state
    (``patch_from``).

    Example:
        >>> live = {"metadata": {"labels": {"a/b": "x"}}}
        >>> declared = {"metadata": {"labels": {"a/b": "y"}}}
        >>> json_patch(live, declared).to_list()
        [{'op': 'replace', 'path': '/metadata/labels/a~1b', 'value': 'y'}]
    """
    return build_patch(diff(patch_to, patch_from))
