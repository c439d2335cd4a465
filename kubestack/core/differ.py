"""Structural diff computer for nested documents.

Compares a "to" document against a "from" document and yields a flat list of
change records, depth-first:

- mappings: removed keys, then common keys (recursed), then added keys, each
  group sorted by the string form of the key
- sequences: strictly positional; common indices ascending, then trailing
  removals from the highest index down, or trailing additions ascending
- anything else: a single REPLACE when the values differ

Sequences are never matched by content. A reordered list shows up as one
REPLACE per index whose value changed, because the resulting patch paths are
index-addressed.
"""

import math
from typing import Any, List, Tuple

from kubestack.core.schema.change import ChangeKind, ChangeRecord
from kubestack.core.schema.document import Document, Token

_SEQUENCE_TYPES = (list, tuple)


def diff(to: Document, from_: Document) -> List[ChangeRecord]:
    """Compute the changes that turn ``to`` into ``from_``.

    Args:
        to: Document the changes are computed against (e.g. live resource)
        from_: Document the changes lead to (e.g. declared resource)

    Returns:
        Change records in discovery order; empty when the documents are equal

    Example:
        >>> live = {"spec": {"ports": [{"port": 8080}]}}
        >>> declared = {"spec": {"ports": [{"port": 80}]}}
        >>> diff(live, declared)
        [ChangeRecord(kind=<ChangeKind.REPLACE: '~'>, path=('spec', 'ports', 0, 'port'),
                      old_value=8080, new_value=80)]
    """
    records: List[ChangeRecord] = []
    _diff_value(to, from_, (), records)
    return records


def _diff_value(
    to: Any, from_: Any, path: Tuple[Token, ...], records: List[ChangeRecord]
) -> None:
    if isinstance(to, dict) and isinstance(from_, dict):
        _diff_mappings(to, from_, path, records)
    elif isinstance(to, _SEQUENCE_TYPES) and isinstance(from_, _SEQUENCE_TYPES):
        _diff_sequences(to, from_, path, records)
    elif _is_container(to) or _is_container(from_) or not scalars_equal(to, from_):
        records.append(ChangeRecord(ChangeKind.REPLACE, path, old_value=to, new_value=from_))


def _diff_mappings(
    to: dict, from_: dict, path: Tuple[Token, ...], records: List[ChangeRecord]
) -> None:
    removed = sorted((key for key in to if key not in from_), key=str)
    common = sorted((key for key in to if key in from_), key=str)
    added = sorted((key for key in from_ if key not in to), key=str)

    for key in removed:
        records.append(ChangeRecord(ChangeKind.REMOVE, path + (key,), old_value=to[key]))
    for key in common:
        _diff_value(to[key], from_[key], path + (key,), records)
    for key in added:
        records.append(ChangeRecord(ChangeKind.ADD, path + (key,), new_value=from_[key]))


def _diff_sequences(
    to: Any, from_: Any, path: Tuple[Token, ...], records: List[ChangeRecord]
) -> None:
    common = min(len(to), len(from_))
    for index in range(common):
        _diff_value(to[index], from_[index], path + (index,), records)

    # Highest index first so each removal leaves earlier indices valid
    for index in range(len(to) - 1, common - 1, -1):
        records.append(ChangeRecord(ChangeKind.REMOVE, path + (index,), old_value=to[index]))
    for index in range(common, len(from_)):
        records.append(ChangeRecord(ChangeKind.ADD, path + (index,), new_value=from_[index]))


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict,) + _SEQUENCE_TYPES)


def _scalar_category(value: Any) -> str:
    # bool is checked first: it is a subclass of int
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return type(value).__name__


def scalars_equal(a: Any, b: Any) -> bool:
    """Type-aware scalar equality.

    ``True`` never equals ``1`` and ``"1"`` never equals ``1``, while ``1``
    equals ``1.0``. ``None`` only equals ``None``. NaN equals NaN so that
    diffing a document against itself is always empty.
    """
    if _scalar_category(a) != _scalar_category(b):
        return False
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    return a == b


def documents_equal(a: Document, b: Document) -> bool:
    """Recursive equality using the same rules as ``diff``."""
    return not diff(a, b)
