"""Change records produced by the structural diff computer."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

from kubestack.core.schema.document import Token


class ChangeKind(Enum):
    """How a value differs between the "to" and "from" documents."""

    ADD = "+"
    REMOVE = "-"
    REPLACE = "~"


@dataclass(frozen=True)
class ChangeRecord:
    """One difference between two documents.

    Records compare a "to" document (usually the live resource) against a
    "from" document (usually the declared one):

    - ADD: present in "from", absent in "to"; ``new_value`` holds it
    - REMOVE: present in "to", absent in "from"; ``old_value`` holds it
    - REPLACE: present in both with different values

    Attributes:
        kind: The change kind
        path: Raw tokens leading to the value (str keys, int indices)
        old_value: Value in "to" (None for ADD)
        new_value: Value in "from" (None for REMOVE)
    """

    kind: ChangeKind
    path: Tuple[Token, ...]
    old_value: Any = None
    new_value: Any = None
