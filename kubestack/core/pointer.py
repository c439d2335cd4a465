"""Pointer encoding for JSON patch paths (RFC 6901 escaping)."""

import re
from typing import Iterable, List

from kubestack.core.schema.document import Token

# Both escapes happen in one pass so the "~" of a freshly produced "~1" is
# never escaped again.
_ESCAPES = {"~": "~0", "/": "~1"}
_ESCAPE_RE = re.compile(r"[~/]")


def escape_token(token: Token) -> str:
    """Stringify a path token and escape ``~`` and ``/``.

    Example:
        >>> escape_token("a~b/c")
        'a~0b~1c'
    """
    return _ESCAPE_RE.sub(lambda match: _ESCAPES[match.group()], str(token))


def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def encode_path(tokens: Iterable[Token]) -> str:
    """Encode raw key/index tokens into a pointer string.

    Args:
        tokens: Keys and list indices, outermost first

    Returns:
        Pointer of the form ``/tok1/tok2``; ``/`` for an empty path

    Example:
        >>> encode_path(["metadata", "labels", "a/b"])
        '/metadata/labels/a~1b'
        >>> encode_path(["spec", "ports", 0, "port"])
        '/spec/ports/0/port'
    """
    return "/" + "/".join(escape_token(token) for token in tokens)


def decode_pointer(pointer: str) -> List[str]:
    """Split a pointer back into unescaped string tokens.

    ``/`` decodes to the empty path, matching ``encode_path([])``.

    Raises:
        ValueError: If the pointer does not start with ``/``
    """
    if not pointer.startswith("/"):
        raise ValueError(f"Invalid pointer (must start with '/'): {pointer!r}")
    if pointer == "/":
        return []
    return [unescape_token(part) for part in pointer[1:].split("/")]
