"""Exceptions raised while loading, diffing and reconciling stacks."""

from typing import Any, Optional


class StackError(Exception):
    """Base class for all kubestack errors."""


class ResourceNotFoundError(StackError):
    """Raised when a resource does not exist in the resource store.

    Tolerated by the delete and prune paths (the resource is already gone).
    During apply it means the declared resource must be created.

    Attributes:
        ref: Identity of the missing resource (optional)
    """

    def __init__(self, message: str, ref: Optional[Any] = None) -> None:
        super().__init__(message)
        self.ref = ref


class MalformedDocumentError(StackError):
    """Raised when a document lacks the fields needed to identify it.

    A resource document must be a mapping with ``apiVersion``, ``kind`` and
    ``metadata.name``. This aborts the current run.

    Attributes:
        message: Description of what is missing
        source: File or location the document came from (optional)
        document: The offending document (optional)
    """

    def __init__(
        self, message: str, source: Optional[str] = None, document: Optional[Any] = None
    ) -> None:
        if source:
            message = f"{source}: {message}"
        super().__init__(message)
        self.source = source
        self.document = document


class InternalDiffError(StackError):
    """Raised when a change record carries a kind outside add/remove/replace.

    This never happens for records produced by ``diff`` and indicates a bug.
    """


class TransportError(StackError):
    """Opaque failure reported by a resource access backend.

    Propagated unmodified by the reconciler; the current stack run stops
    without retry.

    Attributes:
        message: Description of the failure
        returncode: Exit status of the backend process, if any
        stderr: Raw error output of the backend, if any
    """

    def __init__(
        self, message: str, returncode: Optional[int] = None, stderr: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ConflictError(TransportError):
    """Raised when creating a resource that already exists."""


class PatchApplyError(StackError):
    """Raised when a patch operation cannot be applied to a document.

    Attributes:
        message: Description of the failure
        patch_op: The PatchOp that failed (optional)
    """

    def __init__(self, message: str, patch_op: Optional[Any] = None) -> None:
        super().__init__(message)
        self.patch_op = patch_op


class ConfigError(StackError):
    """Raised when a configuration setting has the wrong shape.

    Attributes:
        key: Dotted name of the offending setting (optional)
    """

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key
