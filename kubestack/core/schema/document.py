"""Resource documents and their identities."""

from typing import Any, Dict, List, NamedTuple, Optional, Union

from kubestack.core.errors import MalformedDocumentError

# A Document is any JSON-compatible nested value. Resource documents are
# mappings with apiVersion, kind, metadata and usually spec.
Document = Any
Mapping = Dict[str, Any]
Token = Union[str, int]


class ResourceRef(NamedTuple):
    """Identity of a single resource: kind, namespace and name.

    ``namespace`` is None for cluster-scoped resources or when the document
    leaves it to the backend's default.
    """

    kind: str
    namespace: Optional[str]
    name: str

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


def validate_document(document: Document, source: Optional[str] = None) -> Mapping:
    """Check that a document carries apiVersion, kind and metadata.name.

    Args:
        document: Parsed document
        source: Where the document came from, used in error messages

    Returns:
        The document itself

    Raises:
        MalformedDocumentError: If the document is not a mapping or lacks an
            identity field
    """
    if not isinstance(document, dict):
        raise MalformedDocumentError(
            f"expected a mapping, got {type(document).__name__}", source=source, document=document
        )
    missing: List[str] = []
    for field in ("apiVersion", "kind"):
        if not isinstance(document.get(field), str) or not document.get(field):
            missing.append(field)
    metadata = document.get("metadata")
    if not isinstance(metadata, dict) or not isinstance(metadata.get("name"), str) \
            or not metadata.get("name"):
        missing.append("metadata.name")
    if missing:
        raise MalformedDocumentError(
            f"document is missing {', '.join(missing)}", source=source, document=document
        )
    namespace = metadata.get("namespace")
    if namespace is not None and not isinstance(namespace, str):
        raise MalformedDocumentError(
            "metadata.namespace must be a string", source=source, document=document
        )
    return document


def resource_ref(document: Document) -> ResourceRef:
    """Extract the identity of a resource document.

    Raises:
        MalformedDocumentError: If the document lacks identity fields
    """
    validate_document(document)
    metadata = document["metadata"]
    return ResourceRef(
        kind=document["kind"],
        namespace=metadata.get("namespace") or None,
        name=metadata["name"],
    )


def get_labels(document: Mapping) -> Dict[str, str]:
    """Return metadata.labels of a document, empty dict if absent."""
    labels = (document.get("metadata") or {}).get("labels")
    return labels if isinstance(labels, dict) else {}
