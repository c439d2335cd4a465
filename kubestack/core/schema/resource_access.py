"""ResourceAccess protocol for reading and mutating remote resource state."""

from typing import List, Optional, Protocol

from kubestack.core.errors import ResourceNotFoundError
from kubestack.core.schema.document import Document
from kubestack.core.schema.patch import Patch


class ResourceAccess(Protocol):
    """Capability to fetch and mutate resources in a remote store.

    Implementations hide transport, authentication and API discovery. Every
    call blocks until the store answers.

    Failure contract:
    - ``ResourceNotFoundError`` when the addressed resource does not exist
    - ``TransportError`` (or a subclass) for anything else

    Example:
        >>> access = InMemoryResourceAccess()
        >>> access.create({"apiVersion": "v1", "kind": "ConfigMap",
        ...                "metadata": {"name": "settings", "namespace": "default"}})
        >>> access.get("ConfigMap", "default", "settings")
    """

    def get(self, kind: str, namespace: Optional[str], name: str) -> Document:
        """Fetch one resource; raises ResourceNotFoundError if absent."""
        ...

    def list(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        """List resources of a kind, in one namespace or across all of them."""
        ...

    def create(self, document: Document) -> Document:
        """Create a resource and return the stored document."""
        ...

    def patch(self, kind: str, namespace: Optional[str], name: str, patch: Patch) -> Document:
        """Apply a JSON patch to one resource and return the result."""
        ...

    def delete(self, kind: str, namespace: Optional[str], name: str) -> Document:
        """Delete one resource; raises ResourceNotFoundError if absent."""
        ...

    def delete_collection(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        """Delete every matching resource and return what was deleted."""
        ...


def try_get(
    access: ResourceAccess, kind: str, namespace: Optional[str], name: str
) -> Optional[Document]:
    """Fetch a resource, returning None instead of raising when it is absent.

    Any other backend failure propagates.
    """
    try:
        return access.get(kind, namespace, name)
    except ResourceNotFoundError:
        return None
