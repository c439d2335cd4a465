"""In-memory resource store implementing the ResourceAccess protocol.

Used by the test suite and for local experiments. Documents are stored by
identity; patches go through the same JSON patch applier a real API server
would implement.
"""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from kubestack.core.errors import ConflictError, ResourceNotFoundError
from kubestack.core.patch_apply import apply_patch
from kubestack.core.schema.document import Document, ResourceRef, resource_ref
from kubestack.core.schema.patch import Patch
from kubestack.k8s.utils import matches_selector

logger = logging.getLogger(__name__)


class InMemoryResourceAccess:
    """Dict-backed resource store.

    Every call is appended to ``calls`` as ``(method, detail)`` so tests can
    assert exactly which operations a reconciliation performed.

    Attributes:
        resources: Stored documents keyed by ResourceRef, in insertion order
        calls: Log of calls made against the store
        server_fields: When True, stored documents get ``metadata.uid``,
                       ``metadata.resourceVersion`` and
                       ``metadata.creationTimestamp`` like a real API server

    Example:
        >>> access = InMemoryResourceAccess()
        >>> access.create({"apiVersion": "v1", "kind": "ConfigMap",
        ...                "metadata": {"name": "settings"}})
        >>> access.get("ConfigMap", None, "settings")["metadata"]["name"]
        'settings'
    """

    def __init__(self, documents: Optional[Iterable[Document]] = None, server_fields: bool = False):
        self.resources: Dict[ResourceRef, Document] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.server_fields = server_fields
        self._version = 0
        for document in documents or []:
            self._store(copy.deepcopy(document), created=True)

    def get(self, kind: str, namespace: Optional[str], name: str) -> Document:
        ref = ResourceRef(kind, namespace, name)
        self.calls.append(("get", ref))
        return copy.deepcopy(self._lookup(ref))

    def list(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        self.calls.append(("list", (kind, namespace, label_selector)))
        return [copy.deepcopy(document) for document in self._select(kind, namespace, label_selector)]

    def create(self, document: Document) -> Document:
        ref = resource_ref(document)
        self.calls.append(("create", ref))
        if ref in self.resources:
            raise ConflictError(f"{ref} already exists")
        return copy.deepcopy(self._store(copy.deepcopy(document), created=True))

    def patch(self, kind: str, namespace: Optional[str], name: str, patch: Patch) -> Document:
        ref = ResourceRef(kind, namespace, name)
        self.calls.append(("patch", (ref, patch.to_list())))
        patched = apply_patch(self._lookup(ref), patch)
        if resource_ref(patched) != ref:
            raise ConflictError(f"Patch would change the identity of {ref}")
        return copy.deepcopy(self._store(patched))

    def delete(self, kind: str, namespace: Optional[str], name: str) -> Document:
        ref = ResourceRef(kind, namespace, name)
        self.calls.append(("delete", ref))
        document = self._lookup(ref)
        del self.resources[ref]
        return document

    def delete_collection(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        self.calls.append(("delete_collection", (kind, namespace, label_selector)))
        deleted = self._select(kind, namespace, label_selector)
        for document in deleted:
            del self.resources[resource_ref(document)]
        return deleted

    def mutating_calls(self) -> List[Tuple[str, Any]]:
        """Calls that changed (or tried to change) the store."""
        return [call for call in self.calls if call[0] not in ("get", "list")]

    def _lookup(self, ref: ResourceRef) -> Document:
        if ref not in self.resources:
            raise ResourceNotFoundError(f"{ref} not found", ref=ref)
        return self.resources[ref]

    def _select(
        self, kind: str, namespace: Optional[str], label_selector: Optional[str]
    ) -> List[Document]:
        return [
            document
            for ref, document in self.resources.items()
            if ref.kind == kind
            and (namespace is None or ref.namespace == namespace)
            and matches_selector(document, label_selector)
        ]

    def _store(self, document: Document, created: bool = False) -> Document:
        if self.server_fields:
            metadata = document.setdefault("metadata", {})
            self._version += 1
            metadata["resourceVersion"] = str(self._version)
            if created:
                metadata["uid"] = str(uuid.uuid4())
                metadata["creationTimestamp"] = datetime.now(timezone.utc).strftime(
                    "%Y-%m-%dT%H:%M:%SZ"
                )
        self.resources[resource_ref(document)] = document
        return document
