"""Dry-run wrapper around another ResourceAccess backend."""

import copy
import logging
from typing import Any, List, Optional, Tuple

from kubestack.core.patch_apply import apply_patch
from kubestack.core.schema.document import Document, ResourceRef, resource_ref
from kubestack.core.schema.patch import Patch
from kubestack.core.schema.resource_access import ResourceAccess

logger = logging.getLogger(__name__)


class DryRunResourceAccess:
    """Delegates reads and records writes without performing them.

    Mutating calls return what the store would most likely answer: the
    created document, the live document with the patch applied, or the live
    document about to be deleted. Deleting a missing resource still raises
    ResourceNotFoundError because the existence check is a read.

    Attributes:
        delegate: Backend used for reads
        planned: Mutations that would have been made, as ``(method, detail)``
    """

    def __init__(self, delegate: ResourceAccess):
        self.delegate = delegate
        self.planned: List[Tuple[str, Any]] = []

    def get(self, kind: str, namespace: Optional[str], name: str) -> Document:
        return self.delegate.get(kind, namespace, name)

    def list(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        return self.delegate.list(kind, namespace, label_selector)

    def create(self, document: Document) -> Document:
        ref = resource_ref(document)
        logger.info(f"[dry-run] would create {ref}")
        self.planned.append(("create", ref))
        return copy.deepcopy(document)

    def patch(self, kind: str, namespace: Optional[str], name: str, patch: Patch) -> Document:
        ref = ResourceRef(kind, namespace, name)
        live = self.delegate.get(kind, namespace, name)
        logger.info(f"[dry-run] would patch {ref} with {len(patch)} operations")
        self.planned.append(("patch", (ref, patch.to_list())))
        return apply_patch(live, patch)

    def delete(self, kind: str, namespace: Optional[str], name: str) -> Document:
        ref = ResourceRef(kind, namespace, name)
        live = self.delegate.get(kind, namespace, name)
        logger.info(f"[dry-run] would delete {ref}")
        self.planned.append(("delete", ref))
        return live

    def delete_collection(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        documents = self.delegate.list(kind, namespace, label_selector)
        for document in documents:
            ref = resource_ref(document)
            logger.info(f"[dry-run] would delete {ref}")
            self.planned.append(("delete", ref))
        return documents
