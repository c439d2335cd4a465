"""
Core schema definitions for documents, change records, patches and resource access.

These domain-agnostic types and protocols form the foundation of kubestack.
"""

from kubestack.core.schema.change import ChangeKind, ChangeRecord
from kubestack.core.schema.document import (
    Document,
    ResourceRef,
    get_labels,
    resource_ref,
    validate_document,
)
from kubestack.core.schema.patch import Patch, PatchOp
from kubestack.core.schema.resource_access import ResourceAccess, try_get

__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "Document",
    "ResourceRef",
    "get_labels",
    "resource_ref",
    "validate_document",
    "Patch",
    "PatchOp",
    "ResourceAccess",
    "try_get",
]
