"""Reconciliation driver for applying and deleting stacks.

This module provides the main entry points of kubestack:
- apply_stack: create or patch every declared resource, optionally prune
- delete_stack: remove every resource belonging to a stack

Resources are processed one at a time in declaration order. Every resource
access call blocks; there are no retries. An error other than a tolerated
NotFound stops the run and propagates to the caller. The report passed in (or
created) is filled as the run progresses, so a caller that catches the error
still sees how far the stack converged.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from kubestack.core.config import get_config_list, get_config_value, parse_field_path
from kubestack.core.errors import ResourceNotFoundError, StackError
from kubestack.core.patch_builder import json_patch
from kubestack.core.schema.document import Document, ResourceRef, resource_ref
from kubestack.core.schema.patch import Patch
from kubestack.core.schema.resource_access import ResourceAccess
from kubestack.k8s.constants import DEFAULT_STACK_LABEL
from kubestack.k8s.stack import Stack

logger = logging.getLogger(__name__)


class Action(Enum):
    """What happened to a single resource during a run."""

    CREATED = "created"
    PATCHED = "patched"
    UNCHANGED = "unchanged"
    PRUNED = "pruned"
    DELETED = "deleted"
    SKIPPED = "skipped"


class Phase(Enum):
    """Progress of a stack run."""

    RECONCILING = "reconciling"
    PRUNING = "pruning"
    DELETING = "deleting"
    DONE = "done"


@dataclass
class ResourceResult:
    """Outcome for one resource.

    Attributes:
        ref: Resource identity
        action: What was done
        patch: Patch sent to the store (PATCHED only)
    """

    ref: ResourceRef
    action: Action
    patch: Optional[Patch] = None


@dataclass
class ReconcileReport:
    """Ordered record of everything a stack run did.

    Attributes:
        stack: Stack name
        results: Per-resource outcomes in the order they happened
        phase: Phase the run reached; DONE only if it finished
    """

    stack: str
    results: List[ResourceResult] = field(default_factory=list)
    phase: Phase = Phase.RECONCILING

    @property
    def complete(self) -> bool:
        return self.phase is Phase.DONE

    def record(self, ref: ResourceRef, action: Action, patch: Optional[Patch] = None) -> None:
        self.results.append(ResourceResult(ref=ref, action=action, patch=patch))

    def refs(self, action: Action) -> List[ResourceRef]:
        """Identities of resources that ended with the given action."""
        return [result.ref for result in self.results if result.action is action]

    def counts(self) -> Dict[str, int]:
        counts = {action.value: 0 for action in Action}
        for result in self.results:
            counts[result.action.value] += 1
        return counts

    def summary(self) -> str:
        parts = [f"{count} {name}" for name, count in self.counts().items() if count]
        status = "done" if self.complete else f"incomplete ({self.phase.value})"
        return f"stack '{self.stack}' {status}: {', '.join(parts) or 'no resources'}"

    def to_serializable(self) -> Dict[str, Any]:
        return {
            "stack": self.stack,
            "phase": self.phase.value,
            "results": [
                {
                    "ref": str(result.ref),
                    "action": result.action.value,
                    "patch": result.patch.to_list() if result.patch is not None else None,
                }
                for result in self.results
            ],
        }


@dataclass(frozen=True)
class ReconcileContext:
    """Explicit settings and logger handed to the reconciler.

    Attributes:
        label_key: Label carrying the stack name on managed resources
        ignore_fields: Token paths dropped from both live and declared
                       documents before diffing (e.g. server-managed fields)
        prune_kinds: Extra kinds scanned for stack resources during prune
                     and delete, besides the kinds the stack declares
        logger: Logger receiving progress messages
    """

    label_key: str = DEFAULT_STACK_LABEL
    ignore_fields: Tuple[Tuple[str, ...], ...] = ()
    prune_kinds: Tuple[str, ...] = ()
    logger: logging.Logger = field(default=logger, compare=False)

    @classmethod
    def from_config(
        cls,
        config: Optional[Dict[str, Any]] = None,
        default_ignore_fields: Sequence[Sequence[str]] = (),
        log: Optional[logging.Logger] = None,
    ) -> "ReconcileContext":
        """Build a context from the ``stack`` and ``reconcile`` config sections."""
        ignore_fields = get_config_list(
            ["reconcile", "ignore_fields"], default=default_ignore_fields, config=config
        )
        prune_kinds = get_config_list(["reconcile", "prune_kinds"], config=config)
        return cls(
            label_key=get_config_value(
                ["stack", "label_key"], default=DEFAULT_STACK_LABEL, config=config
            ),
            ignore_fields=tuple(parse_field_path(path) for path in ignore_fields),
            prune_kinds=tuple(prune_kinds),
            logger=log or logger,
        )


class Reconciler:
    """Drives a stack against a resource store.

    Example:
        >>> stack = Stack.load("web", "manifests/")
        >>> reconciler = Reconciler(InMemoryResourceAccess())
        >>> report = reconciler.apply(stack, prune=True)
        >>> report.summary()
        "stack 'web' done: 2 created"
    """

    def __init__(self, access: ResourceAccess, context: Optional[ReconcileContext] = None):
        self.access = access
        self.context = context or ReconcileContext()

    @property
    def logger(self) -> logging.Logger:
        return self.context.logger

    def desired_document(self, stack: Stack, document: Document) -> Document:
        """Declared document tagged with the stack label, ignored fields removed."""
        desired = strip_fields(document, self.context.ignore_fields)
        metadata = desired.setdefault("metadata", {})
        labels = metadata.get("labels")
        if not isinstance(labels, dict):
            labels = metadata["labels"] = {}
        labels[self.context.label_key] = stack.name
        return desired

    def apply(
        self, stack: Stack, prune: bool = False, report: Optional[ReconcileReport] = None
    ) -> ReconcileReport:
        """Create or patch every declared resource, then optionally prune.

        Args:
            stack: Stack to apply
            prune: Delete live resources carrying the stack label that the
                   stack no longer declares
            report: Report to fill (a new one is created if omitted)

        Returns:
            The filled report, phase DONE

        Raises:
            MalformedDocumentError: If a declared or live document lacks
                identity fields
            TransportError: If the resource store fails (propagated as is)
        """
        report = report or ReconcileReport(stack=stack.name)
        report.phase = Phase.RECONCILING
        self.logger.info(
            f"Applying stack '{stack.name}' ({len(stack.resources)} resources, prune={prune})"
        )

        applied: Set[ResourceRef] = set()
        try:
            for document in stack.resources:
                applied.add(self._apply_resource(stack, document, report))

            if prune:
                report.phase = Phase.PRUNING
                self._prune(stack, applied, report)
        except StackError as e:
            self.logger.error(
                f"Stack '{stack.name}' aborted during {report.phase.value} "
                f"after {len(report.results)} resources: {e}"
            )
            raise

        report.phase = Phase.DONE
        self.logger.info(report.summary())
        return report

    def delete(self, stack: Stack, report: Optional[ReconcileReport] = None) -> ReconcileReport:
        """Delete every resource belonging to the stack.

        Declared resources go first, in reverse declaration order, followed
        by any other live resource carrying the stack label. Resources that
        are already gone are recorded as SKIPPED.

        Declared resources are deleted by identity alone: a live resource
        with the same kind, namespace and name is removed even if it does
        not carry the stack label.

        Returns:
            The filled report, phase DONE

        Raises:
            TransportError: If the resource store fails (propagated as is)
        """
        report = report or ReconcileReport(stack=stack.name)
        report.phase = Phase.DELETING
        self.logger.info(f"Deleting stack '{stack.name}'")

        attempted: Set[ResourceRef] = set()
        try:
            for ref in reversed(stack.refs()):
                attempted.add(ref)
                self._delete_resource(ref, Action.DELETED, report)
            for ref in self._live_refs(stack):
                if ref not in attempted:
                    attempted.add(ref)
                    self._delete_resource(ref, Action.DELETED, report)
        except StackError as e:
            self.logger.error(f"Stack '{stack.name}' delete aborted: {e}")
            raise

        report.phase = Phase.DONE
        self.logger.info(report.summary())
        return report

    def _apply_resource(
        self, stack: Stack, document: Document, report: ReconcileReport
    ) -> ResourceRef:
        ref = resource_ref(document)
        desired = self.desired_document(stack, document)

        try:
            live = self.access.get(ref.kind, ref.namespace, ref.name)
        except ResourceNotFoundError:
            created = self.access.create(desired)
            self.logger.info(f"Created {ref}")
            report.record(ref, Action.CREATED)
            return _applied_ref(ref, created)

        patch = json_patch(strip_fields(live, self.context.ignore_fields), desired)
        if not patch:
            self.logger.debug(f"Unchanged {ref}")
            report.record(ref, Action.UNCHANGED)
            return _applied_ref(ref, live)

        patched = self.access.patch(ref.kind, ref.namespace, ref.name, patch)
        self.logger.info(f"Patched {ref} ({len(patch)} operations)")
        report.record(ref, Action.PATCHED, patch)
        return _applied_ref(ref, patched)

    def _prune(self, stack: Stack, applied: Set[ResourceRef], report: ReconcileReport) -> None:
        for ref in self._live_refs(stack):
            if ref in applied:
                continue
            self._delete_resource(ref, Action.PRUNED, report)

    def _delete_resource(self, ref: ResourceRef, action: Action, report: ReconcileReport) -> None:
        try:
            self.access.delete(ref.kind, ref.namespace, ref.name)
        except ResourceNotFoundError:
            self.logger.info(f"Skipping {ref}: not found")
            report.record(ref, Action.SKIPPED)
            return
        self.logger.info(f"{action.value.capitalize()} {ref}")
        report.record(ref, action)

    def _live_refs(self, stack: Stack) -> List[ResourceRef]:
        """Identities of live resources carrying this stack's label."""
        selector = stack.label_selector(self.context.label_key)
        kinds = stack.kinds()
        kinds += [kind for kind in self.context.prune_kinds if kind not in kinds]
        refs: List[ResourceRef] = []
        for kind in kinds:
            for document in self.access.list(kind, None, selector):
                refs.append(resource_ref(document))
        return refs


def apply_stack(
    stack: Stack,
    access: ResourceAccess,
    prune: bool = False,
    context: Optional[ReconcileContext] = None,
    report: Optional[ReconcileReport] = None,
) -> ReconcileReport:
    """Apply a stack; see Reconciler.apply."""
    return Reconciler(access, context).apply(stack, prune=prune, report=report)


def delete_stack(
    stack: Stack,
    access: ResourceAccess,
    context: Optional[ReconcileContext] = None,
    report: Optional[ReconcileReport] = None,
) -> ReconcileReport:
    """Delete a stack; see Reconciler.delete."""
    return Reconciler(access, context).delete(stack, report=report)


def strip_fields(document: Document, paths: Sequence[Sequence[str]]) -> Document:
    """Deep copy of a document with the given key paths removed."""
    result = copy.deepcopy(document)
    for path in paths:
        if not path:
            continue
        parent = result
        for key in path[:-1]:
            parent = parent.get(key) if isinstance(parent, dict) else None
        if isinstance(parent, dict):
            parent.pop(path[-1], None)
    return result


def _applied_ref(declared: ResourceRef, stored: Any) -> ResourceRef:
    # The store may fill in the namespace of a resource declared without one
    metadata = stored.get("metadata") if isinstance(stored, dict) else None
    namespace = metadata.get("namespace") if isinstance(metadata, dict) else None
    if namespace and not declared.namespace:
        return declared._replace(namespace=namespace)
    return declared
