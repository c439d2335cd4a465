"""ResourceAccess backend that drives the ``kubectl`` binary.

Transport, authentication and API discovery are left to kubectl and the
kubeconfig it reads. Every call is a blocking subprocess with JSON I/O.
"""

import json
import logging
import subprocess
from typing import Any, Dict, List, Optional

from kubestack.core.config import get_config_value
from kubestack.core.errors import (
    ConfigError,
    ConflictError,
    ResourceNotFoundError,
    TransportError,
)
from kubestack.core.schema.document import Document, ResourceRef
from kubestack.core.schema.patch import Patch

logger = logging.getLogger(__name__)


class KubectlResourceAccess:
    """Resource access through ``kubectl`` subprocess calls.

    Error mapping:
    - ``Error from server (NotFound)`` → ResourceNotFoundError
    - ``Error from server (AlreadyExists)`` → ConflictError
    - any other non-zero exit, a timeout, a missing binary or unparsable
      output → TransportError

    Args:
        kubectl_path: kubectl executable (default: "kubectl")
        context: kubeconfig context passed as ``--context`` (optional)
        timeout_seconds: Per-call timeout (default: 30.0)
    """

    def __init__(
        self,
        kubectl_path: str = "kubectl",
        context: Optional[str] = None,
        timeout_seconds: float = 30.0,
    ):
        self.kubectl_path = kubectl_path
        self.context = context
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "KubectlResourceAccess":
        """Create a backend from the ``kubectl`` section of the config file."""
        timeout = get_config_value(["kubectl", "timeout_seconds"], default=30.0, config=config)
        try:
            timeout_seconds = float(timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"kubectl.timeout_seconds must be a number, got {timeout!r}",
                key="kubectl.timeout_seconds",
            ) from e
        return cls(
            kubectl_path=get_config_value(["kubectl", "path"], default="kubectl", config=config),
            context=get_config_value(["kubectl", "context"], config=config),
            timeout_seconds=timeout_seconds,
        )

    def get(self, kind: str, namespace: Optional[str], name: str) -> Document:
        output = self._run(["get", kind, name, *_namespace_args(namespace), "-o", "json"])
        return _parse_json(output)

    def list(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        args = ["get", kind, *_namespace_args(namespace, all_if_none=True), "-o", "json"]
        if label_selector:
            args += ["-l", label_selector]
        data = _parse_json(self._run(args))
        return list(data.get("items") or [])

    def create(self, document: Document) -> Document:
        output = self._run(["create", "-f", "-", "-o", "json"], input_data=json.dumps(document))
        return _parse_json(output)

    def patch(self, kind: str, namespace: Optional[str], name: str, patch: Patch) -> Document:
        args = [
            "patch", kind, name, *_namespace_args(namespace),
            "--type=json", "-p", patch.to_json(), "-o", "json",
        ]
        return _parse_json(self._run(args))

    def delete(self, kind: str, namespace: Optional[str], name: str) -> Document:
        self._run(["delete", kind, name, *_namespace_args(namespace), "--wait=false"])
        metadata: Dict[str, Any] = {"name": name}
        if namespace:
            metadata["namespace"] = namespace
        return {"kind": kind, "metadata": metadata}

    def delete_collection(
        self,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Document]:
        documents = self.list(kind, namespace, label_selector)
        if not documents:
            return []
        args = ["delete", kind, *_namespace_args(namespace, all_if_none=True), "--wait=false"]
        if label_selector:
            args += ["-l", label_selector]
        else:
            args.append("--all")
        self._run(args)
        return documents

    def _global_args(self) -> List[str]:
        return ["--context", self.context] if self.context else []

    def _run(self, args: List[str], input_data: Optional[str] = None) -> str:
        cmd = [self.kubectl_path, *self._global_args(), *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                input=input_data,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as e:
            raise TransportError(f"kubectl executable not found: {self.kubectl_path}") from e
        except subprocess.TimeoutExpired as e:
            raise TransportError(
                f"kubectl {args[0]} timed out after {self.timeout_seconds}s"
            ) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if "(NotFound)" in stderr:
                raise ResourceNotFoundError(stderr, ref=_ref_from_args(args))
            if "(AlreadyExists)" in stderr:
                raise ConflictError(stderr, returncode=result.returncode, stderr=stderr)
            raise TransportError(
                f"kubectl {args[0]} failed (exit {result.returncode}): {stderr}",
                returncode=result.returncode,
                stderr=stderr,
            )
        return result.stdout


def _namespace_args(namespace: Optional[str], all_if_none: bool = False) -> List[str]:
    if namespace:
        return ["-n", namespace]
    return ["--all-namespaces"] if all_if_none else []


def _ref_from_args(args: List[str]) -> Optional[ResourceRef]:
    # get/patch/delete address a single resource as: <verb> <kind> <name> [-n <ns>]
    if len(args) < 3 or args[0] not in ("get", "patch", "delete") or args[2].startswith("-"):
        return None
    namespace = args[args.index("-n") + 1] if "-n" in args else None
    return ResourceRef(args[1], namespace, args[2])


def _parse_json(output: str) -> Any:
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise TransportError(f"kubectl returned invalid JSON: {e}") from e
