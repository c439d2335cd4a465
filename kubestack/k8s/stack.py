"""Stack model: a named, ordered collection of declared K8s resources.

A stack is loaded once from a file or a directory of manifests and is
immutable afterwards. Loading never touches the cluster.
"""

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.constructor import SafeConstructor
from ruamel.yaml.error import YAMLError

from kubestack.core.errors import MalformedDocumentError
from kubestack.core.schema.document import Document, ResourceRef, resource_ref, validate_document
from kubestack.k8s.constants import STACK_FILE_SUFFIXES
from kubestack.k8s.utils import format_label_selector

logger = logging.getLogger(__name__)

_JSON_SCALARS = (str, int, float, bool, type(None))


class _ManifestConstructor(SafeConstructor):
    """Safe constructor that keeps timestamps as the strings written."""


# Timestamps stay the strings written, as the API server returns them.
_ManifestConstructor.add_constructor(
    "tag:yaml.org,2002:timestamp", SafeConstructor.construct_yaml_str
)


def _create_yaml_instance() -> YAML:
    """Create a safe ruamel.yaml loader producing plain dicts and lists."""
    yaml = YAML(typ="safe", pure=True)
    yaml.Constructor = _ManifestConstructor
    return yaml


@dataclass(frozen=True)
class Stack:
    """Declared resources reconciled together under one name.

    Attributes:
        name: Stack name; also the value of the stack label on every
              resource the stack manages
        source_path: File or directory the resources were loaded from
        resources: Resource documents in declaration order

    Example:
        >>> stack = Stack.load("web", "manifests/")
        >>> [str(ref) for ref in stack.refs()]
        ['Deployment/default/web', 'Service/default/web']
    """

    name: str
    source_path: str
    resources: Tuple[Document, ...] = ()

    @classmethod
    def load(cls, name: str, source_path: str) -> "Stack":
        """Load a stack from a manifest file or a directory of manifests.

        Directories are read non-recursively; ``*.yaml``, ``*.yml`` and
        ``*.json`` files are loaded in lexical path order. YAML files may hold
        several ``---`` separated documents; empty documents are skipped.

        Args:
            name: Stack name
            source_path: Path to a manifest file or directory

        Returns:
            Loaded Stack

        Raises:
            FileNotFoundError: If source_path does not exist
            MalformedDocumentError: If a file cannot be parsed or a document
                lacks apiVersion, kind or metadata.name
        """
        path = Path(source_path)
        if not path.exists():
            raise FileNotFoundError(f"Stack source not found: {source_path}")

        if path.is_dir():
            files = sorted(
                p for p in path.iterdir()
                if p.is_file() and p.suffix in STACK_FILE_SUFFIXES
            )
        else:
            files = [path]

        resources: List[Document] = []
        for file_path in files:
            for document in _load_file(file_path):
                resources.append(validate_document(document, source=str(file_path)))

        logger.info(f"Loaded stack '{name}' with {len(resources)} resources from {source_path}")
        return cls(name=name, source_path=str(source_path), resources=tuple(resources))

    @classmethod
    def from_documents(
        cls, name: str, documents: Iterable[Document], source_path: str = "<memory>"
    ) -> "Stack":
        """Build a stack from in-memory documents (deep-copied and validated)."""
        resources = tuple(
            validate_document(copy.deepcopy(document), source=source_path)
            for document in documents
        )
        return cls(name=name, source_path=source_path, resources=resources)

    def refs(self) -> List[ResourceRef]:
        """Identities of the declared resources, in declaration order."""
        return [resource_ref(document) for document in self.resources]

    def kinds(self) -> List[str]:
        """Distinct resource kinds, in the order they are first declared."""
        kinds: List[str] = []
        for document in self.resources:
            if document["kind"] not in kinds:
                kinds.append(document["kind"])
        return kinds

    def label_selector(self, label_key: str) -> str:
        """Selector matching every resource tagged with this stack's label."""
        return format_label_selector({label_key: self.name})


def _load_file(file_path: Path) -> List[Any]:
    content = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix == ".json":
            data = json.loads(content)
            documents = data if isinstance(data, list) else [data]
        else:
            documents = list(_create_yaml_instance().load_all(content))
    except (json.JSONDecodeError, YAMLError) as e:
        raise MalformedDocumentError(f"failed to parse: {e}", source=str(file_path)) from e
    documents = [document for document in documents if document is not None]
    for document in documents:
        _check_json_values(document, str(file_path))
    return documents


def _check_json_values(value: Any, source: str, path: str = "") -> None:
    """Reject values a JSON document cannot hold, such as !!binary or !!set."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise MalformedDocumentError(
                    f"non-string key {key!r} at {path or '/'}", source=source
                )
            _check_json_values(item, source, f"{path}/{key}")
    elif isinstance(value, list):
        for index, item in enumerate(value):
            _check_json_values(item, source, f"{path}/{index}")
    elif not isinstance(value, _JSON_SCALARS):
        raise MalformedDocumentError(
            f"unsupported {type(value).__name__} value at {path or '/'}", source=source
        )
