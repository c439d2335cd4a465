"""Shared label selector helpers.

Selectors are plain ``key=value`` pairs joined by commas, e.g.
``kubestack.io/stack=web,tier=frontend``.
"""

from typing import Dict, Mapping, Optional

from kubestack.core.schema.document import Document, get_labels


def format_label_selector(labels: Mapping[str, str]) -> str:
    """Join labels into a selector string.

    Example:
        >>> format_label_selector({"kubestack.io/stack": "web"})
        'kubestack.io/stack=web'
    """
    return ",".join(f"{key}={value}" for key, value in labels.items())


def parse_label_selector(selector: Optional[str]) -> Dict[str, str]:
    """Split a selector string into a labels dict.

    Args:
        selector: Selector string, or None / empty for "match everything"

    Returns:
        Mapping of label key to required value

    Raises:
        ValueError: If a pair is not of the form key=value
    """
    labels: Dict[str, str] = {}
    if not selector:
        return labels
    for pair in selector.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid label selector term: {pair!r}")
        labels[key] = value.strip()
    return labels


def matches_selector(document: Document, selector: Optional[str]) -> bool:
    """Check whether a document's labels satisfy every term of a selector."""
    required = parse_label_selector(selector)
    labels = get_labels(document)
    return all(labels.get(key) == value for key, value in required.items())
