"""
kubestack: declarative stack reconciliation for Kubernetes-style resources.

Loads a named set of resource documents (a stack), diffs each one against the
live state held by a resource store, and applies the differences as JSON
patches, optionally pruning resources the stack no longer declares.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
