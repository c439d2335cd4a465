"""
Core domain-agnostic components for kubestack.

This package contains the document schemas, the structural diff computer,
the JSON patch builder/applier and the reconciliation driver.
"""

__all__ = []
