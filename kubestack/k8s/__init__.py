"""Kubernetes (K8s) domain adapter for kubestack.

This module provides K8s-specific implementations:
- Stack: named collection of manifests loaded from YAML/JSON files
- Resource access backends: in-memory store, kubectl subprocess, dry-run wrapper
- Label selector helpers used to tag and discover stack resources
"""
