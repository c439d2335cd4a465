"""Command-line interface for kubestack."""
