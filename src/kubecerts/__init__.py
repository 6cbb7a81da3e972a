"""Issue Kubernetes client certificates signed by an existing cluster CA."""

__version__ = "0.3.0"
