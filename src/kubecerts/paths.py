"""Home directory and kubeconfig path resolution."""

import os

DEFAULT_KUBECONFIG = os.path.join(".kube", "config")


def expand_home(path: str, home: str) -> str:
    """Replace a leading ``~`` in ``path`` with ``home``."""
    if path == "~":
        return home
    if path.startswith("~/"):
        return os.path.join(home, path[2:])
    return path


def resolve_kubeconfig_path(home: str, env: str) -> str:
    """Pick the kubeconfig file to merge into.

    The first non-empty entry of the colon-separated ``env`` (usually
    ``$KUBECONFIG``) wins, with its first ``~`` and first ``$HOME`` replaced by
    ``home``. Without one, ``<home>/.kube/config`` is used.
    """
    for path in env.split(":"):
        if path:
            path = path.replace("~", home, 1)
            return path.replace("$HOME", home, 1)

    return os.path.join(home, DEFAULT_KUBECONFIG)
