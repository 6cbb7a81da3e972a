"""Kubeconfig merge sink.

Embeds the certificate and key as ``client-certificate-data`` and
``client-key-data`` of the user entry named after the certificate's common
name. All other content of the document is preserved.
"""

import base64
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from opentelemetry import trace

from kubecerts.ca.issuer import IssuedCredential
from kubecerts.errors import ConfigError
from kubecerts.sinks.base import CredentialSink
from kubecerts.sinks.files import KEY_MODE

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# kubectl rejects a user that sets both the file and the inline form
_FILE_REFERENCES = {
    "client-certificate-data": "client-certificate",
    "client-key-data": "client-key",
}


def empty_config() -> dict[str, Any]:
    """Minimal kubeconfig document."""
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "preferences": {},
        "clusters": [],
        "contexts": [],
        "current-context": "",
        "users": [],
    }


def upsert_user(document: dict[str, Any], name: str, cert_pem: bytes, key_pem: bytes) -> bool:
    """Set ``users[name]`` credentials in a parsed kubeconfig.

    Returns:
        True if an existing user entry was updated, False if one was added.

    Raises:
        ConfigError: If ``users`` or the matching entry has the wrong shape.
    """
    users = document.get("users")
    if users is None:
        users = document["users"] = []
    if not isinstance(users, list):
        raise ConfigError("invalid kubeconfig: 'users' is not a list")

    entry = next(
        (u for u in users if isinstance(u, dict) and u.get("name") == name),
        None,
    )
    updated = entry is not None
    if entry is None:
        entry = {"name": name, "user": {}}
        users.append(entry)

    user = entry.get("user")
    if user is None:
        user = entry["user"] = {}
    if not isinstance(user, dict):
        raise ConfigError(f"invalid kubeconfig: user {name!r} is not a mapping")

    data = {
        "client-certificate-data": base64.b64encode(cert_pem).decode("ascii"),
        "client-key-data": base64.b64encode(key_pem).decode("ascii"),
    }
    for field, value in data.items():
        user.pop(_FILE_REFERENCES[field], None)
        user[field] = value

    return updated


class KubeconfigCredentialSink(CredentialSink):
    """Merges the credential into a kubeconfig file."""

    NAME = "kubeconfig"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def describe(self) -> str:
        return str(self.path)

    def write(self, credential: IssuedCredential) -> None:
        with tracer.start_as_current_span("KubeconfigCredentialSink.write") as span:
            span.set_attribute("kubeconfig", str(self.path))
            span.set_attribute("user", credential.common_name)

            document = self.load()
            updated = upsert_user(
                document,
                credential.common_name,
                credential.certificate_pem,
                credential.private_key_pem,
            )
            self.save(document)

            span.set_attribute("updated", updated)
            logger.info(
                "kubeconfig_user_updated" if updated else "kubeconfig_user_added",
                extra={"kubeconfig": str(self.path), "user": credential.common_name},
            )

    def load(self) -> dict[str, Any]:
        """Parse the kubeconfig, or start a new one if it is missing or empty."""
        try:
            with self.path.open("r", encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except FileNotFoundError:
            logger.debug("kubeconfig not found, creating", extra={"kubeconfig": str(self.path)})
            return empty_config()
        except OSError as e:
            raise ConfigError(f"failed to read kubeconfig {self.path}: {e.strerror or e}") from e
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigError(f"failed to parse kubeconfig {self.path}: {e}") from e

        if document is None:
            return empty_config()
        if not isinstance(document, dict):
            raise ConfigError(f"invalid kubeconfig {self.path}: document is not a mapping")
        return document

    def save(self, document: dict[str, Any]) -> None:
        """Replace the document on disk, readable by the owner only.

        The new content goes to a temporary file in the same directory that is
        renamed over the target, so a failed write leaves the old file intact.
        """
        try:
            data = yaml.safe_dump(document, default_flow_style=False, sort_keys=False)
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to serialize kubeconfig: {e}") from e

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise ConfigError(f"failed to write kubeconfig {self.path}: {e.strerror or e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data.encode("utf-8"))
            os.chmod(tmp_name, KEY_MODE)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigError(f"failed to write kubeconfig {self.path}: {e.strerror or e}") from e
