"""Certificate/key file pair sink."""

import logging
import os
from pathlib import Path

from opentelemetry import trace

from kubecerts.ca.issuer import IssuedCredential
from kubecerts.errors import CredentialWriteError
from kubecerts.sinks.base import CredentialSink

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CERT_MODE = 0o755
KEY_MODE = 0o600


def write_file(path: Path, data: bytes, mode: int) -> None:
    """Write ``data`` to ``path`` and force its permission bits to ``mode``.

    New files are created with ``mode`` so a key is never briefly world-readable.
    """
    with open(path, "wb", opener=lambda p, flags: os.open(p, flags, mode)) as f:
        f.write(data)
    os.chmod(path, mode)


class FileCredentialSink(CredentialSink):
    """Writes the certificate and key to two files.

    The pair is written all-or-nothing: if the key cannot be written the
    certificate file is removed again.
    """

    NAME = "files"

    def __init__(self, cert_path: str | Path, key_path: str | Path) -> None:
        self.cert_path = Path(cert_path)
        self.key_path = Path(key_path)

    def describe(self) -> str:
        return f"{self.cert_path} and {self.key_path}"

    def write(self, credential: IssuedCredential) -> None:
        with tracer.start_as_current_span("FileCredentialSink.write") as span:
            span.set_attribute("cert_path", str(self.cert_path))
            span.set_attribute("key_path", str(self.key_path))

            try:
                write_file(self.cert_path, credential.certificate_pem, CERT_MODE)
            except OSError as e:
                raise CredentialWriteError(
                    f"failed to write certificate {self.cert_path}: {e.strerror or e}"
                ) from e

            try:
                write_file(self.key_path, credential.private_key_pem, KEY_MODE)
            except OSError as e:
                self._remove_certificate()
                raise CredentialWriteError(
                    f"failed to write private key {self.key_path}: {e.strerror or e}"
                ) from e

            logger.info(
                "credential_files_written",
                extra={"cert_path": str(self.cert_path), "key_path": str(self.key_path)},
            )

    def _remove_certificate(self) -> None:
        try:
            self.cert_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to remove certificate after key write failure",
                extra={"cert_path": str(self.cert_path), "error": str(e)},
            )
