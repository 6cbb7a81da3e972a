"""Issuance service: issue a certificate and hand it to a credential sink."""

import logging

from opentelemetry import trace

from kubecerts.ca.issuer import CertificateIssuer, IssuanceRequest, IssuedCredential, SerialStrategy
from kubecerts.ca.loader import CAKeyPair
from kubecerts.errors import SinkError
from kubecerts.metrics import kubecerts_metrics
from kubecerts.sinks.base import CredentialSink

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class IssuanceService:
    """Service for issuing and installing client credentials."""

    def __init__(
        self,
        ca_key_pair: CAKeyPair,
        serial_strategy: SerialStrategy = SerialStrategy.TIMESTAMP,
    ):
        self.issuer = CertificateIssuer(ca_key_pair, serial_strategy=serial_strategy)

    def issue_and_install(
        self, request: IssuanceRequest, sink: CredentialSink
    ) -> IssuedCredential:
        """Issue a credential for ``request`` and persist it through ``sink``.

        Args:
            request: The certificate to issue.
            sink: Where the certificate and key are written.

        Returns:
            The issued credential.

        Raises:
            IssuanceError: If issuance fails; nothing is written.
            SinkError: If the credential cannot be persisted.
        """
        with tracer.start_as_current_span("IssuanceService.issue_and_install") as span:
            span.set_attribute("common_name", request.common_name)
            span.set_attribute("sink", sink.NAME)

            credential = self.issuer.issue(request)

            try:
                sink.write(credential)
            except SinkError as e:
                kubecerts_metrics.record_failure("write")
                logger.info(
                    "credential_write_failed",
                    extra={"sink": sink.NAME, "destination": sink.describe(), "error": str(e)},
                )
                raise

            kubecerts_metrics.record_credential_written(sink.NAME)

            logger.info(
                "credential_installed",
                extra={
                    "common_name": credential.common_name,
                    "serial": credential.serial_number,
                    "fingerprint": credential.fingerprint,
                    "sink": sink.NAME,
                    "destination": sink.describe(),
                },
            )

            return credential
