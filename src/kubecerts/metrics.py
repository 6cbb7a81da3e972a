"""OpenTelemetry metrics for certificate issuance."""

from collections.abc import Iterator

from opentelemetry import metrics

meter = metrics.get_meter("kubecerts")

# CA material
ca_loads_total = meter.create_counter(
    name="kubecerts_ca_loads_total",
    description="Total CA certificate/key pairs loaded",
    unit="1",
)

# Issuance
certificates_issued_total = meter.create_counter(
    name="kubecerts_certificates_issued_total",
    description="Total leaf certificates issued",
    unit="1",
)

certificate_issue_duration = meter.create_histogram(
    name="kubecerts_certificate_issue_duration_seconds",
    description="Leaf certificate issuance duration in seconds (includes key generation)",
    unit="s",
)

# Installation
credentials_written_total = meter.create_counter(
    name="kubecerts_credentials_written_total",
    description="Total credentials persisted by a sink",
    unit="1",
)

# Failures
failures_total = meter.create_counter(
    name="kubecerts_failures_total",
    description="Total failures by stage",
    unit="1",
)

# CA key size of the last loaded CA
_ca_key_size: int | None = None


def _get_ca_key_size(
    options: metrics.CallbackOptions,
) -> Iterator[metrics.Observation]:
    """Callback to report the loaded CA key size."""
    if _ca_key_size:
        yield metrics.Observation(_ca_key_size, {})


ca_key_size_gauge = meter.create_observable_gauge(
    name="kubecerts_ca_key_size_bits",
    description="Key size of the loaded CA private key",
    unit="bit",
    callbacks=[_get_ca_key_size],
)


class KubeCertsMetrics:
    """Facade for kubecerts metrics with proper labels."""

    def record_ca_loaded(self, source: str, key_size: int) -> None:
        """Record CA load. Labels: source=file|memory"""
        global _ca_key_size
        _ca_key_size = key_size
        ca_loads_total.add(1, {"source": source})

    def record_certificate_issued(self, duration_seconds: float, key_size: int) -> None:
        """Record certificate issuance with duration."""
        certificates_issued_total.add(1, {"key_size": key_size})
        certificate_issue_duration.record(duration_seconds)

    def record_credential_written(self, sink: str) -> None:
        """Record credential persisted. Labels: sink=files|kubeconfig"""
        credentials_written_total.add(1, {"sink": sink})

    def record_failure(self, stage: str) -> None:
        """Record failure. Labels: stage=load|issue|write"""
        failures_total.add(1, {"stage": stage})


# Singleton instance
kubecerts_metrics = KubeCertsMetrics()
