from kubecerts.ca.issuer import IssuanceRequest
from kubecerts.ca.loader import CAKeyPair
from kubecerts.metrics import ca_key_size_gauge
from kubecerts.sinks.base import CredentialSink
from shared.config import Settings

# Pydantic Settings
Settings.model_config
Settings.APP_NAME
Settings.CA_CERT_PATH
Settings.CA_KEY_PATH
Settings.CERT_OUT
Settings.KEY_OUT
Settings.SERIAL_STRATEGY
Settings.TELEMETRY_CONSOLE

# Pydantic validators (called by the model, never directly)
IssuanceRequest.model_config
IssuanceRequest._common_name_not_blank
IssuanceRequest._organizations_not_blank
IssuanceRequest._not_after_aware

# Public API used by callers outside the CLI
CAKeyPair.certificate_pem
CredentialSink.NAME

# Observable gauge registered with its callback
ca_key_size_gauge
