"""PEM framing for DER-encoded certificates and keys.

Only the first well-formed block of the input is decoded. A BEGIN marker
without a matching END marker, or with an undecodable body, is skipped and the
search resumes after it; anything else before or after the block is ignored.
"""

import re

from asn1crypto import pem as asn1_pem

from kubecerts.errors import FormatError

_BEGIN_RE = re.compile(rb"^-----BEGIN ([A-Z0-9 ]+)-----[ \t]*\r?$", re.MULTILINE)
_END_RE = re.compile(rb"^-----END ([A-Z0-9 ]+)-----", re.MULTILINE)

CERTIFICATE = "CERTIFICATE"
RSA_PRIVATE_KEY = "RSA PRIVATE KEY"


def decode(data: bytes) -> tuple[str, bytes]:
    """Decode the first well-formed PEM block in ``data``.

    Returns:
        Tuple of (block_type, der_bytes).

    Raises:
        FormatError: If no well-formed PEM block is present.
    """
    reason = "no PEM data found"
    pos = 0

    while (begin := _BEGIN_RE.search(data, pos)) is not None:
        pos = begin.end()
        label = begin.group(1)

        end = _END_RE.search(data, begin.end())
        if end is None:
            reason = f"missing END marker for {label.decode('ascii')}"
            continue
        if end.group(1) != label:
            reason = (
                f"mismatched PEM markers: BEGIN {label.decode('ascii')}, "
                f"END {end.group(1).decode('ascii')}"
            )
            continue

        block = data[begin.start() : end.end()]
        try:
            block_type, _headers, der = asn1_pem.unarmor(block)
        except ValueError as e:
            reason = f"invalid PEM body for {label.decode('ascii')}: {e}"
            continue

        return block_type, der

    raise FormatError(reason)


def encode(block_type: str, der: bytes) -> bytes:
    """Wrap DER bytes in a PEM block with 64-column base64 lines."""
    return asn1_pem.armor(block_type, der)
