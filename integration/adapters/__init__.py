"""
Hotelius Integration — Adapter Utilities
==========================================
Shared error hierarchy and webhook signature verification for
payment-provider integrations.

Doctrine: integrity checks are one-shot.
A failed size or signature check rejects that delivery for good;
nothing here retries.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


# ══════════════════════════════════════════════════════════════
# ERROR HIERARCHY
# ══════════════════════════════════════════════════════════════

class IntegrationError(Exception):
    """Base error for all integration failures."""

    code = "INTEGRATION_ERROR"
    http_status = 500

    def __init__(self, message: str, system_id: str = "", retryable: bool = False):
        super().__init__(message)
        self.system_id = system_id
        self.retryable = retryable


class ValidationError(IntegrationError):
    """External event failed validation (bad payload, missing fields)."""

    code = "INVALID_PAYLOAD"
    http_status = 400

    def __init__(self, message: str, system_id: str = ""):
        super().__init__(message, system_id=system_id, retryable=False)


class AuthenticationError(IntegrationError):
    """Signature/auth verification failed."""

    code = "INVALID_SIGNATURE"
    http_status = 400

    def __init__(self, message: str, system_id: str = ""):
        super().__init__(message, system_id=system_id, retryable=False)


class PayloadTooLargeError(IntegrationError):
    """Body exceeds the size ceiling; rejected before parsing."""

    code = "PAYLOAD_TOO_LARGE"
    http_status = 413

    def __init__(self, size: int, limit: int, system_id: str = ""):
        super().__init__(
            f"Payload of {size} bytes exceeds limit of {limit} bytes.",
            system_id=system_id, retryable=False,
        )
        self.size = size
        self.limit = limit


class TransientError(IntegrationError):
    """Temporary failure — retryable with backoff."""

    code = "TRANSIENT_ERROR"
    http_status = 503

    def __init__(self, message: str, system_id: str = ""):
        super().__init__(message, system_id=system_id, retryable=True)


class WebhookHandlerError(IntegrationError):
    """
    A registered handler raised. The event is recorded as failed and
    the provider must redeliver, so this is retryable.
    """

    code = "WEBHOOK_HANDLER_FAILED"
    http_status = 500

    def __init__(self, message: str, *, event_id: str, event_type: str,
                 system_id: str = ""):
        super().__init__(message, system_id=system_id, retryable=True)
        self.event_id = event_id
        self.event_type = event_type


# ══════════════════════════════════════════════════════════════
# WEBHOOK SIGNATURE VERIFICATION
# ══════════════════════════════════════════════════════════════

def compute_hmac_signature(
    payload_bytes: bytes, secret: str, algorithm: str = "sha256"
) -> str:
    digest = getattr(hashlib, algorithm, None)
    if algorithm not in ("sha256", "sha1") or digest is None:
        raise ValueError(f"Unsupported HMAC algorithm '{algorithm}'.")
    return hmac.new(secret.encode("utf-8"), payload_bytes, digest).hexdigest()


def verify_hmac_signature(
    payload_bytes: bytes,
    signature: str,
    secret: str,
    algorithm: str = "sha256",
) -> bool:
    """
    Verify HMAC signature on an inbound webhook payload.

    Returns True if signature matches, False otherwise.
    """
    try:
        expected = compute_hmac_signature(payload_bytes, secret, algorithm)
    except ValueError:
        return False
    # Compare bytes: a str holding non-ASCII characters makes compare_digest raise.
    return hmac.compare_digest(
        expected.encode("ascii"), signature.encode("utf-8", "surrogatepass"),
    )


@dataclass(frozen=True)
class SignatureHeader:
    """Parsed `t=<unix>,v1=<hex>[,v1=<hex>…]` header."""

    timestamp: int
    signatures: List[str]


def parse_signature_header(header: Optional[str]) -> SignatureHeader:
    if not header:
        raise AuthenticationError("Missing signature header.", system_id="stripe")

    timestamp = None
    signatures = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise AuthenticationError(
                    "Malformed signature timestamp.", system_id="stripe")
        elif key == "v1" and value:
            signatures.append(value)

    if timestamp is None or not signatures:
        raise AuthenticationError(
            "Signature header must carry t= and v1= values.", system_id="stripe")
    return SignatureHeader(timestamp=timestamp, signatures=signatures)


def sign_stripe_payload(payload_bytes: bytes, secret: str, timestamp: int) -> str:
    """Build a header value the way the provider does. Used by tests and tooling."""
    signed = f"{timestamp}.".encode("utf-8") + payload_bytes
    return f"t={timestamp},v1={compute_hmac_signature(signed, secret)}"


def verify_stripe_signature(
    payload_bytes: bytes,
    header: Optional[str],
    secret: str,
    now: datetime,
    tolerance_seconds: int = 300,
) -> SignatureHeader:
    """
    Raise AuthenticationError unless one v1 signature is an HMAC-SHA256
    of "<t>.<body>" under `secret` and t is within tolerance of `now`.
    """
    if not secret:
        raise AuthenticationError("Webhook secret is not configured.", system_id="stripe")

    parsed = parse_signature_header(header)
    signed = f"{parsed.timestamp}.".encode("utf-8") + payload_bytes
    if not any(verify_hmac_signature(signed, sig, secret) for sig in parsed.signatures):
        raise AuthenticationError("Signature mismatch.", system_id="stripe")

    if tolerance_seconds > 0 and abs(now.timestamp() - parsed.timestamp) > tolerance_seconds:
        raise AuthenticationError(
            "Signature timestamp outside tolerance.", system_id="stripe")
    return parsed
