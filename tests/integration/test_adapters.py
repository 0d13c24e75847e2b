"""
Tests — Integration Adapter Utilities
=========================================
Error hierarchy, HMAC helpers, provider signature header verification.
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timezone

import pytest

from integration.adapters import (
    AuthenticationError,
    IntegrationError,
    PayloadTooLargeError,
    TransientError,
    ValidationError,
    WebhookHandlerError,
    compute_hmac_signature,
    parse_signature_header,
    sign_stripe_payload,
    verify_hmac_signature,
    verify_stripe_signature,
)

SECRET = "whsec_test_secret"
T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
TS = int(T0.timestamp())
BODY = b'{"id":"evt_1","type":"payment_intent.succeeded"}'


# ══════════════════════════════════════════════════════════════
# ERROR HIERARCHY
# ══════════════════════════════════════════════════════════════

class TestErrorHierarchy:
    def test_all_errors_are_integration_errors(self):
        for error in (
            ValidationError("bad"),
            AuthenticationError("bad sig"),
            PayloadTooLargeError(100, 10),
            TransientError("later"),
            WebhookHandlerError("boom", event_id="evt_1", event_type="x"),
        ):
            assert isinstance(error, IntegrationError)

    def test_codes_and_statuses(self):
        assert (ValidationError.code, ValidationError.http_status) == ("INVALID_PAYLOAD", 400)
        assert (AuthenticationError.code, AuthenticationError.http_status) == (
            "INVALID_SIGNATURE", 400)
        assert PayloadTooLargeError.http_status == 413
        assert TransientError.http_status == 503
        assert WebhookHandlerError.http_status == 500

    def test_retryability(self):
        assert not ValidationError("x").retryable
        assert not AuthenticationError("x").retryable
        assert not PayloadTooLargeError(2, 1).retryable
        assert TransientError("x").retryable
        assert WebhookHandlerError("x", event_id="e", event_type="t").retryable

    def test_payload_too_large_carries_sizes(self):
        error = PayloadTooLargeError(70000, 65536, system_id="stripe")
        assert error.size == 70000
        assert error.limit == 65536
        assert "65536" in str(error)
        assert error.system_id == "stripe"

    def test_handler_error_carries_event(self):
        error = WebhookHandlerError("boom", event_id="evt_9", event_type="charge.refunded")
        assert (error.event_id, error.event_type) == ("evt_9", "charge.refunded")


# ══════════════════════════════════════════════════════════════
# HMAC
# ══════════════════════════════════════════════════════════════

class TestHmac:
    def test_matches_stdlib_digest(self):
        expected = hmac.new(SECRET.encode(), BODY, hashlib.sha256).hexdigest()
        assert compute_hmac_signature(BODY, SECRET) == expected

    def test_verify_accepts_valid_signature(self):
        assert verify_hmac_signature(BODY, compute_hmac_signature(BODY, SECRET), SECRET)

    def test_verify_rejects_tampered_body(self):
        signature = compute_hmac_signature(BODY, SECRET)
        assert not verify_hmac_signature(BODY + b" ", signature, SECRET)

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            compute_hmac_signature(BODY, SECRET, algorithm="md5")
        assert not verify_hmac_signature(BODY, "00", SECRET, algorithm="md5")

    def test_verify_rejects_non_ascii_signature(self):
        assert not verify_hmac_signature(BODY, "é" * 64, SECRET)
        assert not verify_hmac_signature(BODY, "\ud800", SECRET)

    def test_stripe_header_with_non_ascii_signature_is_a_mismatch(self):
        with pytest.raises(AuthenticationError, match="mismatch"):
            verify_stripe_signature(BODY, f"t={TS},v1=é", SECRET, T0)


# ══════════════════════════════════════════════════════════════
# SIGNATURE HEADER
# ══════════════════════════════════════════════════════════════

class TestParseSignatureHeader:
    def test_parses_timestamp_and_signatures(self):
        parsed = parse_signature_header("t=1700000000,v1=abc,v1=def,v0=old")
        assert parsed.timestamp == 1700000000
        assert parsed.signatures == ["abc", "def"]

    @pytest.mark.parametrize("header", [None, "", "v1=abc", "t=1700000000", "t=soon,v1=abc"])
    def test_rejects_incomplete_headers(self, header):
        with pytest.raises(AuthenticationError):
            parse_signature_header(header)


class TestVerifyStripeSignature:
    def test_valid_signature(self):
        header = sign_stripe_payload(BODY, SECRET, TS)
        parsed = verify_stripe_signature(BODY, header, SECRET, T0)
        assert parsed.timestamp == TS

    def test_any_v1_signature_may_match(self):
        good = sign_stripe_payload(BODY, SECRET, TS).split("v1=")[1]
        header = f"t={TS},v1=deadbeef,v1={good}"
        verify_stripe_signature(BODY, header, SECRET, T0)

    def test_wrong_secret(self):
        header = sign_stripe_payload(BODY, "whsec_other", TS)
        with pytest.raises(AuthenticationError, match="mismatch"):
            verify_stripe_signature(BODY, header, SECRET, T0)

    def test_tampered_body(self):
        header = sign_stripe_payload(BODY, SECRET, TS)
        with pytest.raises(AuthenticationError):
            verify_stripe_signature(BODY.replace(b"evt_1", b"evt_2"), header, SECRET, T0)

    def test_timestamp_outside_tolerance(self):
        header = sign_stripe_payload(BODY, SECRET, TS - 301)
        with pytest.raises(AuthenticationError, match="tolerance"):
            verify_stripe_signature(BODY, header, SECRET, T0)

    def test_timestamp_at_tolerance_edge(self):
        header = sign_stripe_payload(BODY, SECRET, TS - 300)
        verify_stripe_signature(BODY, header, SECRET, T0)

    def test_zero_tolerance_disables_age_check(self):
        header = sign_stripe_payload(BODY, SECRET, TS - 86400)
        verify_stripe_signature(BODY, header, SECRET, T0, tolerance_seconds=0)

    def test_missing_secret(self):
        header = sign_stripe_payload(BODY, SECRET, TS)
        with pytest.raises(AuthenticationError, match="not configured"):
            verify_stripe_signature(BODY, header, "", T0)
