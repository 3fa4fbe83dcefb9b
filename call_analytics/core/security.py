"""HMAC-SHA256 webhook signatures with a replay window.

Header format: ``t=<unix seconds>,v0=<hex digest>``; the digest covers
``"<t>.<raw body>"``. Field order is free and unknown fields are ignored.
"""

import hashlib
import hmac
import time
from datetime import datetime, timezone
from typing import Optional

from call_analytics.core.errors import AuthenticationError, SignatureRejectReason

SIGNATURE_TOLERANCE_SECONDS = 30 * 60
SIGNATURE_VERSION = "v0"


def parse_signature_header(header_value: str) -> tuple[Optional[str], Optional[str]]:
    fields: dict[str, str] = {}
    for part in header_value.split(","):
        key, separator, value = part.strip().partition("=")
        if separator and key.strip() not in fields:
            fields[key.strip()] = value.strip()
    return fields.get("t") or None, fields.get(SIGNATURE_VERSION) or None


def compute_signature(raw_body: str, secret: str, timestamp: int) -> str:
    digest = hmac.new(secret.encode("utf-8"), f"{timestamp}.{raw_body}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def sign_payload(raw_body: str, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a signature header value for ``raw_body``."""
    if timestamp is None:
        timestamp = int(time.time())
    return f"t={timestamp},{compute_signature(raw_body, secret, timestamp)}"


def verify_signature(
    raw_body: str,
    header_value: Optional[str],
    secret: Optional[str],
    now: Optional[datetime] = None,
    tolerance_seconds: int = SIGNATURE_TOLERANCE_SECONDS,
) -> int:
    """Return the signed timestamp or raise ``AuthenticationError``.

    Timestamps older than ``tolerance_seconds`` are rejected; timestamps in
    the future are accepted.
    """
    if not header_value:
        raise AuthenticationError(SignatureRejectReason.MISSING_SIGNATURE)

    raw_timestamp, received_digest = parse_signature_header(header_value)
    if raw_timestamp is None or received_digest is None:
        raise AuthenticationError(SignatureRejectReason.INVALID_SIGNATURE_FORMAT)
    try:
        timestamp = int(raw_timestamp)
    except ValueError:
        raise AuthenticationError(SignatureRejectReason.INVALID_SIGNATURE_FORMAT) from None

    current = now or datetime.now(timezone.utc)
    now_ms = int(current.timestamp() * 1000)
    if timestamp * 1000 < now_ms - tolerance_seconds * 1000:
        raise AuthenticationError(SignatureRejectReason.EXPIRED_SIGNATURE)

    if not secret:
        raise AuthenticationError(SignatureRejectReason.MISSING_SECRET)

    expected = compute_signature(raw_body, secret, timestamp)
    received = f"{SIGNATURE_VERSION}={received_digest}"
    if not hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8")):
        raise AuthenticationError(SignatureRejectReason.INVALID_SIGNATURE)
    return timestamp
