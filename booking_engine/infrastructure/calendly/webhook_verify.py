from __future__ import annotations

import hashlib
import hmac
import logging


logger = logging.getLogger(__name__)


def parse_signature_header(signature_header: str) -> str:
    """Return the v1 value of a "t=<ts>,v1=<hex>" header, or the header itself."""
    parts: dict[str, str] = {}
    for part in signature_header.split(","):
        key, _, value = part.partition("=")
        if key.strip() and value.strip():
            parts[key.strip()] = value.strip()
    return parts.get("v1") or signature_header.strip()


def verify_signature(raw_body: bytes, signature_header: str | None, signing_key: str | None) -> bool:
    if not signing_key:
        logger.warning("No webhook signing key configured; skipping signature verification")
        return True

    if not signature_header:
        return False

    try:
        received = parse_signature_header(signature_header).lower()
        expected = hmac.new(signing_key.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
        if len(received) != len(expected):
            return False
        return hmac.compare_digest(received, expected)
    except Exception:
        logger.exception("Failed to verify webhook signature")
        return False


def sign_body(signing_key: str, raw_body: bytes, timestamp: int) -> str:
    digest = hmac.new(signing_key.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"
