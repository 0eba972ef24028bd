"""
Veriff HMAC-SHA256 signatures.

The same lowercase-hex HMAC authenticates inbound webhooks (over the raw
body, with the webhook secret) and outbound media requests (over the
session or media id, with the API secret).
"""

import hashlib
import hmac


def sign(payload: str | bytes, secret: str) -> str:
    """Lowercase hex HMAC-SHA256 of `payload` under `secret`."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), msg=payload, digestmod=hashlib.sha256).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: str | None, secret: str) -> bool:
    """
    Check a webhook signature header against the raw request body.

    Comparison is case-insensitive and constant-time. A missing
    signature never verifies.
    """
    if not signature:
        return False
    provided = signature.strip().lower()
    if provided.startswith("sha256="):
        provided = provided[len("sha256="):]
    return hmac.compare_digest(sign(raw_body, secret), provided)
