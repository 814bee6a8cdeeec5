"""
Webhook signature verification.

Every platform signs the raw request body with HMAC-SHA256. Clover sends the
digest hex encoded, Shopify and BigCommerce base64 encoded.
"""

import base64
import hashlib
import hmac
from typing import Optional, Union


def compute_signature(raw_body: Union[bytes, str], secret: str, encoding: str = "hex") -> str:
    """Compute the HMAC-SHA256 signature of a raw webhook body."""
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256)
    if encoding == "base64":
        return base64.b64encode(digest.digest()).decode("ascii")
    if encoding == "hex":
        return digest.hexdigest()
    raise ValueError(f"Unsupported signature encoding: {encoding}")


def verify_signature(
    raw_body: Union[bytes, str],
    signature: Optional[str],
    secret: str,
    encoding: str = "hex",
) -> bool:
    """
    Constant-time check of a webhook signature.

    Returns False when the signature or secret is missing instead of raising,
    so callers can map the outcome onto an HTTP status themselves.
    """
    if not signature or not secret:
        return False

    expected = compute_signature(raw_body, secret, encoding)
    return hmac.compare_digest(signature.strip().encode("utf-8"), expected.encode("utf-8"))
