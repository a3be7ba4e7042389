"""
HMAC verification of inbound Jenkins webhooks.
"""

import hashlib
import hmac
from typing import Mapping

from jenkins_bridge.core.exceptions import ConfigurationError
from jenkins_bridge.core.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADERS = ("X-Hub-Signature-256", "X-Jenkins-Signature")


def get_signature_header(headers: Mapping[str, str]) -> str | None:
    """Return the first signature header present."""
    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return None


def _split_signature(signature: str) -> tuple[str, str]:
    """Return (digest name, hex) for ``sha256=``, ``sha1=`` or bare hex."""
    signature = signature.strip()
    if signature.startswith("sha256="):
        return "sha256", signature[len("sha256="):]
    if signature.startswith("sha1="):
        return "sha1", signature[len("sha1="):]
    return "sha256", signature


def verify_signature(body: bytes | str, signature: str | None, secret: str | None) -> bool:
    """
    Check that ``signature`` is the HMAC of ``body`` under ``secret``.

    ``body`` must be the bytes exactly as received. Every failure mode,
    including a missing secret, returns False.
    """
    if not secret:
        logger.error("Webhook secret not configured but signature verification attempted")
        return False
    if not signature:
        logger.warning("Webhook signature missing")
        return False

    try:
        if isinstance(body, str):
            body = body.encode("utf-8")
        digest_name, provided_hex = _split_signature(signature)
        provided = bytes.fromhex(provided_hex)
        expected = hmac.new(secret.encode("utf-8"), body, getattr(hashlib, digest_name)).digest()
        valid = hmac.compare_digest(expected, provided)
    except Exception as e:
        logger.error(
            f"Error verifying webhook signature: {e} (signature length {len(signature)}, body length {len(body)})"
        )
        return False

    if not valid:
        logger.warning(f"Invalid webhook signature {signature[:10]}...")
    return valid


def webhook_auth_bypass(environment: str) -> None:
    """
    Allow unauthenticated webhooks outside production.

    Raises:
        ConfigurationError: Always, when ``environment`` is production
    """
    if environment.strip().lower() == "production":
        logger.error("Attempted to use webhook auth bypass in production environment")
        raise ConfigurationError("Auth bypass not allowed in production")
    logger.warning(f"Webhook authentication bypassed for {environment} environment")
