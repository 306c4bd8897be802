"""Verification of the signature GitHub attaches to Copilot agent requests.

GitHub signs the raw request body with ECDSA (SHA-256) and names the signing
key in a header; the public keys are published at a well-known endpoint.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Mapping

import httpx
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .config import Settings
from .errors import ErrorCode, UpstreamAuthFailure

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-github-token"
SIGNATURE_HEADER = "github-public-key-signature"
KEY_ID_HEADER = "github-public-key-identifier"


async def fetch_public_keys(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> list[dict[str, Any]]:
    """Fetch the current Copilot signing keys."""
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get(settings.github_keys_uri, timeout=settings.keys_timeout_seconds)
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise UpstreamAuthFailure("Could not fetch signing keys", cause=exc) from exc
    return list(payload.get("public_keys") or [])


def verify_signature(public_key_pem: str, payload: bytes, signature: str) -> bool:
    """Check a base64 ECDSA-SHA256 ``signature`` over ``payload``."""
    try:
        public_key = serialization.load_pem_public_key(public_key_pem.encode())
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            return False
        public_key.verify(base64.b64decode(signature), payload, ec.ECDSA(hashes.SHA256()))
    except (InvalidSignature, ValueError):
        return False
    return True


async def verify_payload(
    payload: bytes,
    signature: str,
    key_id: str,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    keys = await fetch_public_keys(settings, transport=transport)
    public_key = next((key for key in keys if key.get("key_identifier") == key_id), None)
    if not public_key:
        raise UpstreamAuthFailure("No public key found matching key identifier")
    if not verify_signature(public_key.get("key", ""), payload, signature):
        logger.warning("Signature mismatch for key %s", key_id)
        raise UpstreamAuthFailure("Signature does not match payload")


def _not_authorized() -> UpstreamAuthFailure:
    # Missing credentials are reported as a request error, bad signatures as upstream.
    return UpstreamAuthFailure("Not authorized with github", code=ErrorCode.request, identifier="agent")


async def authenticate(
    headers: Mapping[str, str],
    payload: bytes,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Check the request credentials and return the caller's Copilot token."""
    token = headers.get(TOKEN_HEADER)
    if not token:
        raise _not_authorized()

    if not settings.verify_signatures:
        return token

    signature = headers.get(SIGNATURE_HEADER)
    key_id = headers.get(KEY_ID_HEADER)
    if not signature or not key_id:
        raise _not_authorized()

    await verify_payload(payload, signature, key_id, settings, transport=transport)
    return token


__all__ = [
    "KEY_ID_HEADER",
    "SIGNATURE_HEADER",
    "TOKEN_HEADER",
    "authenticate",
    "fetch_public_keys",
    "verify_payload",
    "verify_signature",
]
