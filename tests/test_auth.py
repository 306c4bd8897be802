"""Tests for GitHub request signature verification."""

from __future__ import annotations

import base64

import httpx
import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from fetch_agent.auth import (
    KEY_ID_HEADER,
    SIGNATURE_HEADER,
    TOKEN_HEADER,
    authenticate,
    verify_signature,
)
from fetch_agent.config import Settings
from fetch_agent.errors import ErrorCode, ErrorType, UpstreamAuthFailure

PAYLOAD = b'{"messages":[{"role":"user","content":"hi"}]}'
KEY_ID = "4fe6b016179b74078ade7581abf4e84fb398c6fae4fb973972235b84fcd70ca3"


@pytest.fixture
def private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def public_pem(private_key):
    return private_key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode()


@pytest.fixture
def keys_transport(public_pem):
    def _handler(request):
        return httpx.Response(
            200,
            json={"public_keys": [{"key_identifier": KEY_ID, "key": public_pem, "is_current": True}]},
        )

    return httpx.MockTransport(_handler)


@pytest.fixture
def verifying_settings():
    return Settings(VERIFY_SIGNATURES=True, GITHUB_KEYS_URI="https://keys.example.com/copilot_api")


def _sign(private_key, payload: bytes) -> str:
    return base64.b64encode(private_key.sign(payload, ec.ECDSA(hashes.SHA256()))).decode()


def _headers(signature: str, key_id: str = KEY_ID) -> dict[str, str]:
    return {TOKEN_HEADER: "ghu_token", SIGNATURE_HEADER: signature, KEY_ID_HEADER: key_id}


def test_verify_signature(private_key, public_pem):
    signature = _sign(private_key, PAYLOAD)

    assert verify_signature(public_pem, PAYLOAD, signature)
    assert not verify_signature(public_pem, PAYLOAD + b" ", signature)
    assert not verify_signature(public_pem, PAYLOAD, "not base64!")


@pytest.mark.asyncio
async def test_valid_signature_returns_token(private_key, keys_transport, verifying_settings):
    token = await authenticate(
        _headers(_sign(private_key, PAYLOAD)), PAYLOAD, verifying_settings, transport=keys_transport
    )

    assert token == "ghu_token"


@pytest.mark.asyncio
async def test_tampered_payload_is_rejected(private_key, keys_transport, verifying_settings):
    with pytest.raises(UpstreamAuthFailure) as exc_info:
        await authenticate(
            _headers(_sign(private_key, PAYLOAD)), PAYLOAD + b"x", verifying_settings, transport=keys_transport
        )

    assert exc_info.value.message == "Signature does not match payload"
    assert exc_info.value.type == ErrorType.agent
    assert exc_info.value.code == ErrorCode.upstream


@pytest.mark.asyncio
async def test_unknown_key_identifier(private_key, keys_transport, verifying_settings):
    with pytest.raises(UpstreamAuthFailure) as exc_info:
        await authenticate(
            _headers(_sign(private_key, PAYLOAD), key_id="other"),
            PAYLOAD,
            verifying_settings,
            transport=keys_transport,
        )

    assert exc_info.value.message == "No public key found matching key identifier"


@pytest.mark.asyncio
async def test_key_endpoint_failure(private_key, verifying_settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    with pytest.raises(UpstreamAuthFailure):
        await authenticate(_headers(_sign(private_key, PAYLOAD)), PAYLOAD, verifying_settings, transport=transport)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [
        {},
        {SIGNATURE_HEADER: "sig", KEY_ID_HEADER: KEY_ID},
        {TOKEN_HEADER: "ghu_token", KEY_ID_HEADER: KEY_ID},
        {TOKEN_HEADER: "ghu_token", SIGNATURE_HEADER: "sig"},
    ],
)
async def test_missing_headers(headers, verifying_settings):
    with pytest.raises(UpstreamAuthFailure) as exc_info:
        await authenticate(headers, PAYLOAD, verifying_settings)

    assert exc_info.value.message == "Not authorized with github"
    assert exc_info.value.identifier == "agent"
    assert exc_info.value.code == ErrorCode.request


@pytest.mark.asyncio
async def test_verification_disabled_only_needs_token(settings):
    assert await authenticate({TOKEN_HEADER: "ghu_token"}, PAYLOAD, settings) == "ghu_token"
