from __future__ import annotations

import asyncio

import pytest

from google.auth import exceptions as google_exceptions

from relay_core import identity as identity_module
from relay_core.errors import ErrorKind, RelayError
from relay_core.identity import GoogleIdentityVerifier, authenticate, bearer_token
from relay_core.models import IdentityClaims


def test_bearer_token_parsing() -> None:
    assert bearer_token("Bearer abc.def") == "abc.def"
    assert bearer_token("bearer   abc") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token(None) is None


def test_verifier_without_client_id_is_misconfigured() -> None:
    verifier = GoogleIdentityVerifier("", transport_request=object())
    with pytest.raises(RelayError) as exc_info:
        verifier.verify("token")
    assert exc_info.value.kind == ErrorKind.misconfigured


def test_verifier_returns_claims(monkeypatch) -> None:
    captured: dict = {}

    def _fake_verify(token, request, audience=None):  # type: ignore[no-untyped-def]
        captured["token"] = token
        captured["audience"] = audience
        return {"email": "user@example.com", "sub": "123", "email_verified": True}

    monkeypatch.setattr(identity_module.id_token, "verify_oauth2_token", _fake_verify)
    verifier = GoogleIdentityVerifier("client-id", transport_request=object())
    claims = verifier.verify("good-token")
    assert claims.email == "user@example.com"
    assert claims.sub == "123"
    assert captured == {"token": "good-token", "audience": "client-id"}


def test_verifier_rejection_is_unauthenticated(monkeypatch) -> None:
    def _fake_verify(token, request, audience=None):  # type: ignore[no-untyped-def]
        raise ValueError("Token expired")

    monkeypatch.setattr(identity_module.id_token, "verify_oauth2_token", _fake_verify)
    verifier = GoogleIdentityVerifier("client-id", transport_request=object())
    with pytest.raises(RelayError) as exc_info:
        verifier.verify("stale-token")
    assert exc_info.value.kind == ErrorKind.unauthenticated
    assert exc_info.value.detail == "Invalid identity token"


class _CountingVerifier(identity_module.IdentityVerifier):
    def __init__(self) -> None:
        self.calls = 0

    def verify(self, token: str) -> IdentityClaims:
        self.calls += 1
        return IdentityClaims(email="user@example.com")


def test_authenticate_requires_well_formed_header() -> None:
    verifier = _CountingVerifier()
    with pytest.raises(RelayError) as exc_info:
        asyncio.run(authenticate("Token abc", verifier))
    assert exc_info.value.kind == ErrorKind.unauthenticated
    assert exc_info.value.detail == "Missing Authorization Bearer token"
    assert verifier.calls == 0

    claims = asyncio.run(authenticate("Bearer abc", verifier))
    assert claims.email == "user@example.com"
    assert verifier.calls == 1


def test_verifier_maps_google_auth_errors_to_unauthenticated(monkeypatch) -> None:
    def _fake_verify(token, request, audience=None):  # type: ignore[no-untyped-def]
        raise google_exceptions.GoogleAuthError("Wrong issuer")

    monkeypatch.setattr(identity_module.id_token, "verify_oauth2_token", _fake_verify)
    verifier = GoogleIdentityVerifier("client-id", transport_request=object())
    with pytest.raises(RelayError) as exc_info:
        verifier.verify("foreign-token")
    assert exc_info.value.kind == ErrorKind.unauthenticated


def test_verifier_lets_cert_fetch_failures_through(monkeypatch) -> None:
    def _fake_verify(token, request, audience=None):  # type: ignore[no-untyped-def]
        raise google_exceptions.TransportError("certs unreachable")

    monkeypatch.setattr(identity_module.id_token, "verify_oauth2_token", _fake_verify)
    verifier = GoogleIdentityVerifier("client-id", transport_request=object())
    with pytest.raises(google_exceptions.TransportError):
        verifier.verify("good-token")


def test_identity_verifier_requires_verify() -> None:
    with pytest.raises(TypeError):
        identity_module.IdentityVerifier()  # type: ignore[abstract]

    class _Partial(identity_module.IdentityVerifier):
        pass

    with pytest.raises(TypeError):
        _Partial()  # type: ignore[abstract]
