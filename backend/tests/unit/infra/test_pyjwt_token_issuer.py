"""Unit tests for the PyJWT-backed token issuer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from taskflow.infra.jwt import PyJWTTokenIssuer


@dataclass
class _User:
    id: str = "0b7e2f9c-1111-4a4a-9c9c-123456789abc"
    email: str = "alice@example.com"
    name: str = "Alice"
    role: str = "user"
    token_version: int = 0
    password_hash: str = "x"


@pytest.fixture()
def issuer() -> PyJWTTokenIssuer:
    return PyJWTTokenIssuer(
        access_secret="access-secret",
        refresh_secret="refresh-secret",
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )


def test_access_token_claims(issuer):
    user = _User()
    claims = issuer.decode_access(issuer.issue_access_token(user))

    assert claims["sub"] == user.id
    assert claims["email"] == "alice@example.com"
    assert claims["role"] == "user"
    assert claims["tokenVersion"] == 0
    assert claims["type"] == "access"
    assert len(claims["jti"]) == 32
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_refresh_token_claims(issuer):
    claims = issuer.decode_refresh(issuer.issue_refresh_token("user-1"))

    assert claims["sub"] == "user-1"
    assert claims["type"] == "refresh"
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600
    assert "email" not in claims


def test_refresh_tokens_minted_together_are_distinct(issuer):
    tokens = {issuer.issue_refresh_token("user-1") for _ in range(50)}
    assert len(tokens) == 50


def test_access_token_is_not_a_refresh_token(issuer):
    access = issuer.issue_access_token(_User())
    with pytest.raises(jwt.InvalidTokenError):
        issuer.decode_refresh(access)


def test_refresh_token_is_not_an_access_token(issuer):
    refresh = issuer.issue_refresh_token("user-1")
    with pytest.raises(jwt.InvalidTokenError):
        issuer.decode_access(refresh)


def test_type_claim_is_checked_even_with_right_secret(issuer):
    now = datetime.now(UTC)
    forged = jwt.encode(
        {"sub": "u", "jti": "j", "iat": now, "exp": now + timedelta(minutes=1), "type": "refresh"},
        "access-secret",
        algorithm="HS256",
    )
    with pytest.raises(jwt.InvalidTokenError):
        issuer.decode_access(forged)


def test_expired_token_is_rejected(issuer):
    short = PyJWTTokenIssuer(
        access_secret="access-secret",
        refresh_secret="refresh-secret",
        access_ttl=timedelta(seconds=-1),
        refresh_ttl=timedelta(days=7),
    )
    with pytest.raises(jwt.ExpiredSignatureError):
        issuer.decode_access(short.issue_access_token(_User()))


def test_tampered_signature_is_rejected(issuer):
    token = issuer.issue_refresh_token("user-1")
    head, payload, sig = token.split(".")
    tampered = ".".join([head, payload, ("A" if sig[0] != "A" else "B") + sig[1:]])
    with pytest.raises(jwt.InvalidTokenError):
        issuer.decode_refresh(tampered)


def test_peek_expiry_reads_exp_without_verification(issuer):
    token = issuer.issue_access_token(_User())
    exp = issuer.peek_expiry(token)
    assert exp is not None
    delta = exp - datetime.now(UTC)
    assert timedelta(minutes=14) < delta <= timedelta(minutes=15)


def test_issue_pair(issuer):
    pair = issuer.issue_pair(_User())
    assert issuer.decode_access(pair.access_token)["sub"] == _User.id
    assert issuer.decode_refresh(pair.refresh_token)["sub"] == _User.id
