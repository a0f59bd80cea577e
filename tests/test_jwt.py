"""
tests.test_jwt

Token codec: header parsing, claim validation and the expiry boundary.
"""

from __future__ import annotations

from datetime import timedelta

import jwt as pyjwt
import pytest

from lexdesk.auth.errors import Expired, Invalid, MalformedHeader
from lexdesk.auth.jwt import (
    JwtConfig,
    decode_and_validate,
    decode_authorization,
    issue_token,
    parse_authorization_header,
)
from lexdesk.auth.models import Role, TokenKind

from .conftest import NOW


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        (None, "Authentication token not provided"),
        ("", "Authentication token not provided"),
        ("Bearer", "Token format error"),
        ("Bearer a b", "Token format error"),
        ("Basic abc", "Malformed token"),
        ("Bearer ", "Malformed token"),
    ],
)
def test_parse_authorization_header_rejects(raw: str | None, message: str) -> None:
    with pytest.raises(MalformedHeader) as exc:
        parse_authorization_header(raw)
    assert exc.value.message == message
    assert exc.value.status_code == 401


def test_parse_authorization_header_scheme_is_case_insensitive() -> None:
    assert parse_authorization_header("bearer tok") == "tok"
    assert parse_authorization_header("Token tok", scheme="Token") == "tok"


def test_round_trip_claims(jwt_cfg: JwtConfig) -> None:
    token = issue_token(
        cfg=jwt_cfg,
        subject="u1",
        kind=TokenKind.access,
        ttl=timedelta(hours=1),
        role=Role.admin,
        now=NOW,
    )
    claims = decode_and_validate(cfg=jwt_cfg, token=token, now=NOW + timedelta(minutes=1))
    assert claims.principal_id == "u1"
    assert claims.kind is TokenKind.access
    assert claims.role is Role.admin
    assert claims.expires_at == NOW + timedelta(hours=1)


def test_expiry_boundary_is_exclusive(jwt_cfg: JwtConfig) -> None:
    ttl = timedelta(minutes=10)
    token = issue_token(cfg=jwt_cfg, subject="u1", kind=TokenKind.access, ttl=ttl, now=NOW)
    exp = NOW + ttl

    decode_and_validate(cfg=jwt_cfg, token=token, now=exp - timedelta(seconds=1))
    with pytest.raises(Expired):
        decode_and_validate(cfg=jwt_cfg, token=token, now=exp)
    with pytest.raises(Expired):
        decode_and_validate(cfg=jwt_cfg, token=token, now=exp + timedelta(days=1))


def test_refresh_token_is_not_an_access_token(jwt_cfg: JwtConfig) -> None:
    refresh = issue_token(
        cfg=jwt_cfg, subject="u1", kind=TokenKind.refresh, ttl=timedelta(days=7), now=NOW
    )
    with pytest.raises(Invalid):
        decode_and_validate(cfg=jwt_cfg, token=refresh, now=NOW)
    claims = decode_and_validate(cfg=jwt_cfg, token=refresh, kind=TokenKind.refresh, now=NOW)
    assert claims.role is None


def test_wrong_secret_or_audience_is_invalid(jwt_cfg: JwtConfig) -> None:
    token = issue_token(
        cfg=jwt_cfg, subject="u1", kind=TokenKind.access, ttl=timedelta(hours=1), now=NOW
    )
    other_secret = JwtConfig(
        alg=jwt_cfg.alg, issuer=jwt_cfg.issuer, audience=jwt_cfg.audience, secret="nope"
    )
    other_audience = JwtConfig(
        alg=jwt_cfg.alg, issuer=jwt_cfg.issuer, audience="elsewhere", secret=jwt_cfg.secret
    )
    with pytest.raises(Invalid):
        decode_and_validate(cfg=other_secret, token=token, now=NOW)
    with pytest.raises(Invalid):
        decode_and_validate(cfg=other_audience, token=token, now=NOW)


def test_missing_claims_are_invalid(jwt_cfg: JwtConfig) -> None:
    token = pyjwt.encode(
        {"iss": jwt_cfg.issuer, "aud": jwt_cfg.audience, "token_type": "access"},
        jwt_cfg.secret,
        algorithm=jwt_cfg.alg,
    )
    with pytest.raises(Invalid):
        decode_and_validate(cfg=jwt_cfg, token=token, now=NOW)


def test_garbage_token_is_invalid(jwt_cfg: JwtConfig) -> None:
    with pytest.raises(Invalid):
        decode_authorization(cfg=jwt_cfg, header="Bearer not-a-jwt", now=NOW)
