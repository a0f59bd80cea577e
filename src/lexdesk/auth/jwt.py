"""
lexdesk.auth.jwt

Token codec: JWT issuing and validation helpers.

Responsibilities:
- Parse the `Authorization: <scheme> <token>` header.
- Issue access and refresh tokens (login / refresh collaborators).
- Decode and validate tokens with strict claim requirements and an injectable clock.

Note:
- Expiry is checked here rather than by PyJWT so the boundary (`now >= exp`) is
  exact and testable with a fixed clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from lexdesk.auth.errors import Expired, Invalid, MalformedHeader
from lexdesk.auth.models import Claims, Role, TokenKind


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def parse_authorization_header(raw: str | None, *, scheme: str = "Bearer") -> str:
    if not raw:
        raise MalformedHeader("Authentication token not provided")
    parts = raw.split(" ")
    if len(parts) != 2:
        raise MalformedHeader("Token format error")
    given_scheme, token = parts
    if given_scheme.lower() != scheme.lower() or not token:
        raise MalformedHeader("Malformed token")
    return token


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    kind: TokenKind,
    ttl: timedelta,
    role: Role | None = None,
    now: datetime | None = None,
) -> str:
    issued = now or utcnow()
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "token_type": kind.value,
        "iat": int(issued.timestamp()),
        "exp": int((issued + ttl).timestamp()),
    }
    # Refresh tokens never carry a role.
    if kind is TokenKind.access and role is not None:
        payload["role"] = role.value
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(
    *,
    cfg: JwtConfig,
    token: str,
    kind: TokenKind = TokenKind.access,
    now: datetime | None = None,
) -> Claims:
    try:
        payload = jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
                "verify_exp": False,
                "verify_iat": False,
            },
        )
    except InvalidTokenError as e:
        raise Invalid() from e

    try:
        token_kind = TokenKind(payload.get("token_type"))
        issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=UTC)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
        role = Role(payload["role"]) if "role" in payload else None
    except (TypeError, ValueError) as e:
        raise Invalid() from e

    if token_kind is not kind:
        raise Invalid()
    if (now or utcnow()) >= expires_at:
        raise Expired()

    subject = str(payload["sub"])
    if not subject:
        raise Invalid()
    return Claims(
        principal_id=subject,
        kind=token_kind,
        issued_at=issued_at,
        expires_at=expires_at,
        role=role,
    )


def decode_authorization(
    *,
    cfg: JwtConfig,
    header: str | None,
    scheme: str = "Bearer",
    now: datetime | None = None,
) -> Claims:
    token = parse_authorization_header(header, scheme=scheme)
    return decode_and_validate(cfg=cfg, token=token, kind=TokenKind.access, now=now)


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `api/routers/auth.py` (login, refresh-token).
