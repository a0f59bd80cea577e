"""
tests.test_observability

Log processors and request-id propagation.
"""

from __future__ import annotations

import httpx
import pytest

from lexdesk.observability.logging import redact_secrets


def test_redact_secrets_masks_credentials_only() -> None:
    event = redact_secrets(
        None,
        "info",
        {"event": "login", "password": "hunter2", "refresh_token": "abc", "user_id": "u1"},
    )
    assert event["password"] == "***"
    assert event["refresh_token"] == "***"
    assert event["user_id"] == "u1"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz", headers={"x-request-id": "req-123"})
    assert r.headers["x-request-id"] == "req-123"

    r = await client.get("/healthz")
    assert r.headers["x-request-id"]
