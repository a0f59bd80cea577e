"""
lexdesk.auth.errors

Rejection taxonomy for the authorization pipeline.

Responsibilities:
- One exception type per rejection kind, each carrying its HTTP status.
- Render the JSON error body consumed by the UI (`requiresSubscription`,
  `requiresUpgrade`, `currentCount`, `limit`).
"""

from __future__ import annotations

from typing import Any, ClassVar

from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class AuthError(Exception):
    status_code: ClassVar[int] = HTTP_401_UNAUTHORIZED
    default_message: ClassVar[str] = "Authentication required"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def extras(self) -> dict[str, Any]:
        return {}

    def to_body(self) -> dict[str, Any]:
        return {"error": True, "message": self.message, **self.extras()}


class MalformedHeader(AuthError):
    default_message = "Malformed or missing authorization header"


class Expired(AuthError):
    default_message = "Token expired"


class Invalid(AuthError):
    default_message = "Invalid token"


class PrincipalNotFound(AuthError):
    default_message = "User not found or inactive"


class PrincipalInactive(AuthError):
    default_message = "User not found or inactive"


class Forbidden(AuthError):
    status_code = HTTP_403_FORBIDDEN
    default_message = "Access denied"


class SubscriptionRequired(AuthError):
    status_code = HTTP_403_FORBIDDEN
    default_message = "An active subscription is required to access this resource"

    def extras(self) -> dict[str, Any]:
        return {"requiresSubscription": True}


class QuotaExceeded(AuthError):
    status_code = HTTP_403_FORBIDDEN

    def __init__(self, *, resource_class: str, current_count: int, limit: int) -> None:
        super().__init__(f"Limit of {resource_class} reached for your current plan")
        self.resource_class = resource_class
        self.current_count = current_count
        self.limit = limit

    def extras(self) -> dict[str, Any]:
        return {"currentCount": self.current_count, "limit": self.limit, "requiresUpgrade": True}


class UnknownResourceClass(LookupError):
    """
    Programming defect: a route referenced a resource class nobody registered.
    Not an `AuthError`; the tag is kept for logs and never reaches the caller.
    """

    status_code = HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, resource_class: str) -> None:
        super().__init__(resource_class)
        self.resource_class = resource_class


class StorageUnavailable(Exception):
    """
    Backing store failed; never an authorization verdict.
    """

    status_code = HTTP_500_INTERNAL_SERVER_ERROR


# --- Module Notes -----------------------------------------------------------
# PrincipalNotFound and PrincipalInactive share a message so the response does
# not reveal whether an account exists.
