"""
lexdesk.auth

Request authorization pipeline.

Responsibilities:
- Token codec (JWT) and password hashing.
- Principal resolution and the composable gates (role, ownership, entitlement, quota).
- FastAPI dependency that runs a gate chain for a route.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package writes to storage; every gate is a read against `AuthStore`.
