"""
lexdesk.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, repositories and the SQL `AuthStore`.
"""

# Package marker.
