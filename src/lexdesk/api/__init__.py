"""
lexdesk.api

HTTP layer (FastAPI).

Responsibilities:
- App factory, dependencies, error rendering and routers.
"""

# Package marker.
