"""
lexdesk

Practice-management API for law firms: accounts, clients, legal processes,
documents and appointments, gated by role, ownership, subscription and plan limits.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
