"""
lexdesk.api.routers

Route modules, one per resource area. Each protected route declares its gate chain
with `lexdesk.auth.deps.authorize`.
"""
