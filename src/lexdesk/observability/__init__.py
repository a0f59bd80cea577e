"""
lexdesk.observability

Logging for the API process: structlog configuration and the middleware that
binds per-request fields (request id, path, method) for every log line.
"""
