"""
StudyGrove Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    The request ID is assigned before the access log runs, so every access
    line and every log record emitted while handling the request can carry
    the same correlation id.
"""
