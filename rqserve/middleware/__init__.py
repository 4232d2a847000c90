"""
rqserve — Middleware Package
==============================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so every log line of the request shares its ID
    - Logging captures the final status code and total duration
"""
