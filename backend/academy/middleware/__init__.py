"""
Football Academy Backend — Middleware Package
===============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Rate Limit] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and error bodies, including 429s
    2. Logging: one access line per request, tagged with the request ID
    3. Rate Limit: reject abusive clients before any route work
    4. GZip / CORS: applied by Starlette's stock middleware

    Responses travel the chain in reverse, so the request ID header and the
    access log line both see the final status code.
"""
