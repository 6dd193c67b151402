"""
Tulisin Backend — Middleware Package
=====================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → Route

    CORS wraps everything so browsers can read 429 responses too. Request ID
    precedes logging and rate limiting so their log lines carry the
    correlation ID.
"""
