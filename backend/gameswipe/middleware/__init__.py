"""
GameSwipe Backend: Middleware Package
=====================================

Cross-cutting HTTP concerns, applied in this order (outermost first):

    Request → [CORS] → [Request ID] → [Logging] → [Security Headers]
            → [Join Rate Limit] → Route Handler

    - CORS outermost so that every response, 429s included, carries the
      headers a browser needs to read it.
    - Request ID before Logging so access lines carry the ID.
    - Join Rate Limit innermost of the custom layers: its 429s still get an
      ID, an access-log line and the security headers.
"""
