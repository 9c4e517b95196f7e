"""
Blogstack Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Execution order (outermost first):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    - Rate limiting rejects floods before any other work is done
    - The request id is set before the access log line is written
    - Responses pass back through the same chain, so the access log sees
      the final status and the request id lands in the response headers
"""
