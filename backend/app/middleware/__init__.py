"""
YelpCamp Backend - Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [CORS] → [GZip] → [Session]
            → [Logging] → [Method Override] → Route Handler

    1. Rate Limit first: reject abusive mutations before any processing
    2. Request ID: correlation id for every log line of the request
    3. Session: decodes the signed cookie; Logging runs inside it so the
       access line can carry the signed-in user id
    4. Method Override: turns POST ?_method=PUT|PATCH|DELETE into the real
       verb before routing, so HTML forms can reach PUT/DELETE routes
"""
