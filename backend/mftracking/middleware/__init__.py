# Middleware package init
"""
Mutual Fund Tracking Backend — Middleware Package
==================================================

What:  Cross-cutting concerns applied around request handling.

Two layers:
    ASGI (Starlette) middleware, added in create_app():
        Request → [Request ID] → [CORS] → router

    Pipeline middleware (api.Middleware), wrapped around each routed handler:
        router → [Logging] → [route-specific middleware] → handler

    ASGI middleware sees every request, including unmatched paths.
    Pipeline middleware only sees routed requests but receives the
    RequestContext (start time, route pattern, request id).
"""
