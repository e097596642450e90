"""
Mutual Fund Tracking Backend — Request Logging Middleware
==========================================================

What:  Pipeline middleware that logs every routed request and its outcome.
Why:   Method, route, status and duration for each request, correlated by
       request id, are the first things needed when debugging.
How:   Wraps a pipeline Handler (see api.py). Duration is measured from the
       request start time already stored on the RequestContext.
When:  Registered as global middleware in create_app(); always forwards.

Logged fields:
    method, path (the route pattern, not the raw URL), status, duration_ms,
    remote address, request id

Not logged: request bodies or query values.

Failures:
    When the handler raises, the status the exception maps to is logged and
    the exception is re-raised untouched for the exception handlers.
"""

import logging
from datetime import datetime, timezone

from starlette.requests import Request
from starlette.responses import Response

from mftracking.api import Handler, Middleware, RequestContext

access_logger = logging.getLogger("mftracking.access")


def _level_for(status: int) -> int:
    # 5xx → ERROR, 4xx → WARNING, everything else → INFO
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def logger_middleware(log: logging.Logger = access_logger) -> Middleware:
    """Build the logging middleware around `log`."""

    def middleware(handler: Handler) -> Handler:

        async def wrapped(ctx: RequestContext, request: Request) -> Response:
            client_ip = request.client.host if request.client else "unknown"
            method = request.method

            log.info(
                "request started: %s %s [%s] from %s",
                method,
                ctx.path,
                ctx.trace_id,
                client_ip,
            )

            try:
                response = await handler(ctx, request)
            except Exception as exc:
                status = getattr(exc, "status_code", 500)
                _log_completed(log, ctx, method, status, client_ip, error=exc)
                raise

            status = ctx.status_code or response.status_code
            _log_completed(log, ctx, method, status, client_ip)
            return response

        return wrapped

    return middleware


def _log_completed(
    log: logging.Logger,
    ctx: RequestContext,
    method: str,
    status: int,
    client_ip: str,
    error: Exception = None,
) -> None:
    duration_ms = (datetime.now(timezone.utc) - ctx.now).total_seconds() * 1000
    message = "request completed: %s %s %d %.1fms [%s] from %s"
    args = [method, ctx.path, status, duration_ms, ctx.trace_id, client_ip]
    if error is not None:
        message += " error=%s"
        args.append(str(error))

    log.log(
        _level_for(status),
        message,
        *args,
        extra={
            "request_id": ctx.trace_id,
            "method": method,
            "path": ctx.path,
            "status": status,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
        },
    )
