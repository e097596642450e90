"""
Mutual Fund Tracking Backend — Request Pipeline
================================================

What:  A thin router wrapper giving every handler the same calling contract:
       an explicit per-request context, the request, and ordered middleware.
Why:   Handlers stay free of framework plumbing (timestamps, route names,
       request ids), and cross-cutting behaviour is composed per route.
How:   API.handle() wraps the handler in route middleware, then global
       middleware, and registers a Starlette endpoint on an APIRouter that
       builds a fresh RequestContext and calls the chain.

Handler contract:
    async def handler(ctx: RequestContext, request: Request) -> Response

    A handler returns the response it wants written (usually via respond())
    or raises. Raised MutualFundError subclasses are rendered by the
    exception handlers registered in main.py; the pipeline itself only
    renders the fallback for unmatched routes (not_found_response).

Middleware contract:
    Middleware = Callable[[Handler], Handler]
    The first middleware in a list is the outermost. A middleware may
    short-circuit by returning a response without calling the next handler.

Per-request context:
    RequestContext is created once per request inside the endpoint and
    passed down explicitly. It is never stored globally and never shared
    between requests.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Sequence, Type, TypeVar

import pydantic
from fastapi import APIRouter
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from mftracking.exceptions import BadRequestError, ValidationError
from mftracking.middleware.request_id import request_id_var
from mftracking.validate import field_errors

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# ":name" path segments, translated to Starlette's "{name}"
_PATH_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


@dataclass
class RequestContext:
    """
    Values every handler in one request can rely on.

    Attributes:
        trace_id:    request correlation id (X-Request-ID)
        now:         request start time (UTC); used to stamp domain writes
        path:        the registered route pattern, e.g. /v1/mutualfundmeta/:id
        status_code: set by respond() so logging middleware can report it
    """

    trace_id: str
    now: datetime
    path: str
    status_code: int = 0


Handler = Callable[[RequestContext, Request], Awaitable[Response]]
Middleware = Callable[[Handler], Handler]


def wrap_middleware(mw: Sequence[Middleware], handler: Handler) -> Handler:
    """Wrap `handler` so that mw[0] runs first and mw[-1] runs closest to it."""
    for middleware in reversed(mw):
        if middleware is not None:
            handler = middleware(handler)
    return handler


def starlette_path(path: str) -> str:
    """/v1/mutualfundmeta/:id → /v1/mutualfundmeta/{id}"""
    return _PATH_PARAM.sub(r"{\1}", path)


class API:
    """
    Route table plus the middleware applied to every route.

    Example:
        api = API(logger_middleware(log))
        api.handle("GET", "/v1/teapot", teapot)
        app.include_router(api.router)
    """

    def __init__(self, *mw: Middleware):
        self.router = APIRouter()
        self._mw = list(mw)

    def handle(self, method: str, path: str, handler: Handler, *mw: Middleware) -> None:
        """
        Bind (method, path) to `handler`.

        Route middleware wraps the handler first, then the API's global
        middleware wraps the result, so global middleware always runs outermost.
        """
        handler = wrap_middleware(mw, handler)
        handler = wrap_middleware(self._mw, handler)

        async def endpoint(request: Request) -> Response:
            ctx = RequestContext(
                trace_id=request_id_var.get(""),
                now=datetime.now(timezone.utc),
                path=path,
            )
            return await handler(ctx, request)

        self.router.add_route(
            starlette_path(path),
            endpoint,
            methods=[method.upper()],
            include_in_schema=False,
        )


def respond(ctx: RequestContext, data: Any, status_code: int) -> Response:
    """
    Serialize `data` as JSON with the status the handler chose.

    204 responses carry no body. The status is recorded on the context.
    """
    ctx.status_code = status_code
    if status_code == 204:
        return Response(status_code=status_code)
    return JSONResponse(content=jsonable_encoder(data), status_code=status_code)


async def decode(request: Request, model: Type[M]) -> M:
    """
    Parse the JSON request body into `model`.

    Raises:
        BadRequestError: body is not JSON, or not a JSON object
        ValidationError: body is an object but fields break the model's rules
    """
    body = await request.body()
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadRequestError(
            message=f"unable to decode request body: {exc}",
            context={"path": request.url.path},
        ) from exc

    if not isinstance(data, dict):
        raise BadRequestError(
            message="request body must be a JSON object",
            context={"path": request.url.path},
        )

    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(fields=field_errors(exc)) from exc


def not_found_response(request: Request) -> Response:
    """Fallback for unmatched routes: plain-text 404 naming the request target (path and query)."""
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    logger.warning("path not found: %s %s", request.method, url)
    return PlainTextResponse(f"path not found: {url}", status_code=404)
