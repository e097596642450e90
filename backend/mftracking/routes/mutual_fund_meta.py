"""
Mutual Fund Tracking Backend — MutualFundMeta Route Handlers
=============================================================

What:  Pipeline handlers for /v1/mutualfundmeta.
How:   Pull inputs out of the request (body, path, query), call the
       service with the request start time, respond with an explicit status.
Who:   Registered by routes/v1.py.

Status codes:
    GET    /v1/mutualfundmeta       200 | 400 (bad pagination)
    POST   /v1/mutualfundmeta       201 | 400 (decode/validation) | 409
    GET    /v1/mutualfundmeta/:id   200 | 400 (invalid id) | 404
    PUT    /v1/mutualfundmeta/:id   200 | 400 | 404 | 409
    DELETE /v1/mutualfundmeta/:id   204 | 400 | 404

    Errors are raised; main.register_exception_handlers renders them.
"""

import logging

from starlette.requests import Request
from starlette.responses import Response

from mftracking.api import RequestContext, decode, respond
from mftracking.pagination import first_values, pagination_params
from mftracking.schemas.mutual_fund_meta import NewMutualFundMeta, UpdateMutualFundMeta
from mftracking.services.mutual_fund_meta_service import MutualFundMetaService

logger = logging.getLogger(__name__)


class MutualFundMetaHandlers:
    """Handler set bound to one service instance."""

    def __init__(self, service: MutualFundMetaService):
        self.service = service

    async def query(self, ctx: RequestContext, request: Request) -> Response:
        """List active records, one page at a time."""
        pagination = pagination_params(first_values(request.query_params))
        records = await self.service.query(pagination)
        return respond(ctx, records, 200)

    async def query_by_id(self, ctx: RequestContext, request: Request) -> Response:
        record = await self.service.query_by_id(request.path_params["id"])
        return respond(ctx, record, 200)

    async def create(self, ctx: RequestContext, request: Request) -> Response:
        """Create a record; timestamps come from ctx.now."""
        new = await decode(request, NewMutualFundMeta)
        record = await self.service.create(new, ctx.now)
        return respond(ctx, record, 201)

    async def update(self, ctx: RequestContext, request: Request) -> Response:
        """Partial update; returns the record as stored afterwards."""
        upd = await decode(request, UpdateMutualFundMeta)
        record = await self.service.update(request.path_params["id"], upd, ctx.now)
        return respond(ctx, record, 200)

    async def delete(self, ctx: RequestContext, request: Request) -> Response:
        await self.service.delete(request.path_params["id"], ctx.now)
        return respond(ctx, None, 204)
