"""
Mutual Fund Tracking Backend — Version 1 Route Table
=====================================================

What:  Binds every /v1 route to its handler on an API instance.
Who:   Called once by create_app().
"""

from starlette.requests import Request
from starlette.responses import Response

from mftracking.api import API, RequestContext, respond
from mftracking.routes.mutual_fund_meta import MutualFundMetaHandlers
from mftracking.schemas.mutual_fund_meta import TeapotLyrics
from mftracking.services.mutual_fund_meta_service import MutualFundMetaService

LYRICS = """I'm a little teapot, Short and stout,
Here is my handle. Here is my spout.
When I get all steamed up, Hear me shout,
Tip me over and pour me out!"""


async def teapot(ctx: RequestContext, request: Request) -> Response:
    """Fixed payload with status 418; doubles as a liveness check."""
    return respond(ctx, [TeapotLyrics(lyrics=LYRICS)], 418)


def register(api: API, service: MutualFundMetaService) -> None:
    """Register the v1 routes on `api`."""
    mfm = MutualFundMetaHandlers(service)
    api.handle("GET", "/v1/mutualfundmeta", mfm.query)
    api.handle("POST", "/v1/mutualfundmeta", mfm.create)
    api.handle("GET", "/v1/mutualfundmeta/:id", mfm.query_by_id)
    api.handle("PUT", "/v1/mutualfundmeta/:id", mfm.update)
    api.handle("DELETE", "/v1/mutualfundmeta/:id", mfm.delete)

    api.handle("GET", "/v1/teapot", teapot)
