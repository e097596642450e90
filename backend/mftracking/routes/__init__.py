# Routes package init
"""
Mutual Fund Tracking Backend — API Routes Package
==================================================

What:  Pipeline handlers and the route table that binds them.

Route Inventory:
    - v1.py:                register() plus GET /v1/teapot
    - mutual_fund_meta.py:  GET/POST /v1/mutualfundmeta,
                            GET/PUT/DELETE /v1/mutualfundmeta/:id

Design Principle:
    Handlers are THIN. They pull inputs out of the request, call the
    service, and pick the status code. Business rules live in services.
"""
