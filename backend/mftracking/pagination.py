"""
Mutual Fund Tracking Backend — Pagination Parameters
=====================================================

What:  Parses ?page=&per_page=&sort=&direction= into a bounded Pagination.
Why:   The sort column and direction end up in ORDER BY, so they must come
       from a fixed allow-list rather than the query string.

Boundary policy:
    Out-of-range and unrecognised values fall back silently. Only a
    non-integer page or per_page is rejected (BadRequestError → 400).

    per_page  > 100 → 100, < 1 → 20
    page      1-based at the boundary; (page - 1) clamped at 0, times per_page
    integers  ASCII digits with optional sign, signed 64-bit; repeats use the first value
    sort      "updated" → updated_on, "id" → id, anything else → created_on
    direction "asc" → asc, anything else → desc
"""

import re
from dataclasses import dataclass
from typing import Dict, Mapping

from starlette.datastructures import ImmutableMultiDict

from mftracking.exceptions import BadRequestError
from mftracking.validate import INTEGER

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100

SORT_COLUMNS = {
    "created": "created_on",
    "updated": "updated_on",
    "id": "id",
}
DEFAULT_SORT = "created_on"
DEFAULT_DIRECTION = "desc"

_WHITESPACE = re.compile(r"\s+")

_INT64_MAX = (1 << 63) - 1
_INT64_MIN = -(1 << 63)


@dataclass(frozen=True)
class Pagination:
    """
    Query-shaping input for list queries.

    Attributes:
        page:      row offset (already multiplied by per_page)
        per_page:  row limit, 1..100
        sort:      column name from SORT_COLUMNS
        direction: "asc" or "desc"
    """

    page: int = 0
    per_page: int = DEFAULT_PER_PAGE
    sort: str = DEFAULT_SORT
    direction: str = DEFAULT_DIRECTION


def _parse_int(name: str, raw: str) -> int:
    # ASCII digits with an optional sign, within the signed 64-bit range
    value = int(raw) if INTEGER.fullmatch(raw) else None
    if value is None or not _INT64_MIN <= value <= _INT64_MAX:
        raise BadRequestError(
            message=f"invalid {name} format: {raw}",
            context={"param": name, "value": raw},
        )
    return value


def _normalize(raw: str) -> str:
    return _WHITESPACE.sub("", raw).lower()


def first_values(params: ImmutableMultiDict) -> Dict[str, str]:
    """First value of each query parameter; later repeats are ignored."""
    values: Dict[str, str] = {}
    for key, value in params.multi_items():
        values.setdefault(key, value)
    return values


def pagination_params(query: Mapping[str, str]) -> Pagination:
    """
    Build a Pagination from query parameters.

    Args:
        query: parameter name to its first value (see first_values)

    Raises:
        BadRequestError: page or per_page is not an integer
    """
    per_page = DEFAULT_PER_PAGE
    if "per_page" in query:
        per_page = _parse_int("per_page", query["per_page"])
        if per_page < 1:
            per_page = DEFAULT_PER_PAGE
        if per_page > MAX_PER_PAGE:
            per_page = MAX_PER_PAGE

    offset = 0
    if "page" in query:
        page = _parse_int("page", query["page"]) - 1
        if page < 0:
            page = 0
        offset = min(page * per_page, _INT64_MAX)

    sort = DEFAULT_SORT
    if "sort" in query:
        key = _normalize(query["sort"])
        if key in ("updated", "id"):
            sort = SORT_COLUMNS[key]

    direction = DEFAULT_DIRECTION
    if "direction" in query and _normalize(query["direction"]) == "asc":
        direction = "asc"

    return Pagination(page=offset, per_page=per_page, sort=sort, direction=direction)
