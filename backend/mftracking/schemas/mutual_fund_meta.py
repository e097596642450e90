"""
Mutual Fund Tracking Backend — Pydantic Request/Response Schemas
=================================================================

What:  Pydantic models defining the API contract.
Why:   Field rules live next to the field definitions; validate.check() and
       api.decode() both enforce them, and responses serialize from them.

Design Decision:
    Schemas are separate from the SQLAlchemy row (models/mutual_fund_meta.py).
    The service converts rows to MutualFundMeta field by field, so the two
    shapes can drift without silently reinterpreting each other.

Partial updates:
    Every UpdateMutualFundMeta field is optional. None, "" and whitespace-only
    strings all mean "leave unchanged"; clearing a field is not supported.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StringConstraints
from typing_extensions import Annotated

# Create: required, trimmed, 1..255 characters
RequiredText = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]

# Update: optional; blank counts as "no change" so only the upper bound applies
OptionalText = Optional[Annotated[str, StringConstraints(max_length=255)]]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NewMutualFundMeta(BaseModel):
    """
    What:  Body of POST /v1/mutualfundmeta.
    Note:  No id and no timestamps; those are assigned server-side.
    """
    fund_house: RequiredText = Field(description="Asset management company")
    scheme_type: RequiredText = Field(description="e.g. Open Ended Schemes")
    scheme_category: RequiredText = Field(description="e.g. Equity Scheme - Large Cap Fund")
    scheme_code: RequiredText = Field(description="AMFI scheme code (unique)")
    scheme_name: RequiredText = Field(description="Full scheme name")


class UpdateMutualFundMeta(BaseModel):
    """What: Body of PUT /v1/mutualfundmeta/{id}; omitted or blank fields are left as-is."""
    fund_house: OptionalText = None
    scheme_type: OptionalText = None
    scheme_category: OptionalText = None
    scheme_code: OptionalText = None
    scheme_name: OptionalText = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class MutualFundMeta(BaseModel):
    """
    What:  API-facing mutual fund metadata record.
    Who:   Returned by every mutualfundmeta endpoint that yields data.
    """
    id: int = Field(description="Storage-assigned identifier")
    fund_house: str
    scheme_type: str
    scheme_category: str
    scheme_code: str
    scheme_name: str
    created_on: datetime = Field(description="Creation time (UTC)")
    updated_on: datetime = Field(description="Last change time (UTC)")
    deleted_on: Optional[datetime] = Field(
        default=None,
        description="Soft-delete time; always null on read paths",
    )


class TeapotLyrics(BaseModel):
    lyrics: str


class FieldErrorItem(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for every non-404-route error.

    Example:
        {
            "error": "validation_error",
            "message": "Validation failed",
            "fields": [{"field": "scheme_code", "message": "Field required"}],
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    fields: Optional[List[FieldErrorItem]] = Field(
        default=None,
        description="Per-field messages for validation errors",
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
