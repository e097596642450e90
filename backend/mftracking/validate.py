"""
Mutual Fund Tracking Backend — Validation
==========================================

What:  Structural checks for input models and identifiers.
How:   Field rules are declared on the pydantic schemas; this module runs
       them and converts pydantic's error list into FieldError entries.
Who:   The service layer (check, check_id) and api.decode (field_errors).
"""

import re
from typing import List

import pydantic
from pydantic import BaseModel

from mftracking.exceptions import FieldError, InvalidIDError, ValidationError

MAX_ID = (1 << 32) - 1

# Optional sign and ASCII digits; int() alone also accepts "1_000" and padding
INTEGER = re.compile(r"[+-]?[0-9]+")


def field_errors(exc: pydantic.ValidationError) -> List[FieldError]:
    """One FieldError per pydantic error, named by the JSON field path."""
    fields = []
    for err in exc.errors():
        name = ".".join(str(part) for part in err["loc"]) or "body"
        fields.append(FieldError(field=name, message=err["msg"]))
    return fields


def check(value: BaseModel) -> None:
    """
    Re-run the model's field rules against an existing instance.

    Instances built through normal construction already passed; this catches
    ones assembled with model_construct() or mutated after creation.

    Raises:
        ValidationError: one FieldError per invalid field
    """
    try:
        type(value).model_validate(value.model_dump())
    except pydantic.ValidationError as exc:
        raise ValidationError(fields=field_errors(exc)) from exc


def check_id(id: str) -> int:
    """
    Parse an identifier string.

    Rules: integer, not zero, not negative, at most 2^32-1. Every violation
    surfaces as the same InvalidIDError; the reason only goes into context.

    Returns:
        The parsed identifier.
    """
    if not isinstance(id, str) or not INTEGER.fullmatch(id):
        raise InvalidIDError(context={"id": id, "reason": "not a valid number"})
    value = int(id)

    if value == 0:
        raise InvalidIDError(context={"id": id, "reason": "value cannot be zero"})
    if value < 0:
        raise InvalidIDError(context={"id": id, "reason": "value cannot be negative"})
    if value > MAX_ID:
        raise InvalidIDError(
            context={"id": id, "reason": f"value cannot be greater than {MAX_ID}"}
        )
    return value
