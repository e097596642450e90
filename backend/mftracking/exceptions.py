"""
Mutual Fund Tracking Backend — Custom Exception Hierarchy
==========================================================

What:  Application-specific exceptions for every failure the API can report.
Why:   Each class carries the HTTP status it maps to, so the exception
       handlers in main.py and the access-log middleware agree on one table.
How:   Each exception carries a message and optional context dict.
       `context` is logged server-side and never returned to the client.

Exception Hierarchy:
    MutualFundError (base)            → 500
    ├── ValidationError               → 400 (one entry per invalid field)
    ├── InvalidIDError                → 400
    ├── BadRequestError               → 400 (malformed request body / query)
    ├── NotFoundError                 → 404 (domain entity absent)
    ├── RecordNotFoundError           → 404 (storage row absent; the service
    │                                        translates it to NotFoundError)
    ├── DuplicateEntryError           → 409
    ├── StorageError                  → 500
    └── InternalError                 → 500
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


class MutualFundError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:      client-safe description, copied into the error body
        context:      debugging details for the server log only
        status_code:  HTTP status the exception handlers respond with
        error_code:   machine-readable "error" field of the body
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


@dataclass(frozen=True)
class FieldError:
    """A single invalid field: JSON field name plus a human-readable message."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class ValidationError(MutualFundError):
    """
    Raised when input fails field validation.

    Example response:
        {
            "error": "validation_error",
            "message": "Validation failed",
            "fields": [{"field": "scheme_name", "message": "Field required"}]
        }
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        fields: Optional[List[FieldError]] = None,
        message: str = "Validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.fields = list(fields or [])


class InvalidIDError(MutualFundError):
    """The identifier is not a positive integer within the 32-bit unsigned range."""

    status_code = 400
    error_code = "invalid_id"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="ID is not in its proper form", context=context)


class BadRequestError(MutualFundError):
    """Malformed request: undecodable body or unparseable query parameter."""

    status_code = 400
    error_code = "bad_request"

    def __init__(
        self,
        message: str = "Malformed request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(MutualFundError):
    """
    Raised when a requested entity does not exist (or is soft-deleted).

    The service layer raises this; the store raises RecordNotFoundError.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "mutual_fund_meta",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        details = dict(context or {}, resource=resource)
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} id[{resource_id}] not found"
            details["resource_id"] = resource_id
        super().__init__(message=message, context=details)


class RecordNotFoundError(MutualFundError):
    """Storage-level miss: the query produced no usable row."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="data not found", context=context)


class DuplicateEntryError(MutualFundError):
    """
    A uniqueness constraint was violated.

    The message is fixed; the driver's text (constraint names, values)
    only ever lands in `context`.
    """

    status_code = 409
    error_code = "duplicate_entry"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="duplicated entry", context=context)


class StorageError(MutualFundError):
    """
    Unclassified persistence failure.

    The message names the operation; the underlying driver error is chained
    with `raise ... from` and recorded in `context`.
    """

    status_code = 500
    error_code = "storage_error"

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InternalError(MutualFundError):
    """Anything else, including failures to build the request context."""

    status_code = 500
    error_code = "internal_server_error"
