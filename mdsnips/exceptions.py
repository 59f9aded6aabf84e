"""
mdsnips: Custom Exception Hierarchy
=====================================

What:  Application-specific exceptions for the snippet service.
How:   Each exception carries a user-safe message and an optional context dict.
       Global exception handlers (registered in main.py) translate them into
       structured JSON error responses with the matching HTTP status code.
Who:   Raised by the snippet store, the routes and the request validators.

Exception Hierarchy:
    MDSnipsError (base)
    ├── ValidationError              → 400 Bad Request
    ├── AuthorizationError           → 401 Unauthorized
    ├── NotFoundError                → 404 Not Found
    └── PersistenceError             → 500 Internal Server Error
        └── IdentifierConflictError  → 500 Internal Server Error

The context dict is logged server-side. Only ValidationError returns it to
the client, as `details` (the offending field and its allowed values); every
other error keeps its context in the log.
"""

from typing import Any, Dict, Optional


class MDSnipsError(Exception):
    """
    Base exception for all mdsnips application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned as `details` only
                  for ValidationError)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MDSnipsError):
    """
    Raised when client input fails validation.

    When:    Unknown sort option, malformed search parameters.
    HTTP:    400 Bad Request

    Length limits on title/body are enforced by the Pydantic request models;
    FastAPI's RequestValidationError is mapped onto the same 400 response.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(MDSnipsError):
    """
    Raised when the target of an operation does not exist.

    When:    GET /md/{id} for an unknown id, or an update/delete whose row
             vanished between the authorization check and the write.
    HTTP:    404 Not Found

    The store's get() returns None for a missing snippet; the route converts
    that into this exception. Empty search results are never a NotFoundError.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class AuthorizationError(MDSnipsError):
    """
    Raised when a presented update key does not unlock the snippet.

    HTTP:    401 Unauthorized

    The same error is raised for "wrong key" and "no such snippet", so a
    caller cannot probe for the existence of ids through the key check.
    """

    def __init__(
        self,
        message: str = "Invalid Update Key",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PersistenceError(MDSnipsError):
    """
    Raised when the backing database is unreachable, times out, or rejects a write.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; driver errors,
    SQL and constraint names stay in the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentifierConflictError(PersistenceError):
    """
    Raised when a freshly derived snippet id collides with an existing row.

    Snippet ids are 32-bit checksums, so a collision is rare but possible.
    The primary key rejects the insert and the caller may simply retry the
    create, which draws a new salt.
    """

    def __init__(
        self,
        snippet_id: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["snippet_id"] = snippet_id
        super().__init__(
            message="Could not allocate a unique snippet id. Please try again.",
            context=ctx,
        )
        self.snippet_id = snippet_id
