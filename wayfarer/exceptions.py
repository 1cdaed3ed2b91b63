"""
Wayfarer Backend - Custom Exception Hierarchy
===============================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages, without leaking driver details.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    WayfarerError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── DocumentStoreError       → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class WayfarerError(Exception):
    """
    Base exception for all Wayfarer application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
    """

    status_code = 500
    code = "internal_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WayfarerError):
    """
    Raised when client input fails validation.

    When:    Invalid import file, unsupported export format, bad photo type,
             malformed document id, photo limit reached.
    HTTP:    400 Bad Request
    """

    status_code = 400
    code = "validation_error"

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


class AuthenticationError(WayfarerError):
    """Missing, malformed, or expired bearer token, or bad credentials. HTTP 401."""

    status_code = 401
    code = "unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized - No token provided",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(WayfarerError):
    """Authenticated, but not the owner of the resource or missing a role. HTTP 403."""

    status_code = 403
    code = "forbidden"

    def __init__(
        self,
        message: str = "Forbidden - Insufficient permissions",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(WayfarerError):
    """
    Raised when a requested resource does not exist.

    What:    The client asked for something that doesn't exist in either store.
    When:    GET /spots/{id} with an unknown id, deleting a rating never made, etc.
    HTTP:    404 Not Found

    SQLAlchemy and PyMongo return None for missing records; services convert
    None into NotFoundError so routes stay free of HTTP branching.
    """

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(WayfarerError):
    """Unique constraint clash: duplicate email, favorite, or rating. HTTP 409."""

    status_code = 409
    code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(WayfarerError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(WayfarerError):
    """
    Raised when relational store operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error info
    (SQL, constraint name) is logged server-side only.
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DocumentStoreError(WayfarerError):
    """Raised when a MongoDB operation fails. HTTP 500 with a generic message."""

    code = "server_error"

    def __init__(
        self,
        message: str = "A document store error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
