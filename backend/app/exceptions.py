"""
YelpCamp Backend - Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception carries a user-facing message, an optional context dict
       (logged, never returned) and the HTTP status it maps to. Global
       handlers registered in main.py turn them into responses.
Who:   Raised by guards, validation, services and routes.
When:  During request processing.

Exception Hierarchy:
    YelpCampError (base)
    ├── ValidationError              → 400 JSON, aggregated field messages
    ├── RedirectError                → flash "error" + 303 redirect
    │   ├── AuthenticationRequired   → /login (GET paths remembered for later)
    │   ├── AuthorizationDenied      → resource detail page
    │   ├── NotFoundError            → /campgrounds
    │   ├── RegistrationError        → /register
    │   └── InvalidCredentialsError  → /login
    ├── FileStorageError             → 500
    ├── GeocodingError               → 503 (retry later)
    ├── CircuitBreakerOpenError      → 503 (circuit open)
    ├── DatabaseError                → 400 generic "something went wrong"
    └── RateLimitExceededError       → 429

NotFoundError and AuthorizationDenied are siblings on purpose: a missing
resource is never reported as a permission problem, and vice versa.
"""

from typing import Any, Dict, List, Optional


class YelpCampError(Exception):
    """
    Base exception for all YelpCamp application errors.

    Attributes:
        message:      User-facing error description (safe to return)
        context:      Additional debug info (logged but NOT returned to client)
        status_code:  HTTP status the global handler responds with
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(YelpCampError):
    """
    Raised when a request payload fails validation.

    The message joins every field-level message with ","; the individual
    messages are kept in `errors` so callers can render them per field.

    Example response:
        {
            "error": "validation_error",
            "message": "\\"campground.price\\" must be greater than or equal to 0",
            "details": {"errors": ["..."]}
        }
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        self.errors = errors or [message]
        ctx["errors"] = self.errors
        super().__init__(message=message, context=ctx)
        self.field = field


# ── Redirect-class errors ─────────────────────────────────────────────────

class RedirectError(YelpCampError):
    """
    Base for failures recovered by flashing an error notice and redirecting.

    Not a hard error: the handler answers 303 See Other with a Location header
    and queues `message` as an "error" flash for the next page.
    """

    status_code = 303

    def __init__(
        self,
        message: str,
        redirect_to: str = "/campgrounds",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["redirect_to"] = redirect_to
        super().__init__(message=message, context=ctx)
        self.redirect_to = redirect_to


class AuthenticationRequired(RedirectError):
    """No principal is bound to the request; recover by logging in."""

    def __init__(
        self,
        message: str = "You must be signed in first!",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, redirect_to="/login", context=context)


class AuthorizationDenied(RedirectError):
    """A principal is present but does not own the target resource."""

    def __init__(
        self,
        redirect_to: str,
        message: str = "You are not authorized to do that!",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, redirect_to=redirect_to, context=context)


class NotFoundError(RedirectError):
    """
    Raised when a target id does not resolve to a stored document.

    Malformed ids are treated the same as unknown ids. The user lands on the
    campground listing with a notice; never conflated with AuthorizationDenied.
    """

    def __init__(
        self,
        resource: str = "campground",
        resource_id: Optional[str] = None,
        redirect_to: str = "/campgrounds",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(
            message=f"Cannot find that {resource}!",
            redirect_to=redirect_to,
            context=ctx,
        )
        self.resource = resource
        self.resource_id = resource_id


class RegistrationError(RedirectError):
    """Registration failed (duplicate username/email, invalid form)."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, redirect_to="/register", context=context)


class InvalidCredentialsError(RedirectError):
    """Login failed; the message never says which half was wrong."""

    def __init__(
        self,
        message: str = "Password or username is incorrect",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, redirect_to="/login", context=context)


# ── Infrastructure errors ─────────────────────────────────────────────────

class FileStorageError(YelpCampError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500; the client gets a generic message, paths stay in the log.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GeocodingError(YelpCampError):
    """
    Raised when the geocoding provider fails after all retries.

    HTTP: 503 Service Unavailable with a Retry-After hint.
    """

    status_code = 503

    def __init__(
        self,
        message: str = "Location lookup is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(YelpCampError):
    """
    Raised when the geocoder circuit breaker is OPEN.

    CLOSED → (threshold failures) → OPEN → (recovery timeout) → HALF_OPEN
    → one trial call → CLOSED on success, OPEN again on failure.
    """

    status_code = 503

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Location lookup is temporarily unavailable due to repeated failures. "
            f"Please try again in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(YelpCampError):
    """
    Raised when a store read fails unexpectedly.

    The client always gets the generic "something went wrong" page;
    SQL and constraint names stay in the server log.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(YelpCampError):
    """Raised when a client exceeds the per-IP mutation rate limit."""

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
