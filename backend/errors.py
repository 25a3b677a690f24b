"""
Application error taxonomy.

Services raise these; the gateway's error handlers turn them into JSON
responses with a human-readable `message`.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors that map to a specific HTTP status."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None, tip: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        self.tip = tip
        super().__init__(self.message)

    def to_dict(self, include_detail: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if include_detail and self.detail:
            body["error"] = self.detail
        if self.tip:
            body["tip"] = self.tip
        return body


# --- CLIENT ERRORS ---
class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"


class Conflict(AppError):
    status_code = 400
    default_message = "Resource already exists"


class InvalidCredentials(AppError):
    status_code = 400
    default_message = "Invalid credentials"


class CapacityExceeded(AppError):
    status_code = 400
    default_message = "Event is full"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "No token, authorization denied"


class InvalidToken(Unauthenticated):
    default_message = "Token is not valid"


class Forbidden(AppError):
    status_code = 403
    default_message = "Not authorized"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


# --- SERVER / UPSTREAM ERRORS ---
class ConfigurationError(AppError):
    status_code = 500
    default_message = "Server is not configured"


class UpstreamError(AppError):
    status_code = 500
    default_message = "External service failed"


class UpstreamAuthError(UpstreamError):
    default_message = "Invalid AI service API key"


class UpstreamRateLimited(UpstreamError):
    default_message = "Rate limit exceeded. Please try again in a moment."


class UpstreamBadRequest(UpstreamError):
    default_message = "Bad request to AI service"
