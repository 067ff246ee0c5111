"""MIC Service — Core Exceptions.

Domain-specific exceptions for the service layer.
Services raise these; the API layer converts them to HTTP responses
using each class's ``status_code``.

Usage:
    from core.exceptions import ResourceNotFound, PermissionDenied

    class AlertService:
        async def get_or_raise(self, alert_id):
            alert = await self.get(alert_id)
            if not alert:
                raise ResourceNotFound("Alert", alert_id)
            return alert
"""

from __future__ import annotations

from typing import Any


class MicServiceError(Exception):
    """Base exception for all MIC Service domain errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ResourceNotFound(MicServiceError):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found.

    Attributes:
        resource_type: Type of resource (e.g., "Machine", "Alert").
        resource_id: Identifier of the missing resource.
    """

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found",
            {"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class PermissionDenied(MicServiceError):
    """Raised when the actor lacks the role or ownership for an action.

    Maps to HTTP 403 Forbidden.

    Attributes:
        action: The attempted action (e.g., "delete", "update").
        resource: The target resource (optional).
        required_role: The role required for this action (optional).
    """

    status_code = 403

    def __init__(
        self,
        action: str,
        resource: str | None = None,
        required_role: str | None = None,
    ):
        self.action = action
        self.resource = resource
        self.required_role = required_role

        if resource:
            message = f"Not authorized to {action} {resource}"
        else:
            message = f"Not authorized to {action}"

        if required_role:
            message += f" (requires {required_role} role)"

        details: dict[str, Any] = {"action": action}
        if resource:
            details["resource"] = resource
        if required_role:
            details["required_role"] = required_role

        super().__init__(message, details)


class ValidationError(MicServiceError):
    """Raised when input validation fails beyond Pydantic's scope.

    Maps to HTTP 400 Bad Request.
    """

    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}", {"field": field})


class ConflictError(MicServiceError):
    """Raised when a unique field (serial number, email) is already taken.

    Maps to HTTP 400 Bad Request.
    """

    status_code = 400

    def __init__(self, resource_type: str, field: str, value: Any):
        self.resource_type = resource_type
        self.field = field
        super().__init__(
            f"{resource_type} with this {field.replace('_', ' ')} already exists",
            {"resource_type": resource_type, "field": field, "value": str(value)},
        )


class InvalidTransition(MicServiceError):
    """Raised when an alert status change moves backwards in its lifecycle.

    Maps to HTTP 400 Bad Request.

    Attributes:
        current: Status the record is in.
        requested: Status the caller asked for.
    """

    status_code = 400

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change status from '{current}' to '{requested}'",
            {"current": current, "requested": requested},
        )


class AuthenticationFailed(MicServiceError):
    """Raised when login credentials are wrong or the account is disabled.

    Maps to HTTP 401 Unauthorized. The message never reveals whether the
    email exists.
    """

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)
