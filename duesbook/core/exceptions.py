"""
Error taxonomy for ledger operations and its HTTP mapping.

Services raise DuesbookError subclasses; main.py turns them into JSON
responses. Internal details are logged here and never sent to clients.

Exception Hierarchy:
    DuesbookError (base)
    ├── ValidationError     - missing or malformed input (422)
    ├── NotFoundError       - customer / transaction not found or not owned (404)
    ├── ConflictError       - concurrent modification, duplicate records (409)
    ├── BackendUnavailable  - database unreachable (503)
    └── AuthenticationError - bad credentials or dead session (401)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class DuesbookError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_error_code: str = "DUESBOOK_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(DuesbookError):
    """A required field is missing or a value cannot be accepted."""

    status_code = 422
    default_error_code = "VALIDATION_ERROR"


class NotFoundError(DuesbookError):
    """
    Referenced customer or transaction does not exist.

    Also used when the record belongs to another owner, so the response
    does not confirm that the id exists.
    """

    status_code = status.HTTP_404_NOT_FOUND
    default_error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any = None):
        details = {"resource": resource}
        if resource_id is not None:
            details["id"] = str(resource_id)
        super().__init__(f"{resource} not found", details=details)


class ConflictError(DuesbookError):
    """The record changed underneath the caller (stale version) or already exists."""

    status_code = status.HTTP_409_CONFLICT
    default_error_code = "CONFLICT"


class BackendUnavailable(DuesbookError):
    """The database could not be reached or refused the operation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_error_code = "BACKEND_UNAVAILABLE"

    def __init__(self, original_error: Optional[Exception] = None):
        if original_error is not None:
            logger.error(
                f"Backend unavailable: {type(original_error).__name__}: {original_error}",
                exc_info=original_error,
            )
        super().__init__("Storage backend is unavailable. Please try again later.")


class AuthenticationError(DuesbookError):
    """
    Generic 401 for all authentication failures.

    Same message for wrong password, unknown user and revoked sessions.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    default_error_code = "AUTHENTICATION_FAILED"

    def __init__(self, reason: str = ""):
        if reason:
            logger.warning(f"Authentication failed: {reason}")
        super().__init__("Authentication failed")


class BusinessError:
    """HTTPException factories for route-level guards."""

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

