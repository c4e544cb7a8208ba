# backend/utils/errors.py
from typing import Any, Dict, List, Optional

# Error number stored procedures raise for user-facing domain violations
BUSINESS_RULE_ERROR_NUMBER = 51000

GENERAL_ERROR_MESSAGE = "An unexpected error occurred"


class ApiError(Exception):
    """Base class for errors rendered by the API exception handlers."""

    status_code = 500
    code = "GENERAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.details = details or []


class BusinessRuleViolation(ApiError):
    # Raised by a stored procedure with error number 51000, safe to show to the user
    status_code = 400
    code = "BUSINESS_RULE_ERROR"

    def __init__(self, message: str, number: int = BUSINESS_RULE_ERROR_NUMBER):
        super().__init__(message)
        self.number = number


class PermissionDenied(ApiError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class DatabaseError(ApiError):
    status_code = 500

    def __init__(self, message: str, number: Optional[int] = None):
        super().__init__(message)
        self.number = number


class ResultShapeError(DatabaseError):
    """A stored procedure returned rows that do not match the expected record."""


class ConfigurationError(Exception):
    pass


class MigrationError(Exception):
    pass
