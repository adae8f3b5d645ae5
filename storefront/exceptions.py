"""
Domain exceptions raised by the data source and the resolvers.

Each carries an ``extensions`` mapping; graphql-core copies it onto the
GraphQL error so clients can branch on ``errors[].extensions.code``.
"""
from typing import Any, Optional


class ApplicationError(Exception):
    """Base exception for all application errors"""

    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def extensions(self) -> dict:
        return {"code": self.code, **self.details}


class NotFoundError(ApplicationError):
    """Raised when a lookup by id or unique key finds no record"""

    code = "NOT_FOUND"

    def __init__(self, kind: str, key: str, value: Any):
        details = {"kind": kind, "key": key, "value": value}
        msg = f"{kind.capitalize()} with {key} '{value}' does not exist"
        super().__init__(msg, details)


class InputValidationError(ApplicationError):
    """Raised when input is rejected before reaching the data source"""

    code = "BAD_USER_INPUT"

    def __init__(self, message: str, invalid_fields: Optional[dict] = None):
        details = {"invalid_fields": invalid_fields} if invalid_fields else {}
        super().__init__(message, details)


class AdapterError(ApplicationError):
    """Raised when the underlying data source fails"""

    code = "DATA_SOURCE_ERROR"

    def __init__(self, operation: str, kind: str, message: str):
        details = {"operation": operation, "kind": kind}
        super().__init__(f"{operation} on {kind} failed: {message}", details)


class SubscriberOverflowError(ApplicationError):
    """Raised to a subscriber that fell too far behind and was disconnected"""

    code = "SUBSCRIBER_OVERFLOW"

    def __init__(self, topic: str, limit: int):
        details = {"topic": topic, "limit": limit}
        msg = f"More than {limit} undelivered '{topic}' events; subscription closed"
        super().__init__(msg, details)
