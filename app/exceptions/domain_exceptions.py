# app/exceptions/domain_exceptions.py

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base class for all domain exceptions"""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(DomainException):
    """Exception raised for malformed usernames, room names or event payloads"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details
        )


class DuplicateUsernameException(DomainException):
    """Exception raised when a username is already taken (case-insensitive)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="DUPLICATE_USERNAME",
            details=details
        )


class AlreadyJoinedException(DomainException):
    """Exception raised when a connection tries to join twice"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ALREADY_JOINED",
            details=details
        )


class NotAuthenticatedException(DomainException):
    """Exception raised for room events sent before a successful join"""

    def __init__(self, message: str = "User not authenticated", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="NOT_AUTHENTICATED",
            details=details
        )


class TargetNotFoundException(DomainException):
    """Exception raised when a private message target is not connected"""

    def __init__(self, message: str = "User not found or offline", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="TARGET_NOT_FOUND",
            details=details
        )


class MalformedControlMessageException(DomainException):
    """Exception raised when a bridge line is not a JSON object"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="MALFORMED_CONTROL_MESSAGE",
            details=details
        )
