# app/exceptions/__init__.py

from exceptions.domain_exceptions import (
    DomainException,
    ValidationException,
    DuplicateUsernameException,
    AlreadyJoinedException,
    NotAuthenticatedException,
    TargetNotFoundException,
    MalformedControlMessageException
)

__all__ = [
    'DomainException',
    'ValidationException',
    'DuplicateUsernameException',
    'AlreadyJoinedException',
    'NotAuthenticatedException',
    'TargetNotFoundException',
    'MalformedControlMessageException'
]
