"""
Exception taxonomy for the Account Service.

Every exception carries a short `message` and an optional longer `description`. The REST
layer maps each type to an HTTP status code and the RPC layer serializes them as
`"Error: <message>"`.
"""

from typing import Optional


class AccountServiceException(Exception):
    """Base class for all errors raised by services and repositories."""

    def __init__(self, message: str, description: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.description = description


class ValidationException(AccountServiceException):
    """Malformed or missing input."""


class ConflictException(AccountServiceException):
    """A record with the same unique data already exists."""


class NotFoundException(AccountServiceException):
    """No record matches the requested id."""


class RepositoryException(AccountServiceException):
    """Opaque store failure (connection loss, timeout, unexpected driver error)."""


class RpcTimeoutError(AccountServiceException):
    """No reply arrived for an RPC call within the configured timeout."""

    def __init__(self, message: str = "rpc timed out", description: Optional[str] = None):
        super().__init__(message, description)
