"""Exceptions raised by the compounding module."""

from __future__ import annotations


class CompoundError(Exception):
    """Base class for every error the module raises.

    ``code`` is the numeric code reported to clients and ``description`` the
    fixed text of the error kind; ``message`` carries the context.
    """

    code: int = 1
    description: str = "internal"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"{self.message}: {self.description}"
        return self.description

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.message == getattr(other, "message", None)

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class InvalidRequestError(CompoundError):
    """The request is malformed or breaks a module rule."""

    code = 18
    description = "invalid request"


class KeyNotFoundError(CompoundError):
    """The requested entry does not exist."""

    code = 38
    description = "key not found"


class UnauthorizedError(CompoundError):
    """The sender may not act on the entry."""

    code = 4
    description = "unauthorized"


class AddressError(CompoundError, ValueError):
    """A bech32 address could not be parsed or has the wrong form."""

    code = 7
    description = "invalid address"


class QueryError(CompoundError):
    """Base class for errors returned by the query service."""

    code = 2
    status_name = "Unknown"

    def __str__(self) -> str:
        return f"rpc error: code = {self.status_name} desc = {self.message}"


class InvalidArgumentError(QueryError):
    """The query request was missing or malformed."""

    code = 3
    status_name = "InvalidArgument"


class NotFoundError(QueryError):
    """The queried entry does not exist."""

    code = 5
    status_name = "NotFound"


class InternalError(QueryError):
    """The query failed while reading the store."""

    code = 13
    status_name = "Internal"