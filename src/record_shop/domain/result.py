"""Result pattern implementation for error handling.

Business outcomes such as a rejected reservation are returned as values
instead of being raised. Only unexpected storage errors propagate as
exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, cast, overload

T = TypeVar('T')  # Success type
E = TypeVar('E', bound=Exception)  # Error type


class Result(ABC, Generic[T, E]):
    """Abstract base class for Result pattern.

    A Result represents either a successful operation with a value,
    or a failed operation with an error.
    """

    @abstractmethod
    def is_success(self) -> bool:
        """Check if the result is a success."""
        ...

    @abstractmethod
    def is_failure(self) -> bool:
        """Check if the result is a failure."""
        ...

    @abstractmethod
    def value(self) -> T:
        """Get the success value.

        Raises:
            ValueError: If the result is a failure.
        """
        ...

    @abstractmethod
    def error(self) -> E:
        """Get the error.

        Raises:
            ValueError: If the result is a success.
        """
        ...

    @abstractmethod
    def map(self, fn: Callable[[T], Any]) -> Result[Any, E]:
        """Map the success value through a function."""
        ...

    def or_else(self, default: T) -> T:
        """Get the success value or return a default."""
        return self.value() if self.is_success() else default

    def or_else_raise(self) -> T:
        """Get the success value or raise the error."""
        if self.is_failure():
            raise self.error()
        return self.value()

    @overload
    def match(self, *, success: Callable[[T], Any]) -> Any: ...

    @overload
    def match(self, *, failure: Callable[[E], Any]) -> Any: ...

    @overload
    def match(self, *, success: Callable[[T], Any], failure: Callable[[E], Any]) -> Any: ...

    def match(self, *, success: Callable[[T], Any] | None = None,
              failure: Callable[[E], Any] | None = None) -> Any:
        """Pattern match on the result."""
        if self.is_success() and success:
            return success(self.value())
        elif self.is_failure() and failure:
            return failure(self.error())
        return None


@dataclass(frozen=True, slots=True)
class Success(Result[T, E]):
    """Represents a successful operation with a value."""
    _value: T

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def value(self) -> T:
        return self._value

    def error(self) -> E:
        raise ValueError("Cannot get error from Success result")

    def map(self, fn: Callable[[T], Any]) -> Result[Any, E]:
        try:
            return Success(fn(self._value))
        except Exception as e:
            return Failure(cast(E, e))


@dataclass(frozen=True, slots=True)
class Failure(Result[T, E]):
    """Represents a failed operation with an error."""
    _error: E

    def __repr__(self) -> str:
        return f"Failure({self._error!r})"

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def value(self) -> T:
        raise ValueError(f"Cannot get value from Failure result: {self._error}")

    def error(self) -> E:
        return self._error

    def map(self, fn: Callable[[T], Any]) -> Result[Any, E]:
        return self


def success(value: T) -> Result[T, Any]:
    """Create a Success result."""
    return Success(value)


def failure(error: E) -> Result[Any, E]:
    """Create a Failure result."""
    return Failure(error)


# Domain-specific errors for the record shop
class DomainError(Exception):
    """Base class for domain-specific errors."""
    pass


class ValidationError(DomainError):
    """Raised when validation fails."""
    pass


class NotFoundError(DomainError):
    """Raised when a resource is not found."""
    pass


class DuplicateError(DomainError):
    """Raised when a duplicate is detected."""
    pass


class RecordNotFound(NotFoundError):
    """The record does not exist or has been deleted."""

    def __init__(self, record_id: str):
        super().__init__(f"Record with ID {record_id} not found")
        self.record_id = record_id


class DuplicateRecordError(DuplicateError):
    """A live record with the same artist, album and format already exists."""

    def __init__(self, artist: str, album: str, format: str):
        super().__init__(
            f'Record with artist "{artist}", album "{album}", '
            f'and format "{format}" already exists'
        )
        self.artist = artist
        self.album = album
        self.format = format


class InsufficientStock(DomainError):
    """Raised when a reservation asks for more units than are in stock."""

    def __init__(self, record_id: str, requested: int, available: int | None = None):
        message = f"Insufficient stock for record {record_id}: requested {requested}"
        if available is not None:
            message += f", available {available}"
        super().__init__(message)
        self.record_id = record_id
        self.requested = requested
        self.available = available


class PersistenceFailure(DomainError):
    """Storing an order failed after stock had been reserved.

    ``compensated`` tells whether the reserved stock was returned before
    the error was raised.
    """

    def __init__(self, message: str, compensated: bool = False):
        super().__init__(message)
        self.compensated = compensated


class CompensationFailure(DomainError):
    """Returning reserved stock failed; stock is now under-counted."""

    def __init__(self, record_id: str, quantity: int, cause: BaseException | None = None):
        super().__init__(
            f"Failed to release {quantity} unit(s) of record {record_id}: {cause}"
        )
        self.record_id = record_id
        self.quantity = quantity
        self.cause = cause
