"""Tests for the Result pattern and the domain error taxonomy."""

import pytest

from record_shop.domain.result import (
    CompensationFailure,
    DomainError,
    DuplicateError,
    DuplicateRecordError,
    Failure,
    InsufficientStock,
    NotFoundError,
    PersistenceFailure,
    RecordNotFound,
    Success,
    failure,
    success,
)


class TestSuccess:
    """Test the Success result type."""

    def test_success_creation(self):
        result = Success(42)
        assert result.is_success() is True
        assert result.is_failure() is False
        assert result.value() == 42

    def test_success_repr(self):
        assert repr(Success("test")) == "Success('test')"

    def test_success_error_raises(self):
        with pytest.raises(ValueError, match="Cannot get error from Success result"):
            Success(42).error()

    def test_success_map(self):
        mapped = Success(5).map(lambda x: x * 2)
        assert isinstance(mapped, Success)
        assert mapped.value() == 10

    def test_success_map_that_fails(self):
        """An exception inside map turns into a Failure."""
        mapped = Success(0).map(lambda x: 1 / x)
        assert isinstance(mapped, Failure)
        assert isinstance(mapped.error(), ZeroDivisionError)

    def test_or_else_raise_returns_value(self):
        assert success("order").or_else_raise() == "order"


class TestFailure:
    """Test the Failure result type."""

    def test_failure_creation(self):
        error = RecordNotFound("abc")
        result = Failure(error)
        assert result.is_failure() is True
        assert result.error() is error

    def test_failure_value_raises(self):
        with pytest.raises(ValueError, match="Cannot get value from Failure result"):
            failure(RecordNotFound("abc")).value()

    def test_failure_map_is_noop(self):
        result = failure(RecordNotFound("abc"))
        assert result.map(lambda x: x * 2) is result

    def test_or_else(self):
        assert failure(RecordNotFound("abc")).or_else("default") == "default"

    def test_or_else_raise_raises_error(self):
        with pytest.raises(InsufficientStock):
            failure(InsufficientStock("abc", 3, 1)).or_else_raise()

    def test_match(self):
        result = failure(RecordNotFound("abc"))
        outcome = result.match(success=lambda v: "ok", failure=lambda e: e.record_id)
        assert outcome == "abc"


class TestDomainErrors:
    """Test the domain error taxonomy."""

    def test_record_not_found(self):
        error = RecordNotFound("r1")
        assert isinstance(error, NotFoundError)
        assert isinstance(error, DomainError)
        assert error.record_id == "r1"
        assert "r1" in str(error)

    def test_duplicate_record(self):
        error = DuplicateRecordError("Miles Davis", "Kind of Blue", "Vinyl")
        assert isinstance(error, DuplicateError)
        assert str(error) == (
            'Record with artist "Miles Davis", album "Kind of Blue", '
            'and format "Vinyl" already exists'
        )

    def test_insufficient_stock_without_observed_quantity(self):
        error = InsufficientStock("r1", 3)
        assert error.requested == 3
        assert error.available is None
        assert "available" not in str(error)

    def test_insufficient_stock_with_observed_quantity(self):
        error = InsufficientStock("r1", 10, 5)
        assert error.available == 5
        assert str(error) == "Insufficient stock for record r1: requested 10, available 5"

    def test_persistence_failure_defaults_to_uncompensated(self):
        assert PersistenceFailure("boom").compensated is False

    def test_compensation_failure_keeps_cause(self):
        cause = RuntimeError("disk gone")
        error = CompensationFailure("r1", 2, cause)
        assert error.cause is cause
        assert error.quantity == 2
        assert "disk gone" in str(error)
