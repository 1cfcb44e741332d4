"""Custom exceptions for the FREM engine.

This module provides a hierarchy of exception classes for consistent error
handling across the allocation and projection engine. All exceptions inherit
from FremError, making it easy to catch all engine-specific errors.

Error details only ever carry entity identifiers, field names and error
kinds. Amounts, balances and free-text descriptions never go into an
exception or a log event.

Example:
    try:
        result = engine.apply_one_time_income(income_id, goal_id, owner_id=uid, as_of=today)
    except AlreadyAppliedError:
        # Safe to ignore on retry: the income was credited exactly once
        ...
    except NotFoundError as e:
        return {"error": e.message, **e.details}
"""

from typing import Any, Optional


class FremError(Exception):
    """Base exception for all FREM engine errors.

    This is the root of the exception hierarchy. Catching this exception
    will catch all engine-specific errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.

    Example:
        >>> raise FremError("Something went wrong", details={"goal_id": "g-1"})
        FremError: Something went wrong
    """

    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize FremError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the error is potentially recoverable through
                retry or corrected input. Defaults to False.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Structured failure for the immediate caller to translate."""
        return {
            "error": self.kind,
            "message": self.message,
            "details": dict(self.details),
            "recoverable": self.recoverable,
        }


class ValidationError(FremError):
    """Error raised when input is malformed or out of range.

    Raised for negative amounts, unknown enum tags, target_amount <= 0 and
    similar problems with records handed to the engine.

    Attributes:
        field: The field that failed validation.
        constraint: The validation constraint that was violated.

    Example:
        >>> raise ValidationError(
        ...     "Invalid income record",
        ...     field="pay_frequency",
        ...     constraint="Must be one of: weekly, biweekly, semimonthly, monthly, variable",
        ... )
        ValidationError: Invalid income record
    """

    kind = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Human-readable error description.
            field: The name of the field that failed validation.
            constraint: Description of the validation rule violated.
            details: Optional dictionary with additional context.
            recoverable: Whether the error can be fixed by user correction.
                Defaults to True since validation errors typically require
                user input correction.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if constraint:
            self.details["constraint"] = constraint


class NotFoundError(FremError):
    """Error raised when a referenced entity is missing or not owned by the caller.

    The two cases are deliberately indistinguishable to the caller so that
    the existence of another user's records is never revealed.

    Example:
        >>> raise NotFoundError("Goal not found", entity="goal", entity_id="g-42")
        NotFoundError: Goal not found
    """

    kind = "not_found"

    def __init__(
        self,
        message: str,
        *,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.entity = entity
        self.entity_id = entity_id

        if entity:
            self.details["entity"] = entity
        if entity_id:
            self.details["entity_id"] = entity_id


class AlreadyAppliedError(FremError):
    """Error raised when a one-time income has already been applied to a goal.

    Repeated apply calls are safe: the first one credits the goal, every
    later one fails with this error and changes nothing.

    Attributes:
        income_id: The one-time income that was already consumed.
        goal_id: The goal the caller tried to apply it to.
    """

    kind = "already_applied"

    def __init__(
        self,
        message: str,
        *,
        income_id: Optional[str] = None,
        goal_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.income_id = income_id
        self.goal_id = goal_id

        if income_id:
            self.details["income_id"] = income_id
        if goal_id:
            self.details["goal_id"] = goal_id


class DependencyFailure(FremError):
    """Error raised when the data collaborator cannot be read or written.

    The engine never substitutes fallback numbers for data it could not
    load; this error always propagates to the caller. Retrying is the
    collaborator layer's job.

    Attributes:
        operation: The collaborator call that failed (e.g., "get_goals").
        collaborator: Name of the collaborator class.
    """

    kind = "dependency_failure"

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        collaborator: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.operation = operation
        self.collaborator = collaborator

        if operation:
            self.details["operation"] = operation
        if collaborator:
            self.details["collaborator"] = collaborator


class ConfigurationError(FremError):
    """Error raised when engine configuration is invalid or missing.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.

    Example:
        >>> raise ConfigurationError(
        ...     "timeline_months exceeds max_timeline_months",
        ...     config_key="FREM_TIMELINE_MONTHS",
        ...     expected="<= FREM_MAX_TIMELINE_MONTHS",
        ... )
        ConfigurationError: timeline_months exceeds max_timeline_months
    """

    kind = "configuration_error"

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected


__all__ = [
    "FremError",
    "ValidationError",
    "NotFoundError",
    "AlreadyAppliedError",
    "DependencyFailure",
    "ConfigurationError",
]
