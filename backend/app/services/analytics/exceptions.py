"""
Analytics Exceptions

Exception raised when analytics input is clearly invalid, e.g. a risk
snapshot with an unparseable timestamp or a non-numeric exposure value.

Documented edge cases (empty input, zero time deltas, missing group labels,
short histories) never raise. They resolve to defined fallback values inside
the engines.

Usage:
    from app.services.analytics.exceptions import AnalyticsInputError

    try:
        momentum = calculate_risk_momentum(raw_snapshots)
    except AnalyticsInputError as e:
        logger.warning(f"Rejected risk snapshots: {e}")
        raise HTTPException(status_code=422, detail=e.message)
"""

from typing import Any, Optional


class AnalyticsInputError(ValueError):
    """
    Raised when input to an analytics engine cannot be interpreted.

    Attributes:
        message: Human-readable error description
        field: Name of the offending input field (if known)
        details: Additional error context for debugging

    Example:
        >>> try:
        ...     calculate_cei(["pass", "broken"])
        ... except AnalyticsInputError as e:
        ...     print(e.field)
        control_states
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        """
        Initialize analytics input error.

        Args:
            message: Human-readable error description
            field: Input field that failed validation
            details: Additional context (e.g. pydantic error list)
        """
        self.message = message
        self.field = field
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.field:
            return f"{self.message} (field: {self.field})"
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"AnalyticsInputError(message={self.message!r}, "
            f"field={self.field!r}, details={self.details!r})"
        )
