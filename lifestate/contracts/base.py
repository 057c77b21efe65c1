"""
Base Contracts and Shared Types

Foundational types used across all layers of the engine.
All data types here are IMMUTABLE.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Errors are data first (Error), exceptions second (LifeStateError)
- Timestamps are always timezone-aware UTC
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, auto
from typing import Tuple


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for engine failures.

    Conditions the engine absorbs by clamping (severity, dimension bounds,
    cumulative caps) are NOT listed here: they are never errors.
    """
    # Registry errors
    NO_ANCHOR = auto()
    DUPLICATE_ANCHOR = auto()

    # Input errors
    UNKNOWN_EVENT_TYPE = auto()
    UNKNOWN_DIMENSION = auto()

    # Timeline errors
    TIMELINE_CORRUPTION = auto()

    # Hydration errors
    INVALID_HYDRATION_RECORD = auto()
    HYDRATION_MISMATCH = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data - they can be stored in audit logs and compared.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: str) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple(sorted((k, str(v)) for k, v in context.items()))
        )


class LifeStateError(Exception):
    """
    Base exception. Always carries the underlying Error value.
    Subclasses set `code`.
    """

    code: ErrorCode

    def __init__(self, message: str, **context: str):
        super().__init__(message)
        self.error = Error.create(self.code, message, **context)


class NoAnchorError(LifeStateError):
    """Raised when a query targets an entity with no anchor snapshot."""
    code = ErrorCode.NO_ANCHOR


class DuplicateAnchorError(LifeStateError):
    """Raised when an anchor is set twice for the same entity."""
    code = ErrorCode.DUPLICATE_ANCHOR


class UnknownDimensionError(LifeStateError, ValueError):
    """Raised when a dimension or trait name is not part of the closed set."""
    code = ErrorCode.UNKNOWN_DIMENSION


class TimelineCorruptionError(LifeStateError):
    """Raised when a timeline's hash chain no longer verifies."""
    code = ErrorCode.TIMELINE_CORRUPTION


class UnknownEventTypeError(LifeStateError, KeyError):
    """Raised when an event type id is not present in the catalog."""
    code = ErrorCode.UNKNOWN_EVENT_TYPE

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class HydrationError(LifeStateError):
    """Raised when a hydration record is malformed or does not replay."""
    code = ErrorCode.HYDRATION_MISMATCH


class InvalidHydrationRecordError(HydrationError):
    code = ErrorCode.INVALID_HYDRATION_RECORD


# =============================================================================
# TEMPORAL HELPERS
# =============================================================================

SECONDS_PER_DAY = 86_400.0
DAYS_PER_YEAR = 365.25


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are interpreted as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_seconds(later: datetime, earlier: datetime) -> float:
    """Signed seconds from `earlier` to `later`."""
    return (ensure_utc(later) - ensure_utc(earlier)).total_seconds()


def years_between(later: datetime, earlier: datetime) -> float:
    """Fractional years between two instants (Julian year)."""
    return elapsed_seconds(later, earlier) / (SECONDS_PER_DAY * DAYS_PER_YEAR)


def years(count: float) -> timedelta:
    """Julian-year duration, handy for lifespan arithmetic."""
    return timedelta(days=DAYS_PER_YEAR * count)
