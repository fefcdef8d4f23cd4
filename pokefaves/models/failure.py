"""
Failure classification for the favorites subsystem.

Two layers:
- Exceptions (FavoritesError subclasses) raised at the storage, network,
  and connectivity boundaries.
- Outcome values returned from mutation and reconciliation entry points so
  callers can render inline feedback instead of handling exceptions.

INVARIANT: StorageError and OfflineError never escape a manager mutation as an
exception. They are always converted to an Outcome.

Failure kinds:
- STORAGE_ERROR: Persistence read/write failed (corrupt data, write rejected)
- OFFLINE: Mutation or fetch attempted while the connectivity gate is offline
- FETCH_ERROR: Remote detail fetch failed (network, not found, server error)
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    STORAGE_ERROR = "storage_error"
    OFFLINE = "offline"
    FETCH_ERROR = "fetch_error"


# Standard messages, fixed per kind
STANDARD_MESSAGES: dict[FailureKind, str] = {
    FailureKind.STORAGE_ERROR: "Your wishlist could not be saved. Nothing was changed.",
    FailureKind.OFFLINE: "Cannot modify wishlist while offline.",
    FailureKind.FETCH_ERROR: "Details for this Pokémon could not be loaded.",
}

STANDARD_SUGGESTIONS: dict[FailureKind, str] = {
    FailureKind.STORAGE_ERROR: "Try again. If this persists, free up device storage.",
    FailureKind.OFFLINE: "Please check your internet connection.",
    FailureKind.FETCH_ERROR: "Pull to refresh to retry.",
}


class FavoritesError(Exception):
    """
    Base class for failures raised inside the favorites subsystem.

    Every subclass carries a FailureKind so it can be converted into an
    Outcome at the entry point that catches it.
    """

    kind: FailureKind

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_failure(self) -> "FailureDetail":
        """Convert to a user-facing FailureDetail."""
        return FailureDetail.for_kind(self.kind, detail=self.detail or self.message)


class StorageError(FavoritesError):
    """Raised when the durable store cannot be read or written."""

    kind = FailureKind.STORAGE_ERROR


class OfflineError(FavoritesError):
    """Raised when an operation needs connectivity and the gate is offline."""

    kind = FailureKind.OFFLINE

    def __init__(self, message: str = "Connectivity gate reports offline"):
        super().__init__(message)


class FetchError(FavoritesError):
    """
    Raised by a detail fetcher when one id cannot be fetched.

    The reconciler absorbs this into a FAILED cache entry for that id.
    """

    kind = FailureKind.FETCH_ERROR

    def __init__(self, pokemon_id: int, message: str, detail: str | None = None):
        self.pokemon_id = pokemon_id
        super().__init__(message, detail)


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )

    @classmethod
    def for_kind(cls, kind: FailureKind, detail: str | None = None) -> "FailureDetail":
        """Build a failure using the standard message and suggestion for its kind."""
        return cls(
            kind=kind,
            message=STANDARD_MESSAGES[kind],
            detail=detail,
            suggestion=STANDARD_SUGGESTIONS[kind],
        )


class Outcome(BaseModel, Generic[T]):
    """
    Result envelope for favorites operations.

    Success carries an optional value; failure carries a FailureDetail.
    """

    ok: bool = Field(
        ...,
        description="True when the operation completed",
    )
    value: T | None = Field(
        default=None,
        description="Operation result (present on success when meaningful)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    @classmethod
    def success(cls, value: T | None = None) -> "Outcome[T]":
        """Create a success outcome."""
        return cls(ok=True, value=value)

    @classmethod
    def from_error(cls, error: FavoritesError) -> "Outcome[Any]":
        """Create a failure outcome from a caught FavoritesError."""
        return cls(ok=False, failure=error.to_failure())

    @classmethod
    def offline(cls) -> "Outcome[Any]":
        """Create the distinguished offline outcome."""
        return cls.from_error(OfflineError())

    @property
    def kind(self) -> FailureKind | None:
        """Failure kind, or None on success."""
        return self.failure.kind if self.failure is not None else None

    @property
    def is_offline(self) -> bool:
        return self.kind is FailureKind.OFFLINE

    @property
    def is_storage_error(self) -> bool:
        return self.kind is FailureKind.STORAGE_ERROR
