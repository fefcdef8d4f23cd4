from dataclasses import dataclass
from enum import Enum

from pokefaves.models.pokemon import DetailRecord


class EntryStatus(str, Enum):
    """Fetch status of one detail cache entry."""

    ABSENT = "absent"
    PENDING = "pending"
    PRESENT = "present"
    FAILED = "failed"


@dataclass(frozen=True)
class DetailCacheEntry:
    """
    State of the detail cache for a single favorite id.

    Only PRESENT entries carry a record; only FAILED entries carry a reason;
    only PENDING entries carry the token of the fetch they are waiting on.
    """

    status: EntryStatus
    record: DetailRecord | None = None
    reason: str | None = None
    token: int | None = None

    @classmethod
    def absent(cls) -> "DetailCacheEntry":
        return cls(status=EntryStatus.ABSENT)

    @classmethod
    def pending(cls, token: int | None = None) -> "DetailCacheEntry":
        return cls(status=EntryStatus.PENDING, token=token)

    @classmethod
    def present(cls, record: DetailRecord) -> "DetailCacheEntry":
        return cls(status=EntryStatus.PRESENT, record=record)

    @classmethod
    def failed(cls, reason: str) -> "DetailCacheEntry":
        return cls(status=EntryStatus.FAILED, reason=reason)

    @property
    def is_absent(self) -> bool:
        return self.status is EntryStatus.ABSENT

    @property
    def is_pending(self) -> bool:
        return self.status is EntryStatus.PENDING

    @property
    def is_present(self) -> bool:
        return self.status is EntryStatus.PRESENT

    @property
    def is_failed(self) -> bool:
        return self.status is EntryStatus.FAILED

    @property
    def needs_fetch(self) -> bool:
        """Whether a reconciliation pass should (re)fetch this id."""
        return self.status in (EntryStatus.ABSENT, EntryStatus.FAILED)
