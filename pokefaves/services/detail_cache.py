"""
Detail cache.

Maps favorite ids to DetailCacheEntry states:

    ABSENT --mark_pending--> PENDING --mark_present--> PRESENT
                                     --mark_failed---> FAILED --mark_pending--> PENDING

INVARIANT: At most one PENDING entry per id. `mark_pending` on a pending id
is a no-op, which is what keeps concurrent passes from double fetching.

INVARIANT: PRESENT/FAILED are only accepted from PENDING, and only for the
token `mark_pending` handed out. A result that arrives after `evict`, or
after the id was evicted and marked pending again, is discarded.
"""

import itertools
import logging

from pokefaves.models.cache_entry import DetailCacheEntry, EntryStatus
from pokefaves.models.pokemon import DetailRecord

logger = logging.getLogger(__name__)

_ABSENT = DetailCacheEntry.absent()


class DetailCache:
    """In-memory detail cache keyed by favorite id."""

    def __init__(self) -> None:
        self._entries: dict[int, DetailCacheEntry] = {}
        self._tokens = itertools.count(1)

    def get(self, favorite_id: int) -> DetailCacheEntry:
        """Entry for an id; ABSENT if never fetched or evicted."""
        return self._entries.get(favorite_id, _ABSENT)

    def get_all_present(self) -> dict[int, DetailRecord]:
        """Records of every PRESENT entry."""
        return {
            favorite_id: entry.record
            for favorite_id, entry in self._entries.items()
            if entry.record is not None
        }

    def mark_pending(self, favorite_id: int) -> int | None:
        """
        Start a fetch for an id.

        Returns:
            A token for this fetch, to be passed back with its result. None if
            the entry was already PENDING (the caller must not fetch) or
            already PRESENT.
        """
        current = self.get(favorite_id)
        if not current.needs_fetch:
            return None

        token = next(self._tokens)
        self._entries[favorite_id] = DetailCacheEntry.pending(token)
        logger.debug("Detail %d: %s -> pending", favorite_id, current.status.value)
        return token

    def mark_present(
        self, favorite_id: int, record: DetailRecord, token: int | None = None
    ) -> bool:
        """
        Store a fetched record.

        Args:
            token: Token from `mark_pending`; None accepts any pending entry

        Returns:
            False if the id was not pending under this token (late result,
            discarded)
        """
        if not self._accepts(favorite_id, token):
            logger.debug("Discarding late detail for %d", favorite_id)
            return False

        self._entries[favorite_id] = DetailCacheEntry.present(record)
        logger.debug("Detail %d: pending -> present", favorite_id)
        return True

    def mark_failed(self, favorite_id: int, reason: str, token: int | None = None) -> bool:
        """
        Record a fetch failure.

        Returns:
            False if the id was not pending under this token (late result,
            discarded)
        """
        if not self._accepts(favorite_id, token):
            logger.debug("Discarding late failure for %d", favorite_id)
            return False

        self._entries[favorite_id] = DetailCacheEntry.failed(reason)
        logger.debug("Detail %d: pending -> failed (%s)", favorite_id, reason)
        return True

    def _accepts(self, favorite_id: int, token: int | None) -> bool:
        entry = self.get(favorite_id)
        return entry.is_pending and (token is None or entry.token == token)

    def evict(self, favorite_id: int) -> bool:
        """
        Delete any entry for an id.

        Returns:
            True if an entry existed
        """
        return self._entries.pop(favorite_id, None) is not None

    def ids(self) -> set[int]:
        """Ids with any non-absent entry."""
        return set(self._entries)

    def pending_ids(self) -> set[int]:
        return self._ids_with(EntryStatus.PENDING)

    def failed_ids(self) -> set[int]:
        return self._ids_with(EntryStatus.FAILED)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _ids_with(self, status: EntryStatus) -> set[int]:
        return {
            favorite_id for favorite_id, entry in self._entries.items() if entry.status is status
        }
