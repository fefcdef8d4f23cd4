from pokefaves.models.cache_entry import DetailCacheEntry, EntryStatus
from pokefaves.models.failure import (
    STANDARD_MESSAGES,
    STANDARD_SUGGESTIONS,
    FailureDetail,
    FailureKind,
    FavoritesError,
    FetchError,
    OfflineError,
    Outcome,
    StorageError,
)
from pokefaves.models.grouping import TypeGroup
from pokefaves.models.pokemon import DetailRecord

__all__ = [
    "STANDARD_MESSAGES",
    "STANDARD_SUGGESTIONS",
    "DetailCacheEntry",
    "DetailRecord",
    "EntryStatus",
    "FailureDetail",
    "FailureKind",
    "FavoritesError",
    "FetchError",
    "OfflineError",
    "Outcome",
    "StorageError",
    "TypeGroup",
]
