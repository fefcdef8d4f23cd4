from pokefaves.db.database import get_session, init_db
from pokefaves.db.operations import delete_value, get_value, put_value
from pokefaves.db.store import KeyValueStore, MemoryKeyValueStore, SqlKeyValueStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqlKeyValueStore",
    "delete_value",
    "get_session",
    "get_value",
    "init_db",
    "put_value",
]
