"""
Pokefaves services.

Favorites persistence, detail reconciliation, and connectivity gating.
"""

from pokefaves.services.connectivity import ConnectivityGate, ConnectivityMonitor
from pokefaves.services.detail_cache import DetailCache
from pokefaves.services.favorites_manager import FavoritesManager, FavoritesSet
from pokefaves.services.favorites_store import (
    FavoritesStore,
    decode_favorites,
    encode_favorites,
    validate_favorite_id,
)
from pokefaves.services.grouping import group_by_type, type_color
from pokefaves.services.pokeapi import DetailFetcher, PokeApiClient, parse_pokemon
from pokefaves.services.reconciler import BatchReconciler, ReconcileReport, partition
from pokefaves.services.session import FavoritesSession, get_favorites_session

__all__ = [
    "BatchReconciler",
    "ConnectivityGate",
    "ConnectivityMonitor",
    "DetailCache",
    "DetailFetcher",
    "FavoritesManager",
    "FavoritesSession",
    "FavoritesSet",
    "FavoritesStore",
    "PokeApiClient",
    "ReconcileReport",
    "decode_favorites",
    "encode_favorites",
    "get_favorites_session",
    "group_by_type",
    "parse_pokemon",
    "partition",
    "type_color",
    "validate_favorite_id",
]
