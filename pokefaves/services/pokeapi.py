"""
PokéAPI detail client.

Fetches `/pokemon/{id}` and parses the payload into a DetailRecord. This is
the remote detail-fetch collaborator used by the batch reconciler.

API docs: https://pokeapi.co/docs/v2#pokemon
"""

import logging
from typing import Any, Protocol

import httpx

from pokefaves.models.failure import FetchError
from pokefaves.models.pokemon import DetailRecord

logger = logging.getLogger(__name__)

POKEAPI_BASE = "https://pokeapi.co/api/v2"
USER_AGENT = "Pokefaves/1.0"


class DetailFetcher(Protocol):
    """Remote collaborator that resolves one favorite id to its details."""

    async def fetch_detail(self, pokemon_id: int) -> DetailRecord:
        """
        Fetch details for one id.

        Raises:
            FetchError: On any failure for this id
        """
        ...


def parse_pokemon(data: dict[str, Any]) -> DetailRecord:
    """
    Build a DetailRecord from a PokéAPI pokemon payload.

    Types and abilities are ordered by slot.

    Raises:
        KeyError: If id or name is missing
    """
    types = sorted(data.get("types") or [], key=lambda t: t.get("slot", 0))
    abilities = sorted(data.get("abilities") or [], key=lambda a: a.get("slot", 0))
    stats = {
        stat["stat"]["name"]: int(stat["base_stat"])
        for stat in data.get("stats") or []
        if stat.get("stat", {}).get("name") is not None
    }

    sprites = data.get("sprites") or {}
    artwork = (sprites.get("other") or {}).get("official-artwork") or {}

    return DetailRecord(
        id=int(data["id"]),
        name=str(data["name"]),
        types=tuple(t["type"]["name"] for t in types),
        stats=stats,
        abilities=tuple(a["ability"]["name"] for a in abilities),
        height=data.get("height"),
        weight=data.get("weight"),
        base_experience=data.get("base_experience"),
        sprite_url=sprites.get("front_default"),
        artwork_url=artwork.get("front_default"),
    )


def pokemon_url(pokemon_id: int, base_url: str = POKEAPI_BASE) -> str:
    """URL of the detail resource for an id."""
    return f"{base_url.rstrip('/')}/pokemon/{pokemon_id}"


class PokeApiClient:
    """
    DetailFetcher backed by PokéAPI over httpx.

    Timeouts, transport errors, non-2xx responses, and malformed payloads
    all surface as FetchError for the affected id.
    """

    def __init__(
        self,
        base_url: str = POKEAPI_BASE,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    async def fetch_detail(self, pokemon_id: int) -> DetailRecord:
        url = pokemon_url(pokemon_id, self.base_url)

        try:
            response = await self._client.get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                pokemon_id,
                f"Failed to fetch pokemon {pokemon_id}: HTTP {e.response.status_code}",
            ) from e
        except httpx.RequestError as e:
            raise FetchError(pokemon_id, f"Failed to fetch pokemon {pokemon_id}: {e!r}") from e
        except ValueError as e:
            raise FetchError(pokemon_id, f"Invalid JSON for pokemon {pokemon_id}") from e

        try:
            return parse_pokemon(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(pokemon_id, f"Malformed payload for pokemon {pokemon_id}") from e

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
