"""
Favorites API endpoints.

The consumption surface for every screen: membership badges, the grouped
favorites listing, toggle, clear, and pull-to-refresh. Offline and storage
failures come back as an Outcome envelope with a non-2xx status so clients
can render a non-destructive warning.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status
from pydantic import BaseModel, Field

from pokefaves.models.cache_entry import EntryStatus
from pokefaves.models.failure import FailureKind, Outcome
from pokefaves.models.grouping import TypeGroup
from pokefaves.models.pokemon import DetailRecord
from pokefaves.services.reconciler import ReconcileReport
from pokefaves.services.session import FavoritesSession, get_favorites_session

router = APIRouter(prefix="/favorites", tags=["favorites"])

Session = Annotated[FavoritesSession, Depends(get_favorites_session)]
PokemonId = Annotated[int, Path(gt=0, description="PokéAPI catalog id")]

_FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.OFFLINE: status.HTTP_503_SERVICE_UNAVAILABLE,
    FailureKind.STORAGE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class DetailModel(BaseModel):
    """Detail record as returned to clients."""

    id: int
    name: str
    number: str = Field(..., description="Pokédex number, e.g. #025")
    types: list[str] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=dict)
    abilities: list[str] = Field(default_factory=list)
    height: int | None = None
    weight: int | None = None
    base_experience: int | None = None
    sprite_url: str | None = None
    artwork_url: str | None = None

    @classmethod
    def from_record(cls, record: DetailRecord) -> "DetailModel":
        return cls(
            id=record.id,
            name=record.name,
            number=record.display_number(),
            types=list(record.types),
            stats=dict(record.stats),
            abilities=list(record.abilities),
            height=record.height,
            weight=record.weight,
            base_experience=record.base_experience,
            sprite_url=record.sprite_url,
            artwork_url=record.artwork_url,
        )


class FavoritesResponse(BaseModel):
    """Response model for the favorites set."""

    ids: list[int] = Field(default_factory=list)
    count: int = 0
    online: bool = True


class FavoriteStatusResponse(BaseModel):
    """Membership and detail state for one id."""

    id: int
    is_favorite: bool
    detail_status: EntryStatus
    detail: DetailModel | None = None
    reason: str | None = Field(
        default=None,
        description="Why the last detail fetch failed, if it did",
    )


class TypeGroupModel(BaseModel):
    """One type section of the grouped listing."""

    type: str
    color: str
    count: int
    members: list[DetailModel] = Field(default_factory=list)

    @classmethod
    def from_group(cls, group: TypeGroup) -> "TypeGroupModel":
        return cls(
            type=group.type,
            color=group.color,
            count=group.count,
            members=[DetailModel.from_record(r) for r in group.members],
        )


class GroupedFavoritesResponse(BaseModel):
    """Grouped favorites listing plus per-item placeholders."""

    groups: list[TypeGroupModel] = Field(default_factory=list)
    total: int = Field(0, description="Number of favorites, with or without details")
    pending: list[int] = Field(
        default_factory=list,
        description="Favorites whose details are still loading",
    )
    failed: dict[int, str] = Field(
        default_factory=dict,
        description="Favorites whose details could not be loaded, with the reason",
    )


class ReconcileReportModel(BaseModel):
    """Summary of a reconciliation pass."""

    batches: list[list[int]] = Field(default_factory=list)
    fetched: list[int] = Field(default_factory=list)
    failed: dict[int, str] = Field(default_factory=dict)
    skipped: list[int] = Field(default_factory=list)
    evicted: list[int] = Field(default_factory=list)
    interrupted: bool = False

    @classmethod
    def from_report(cls, report: ReconcileReport) -> "ReconcileReportModel":
        return cls(
            batches=report.batches,
            fetched=report.fetched,
            failed=report.failed,
            skipped=report.skipped,
            evicted=report.evicted,
            interrupted=report.interrupted,
        )


def _set_failure_status(response: Response, outcome: Outcome) -> None:
    if outcome.kind is not None:
        response.status_code = _FAILURE_STATUS.get(outcome.kind, status.HTTP_400_BAD_REQUEST)


@router.get("", response_model=FavoritesResponse)
async def list_favorites(session: Session) -> FavoritesResponse:
    """Get the favorited ids in insertion order."""
    ids = list(session.favorites.snapshot())
    return FavoritesResponse(ids=ids, count=len(ids), online=session.gate.is_online())


@router.get("/grouped", response_model=GroupedFavoritesResponse)
async def grouped_favorites(session: Session) -> GroupedFavoritesResponse:
    """
    Get the favorites listing grouped by type.

    Favorites without details yet are reported as pending or failed instead
    of blocking the listing.
    """
    pairs = session.reconciler.detail_pairs()
    return GroupedFavoritesResponse(
        groups=[TypeGroupModel.from_group(g) for g in session.reconciler.grouped_view()],
        total=len(pairs),
        pending=[i for i, entry in pairs if entry.is_pending],
        failed={i: entry.reason or "" for i, entry in pairs if entry.is_failed},
    )


@router.post("/refresh", response_model=Outcome[ReconcileReportModel])
async def refresh_favorites(
    session: Session, response: Response
) -> Outcome[ReconcileReportModel]:
    """
    Run a detail reconciliation pass now.

    Retries failed details. Returns 503 while offline.
    """
    outcome = await session.reconciler.refresh()
    if not outcome.ok or outcome.value is None:
        _set_failure_status(response, outcome)
        return Outcome[ReconcileReportModel](ok=False, failure=outcome.failure)
    return Outcome[ReconcileReportModel].success(ReconcileReportModel.from_report(outcome.value))


@router.delete("", response_model=Outcome[bool])
async def clear_favorites(session: Session, response: Response) -> Outcome[bool]:
    """Remove every favorite."""
    outcome = await session.favorites.clear()
    _set_failure_status(response, outcome)
    return Outcome[bool](ok=outcome.ok, failure=outcome.failure)


@router.get("/{pokemon_id}", response_model=FavoriteStatusResponse)
async def favorite_status(pokemon_id: PokemonId, session: Session) -> FavoriteStatusResponse:
    """Get membership and detail state for one id."""
    entry = session.reconciler.entry(pokemon_id)
    return FavoriteStatusResponse(
        id=pokemon_id,
        is_favorite=session.favorites.contains(pokemon_id),
        detail_status=entry.status,
        detail=DetailModel.from_record(entry.record) if entry.record is not None else None,
        reason=entry.reason,
    )


@router.put("/{pokemon_id}", response_model=Outcome[bool])
async def add_favorite(
    pokemon_id: PokemonId, session: Session, response: Response
) -> Outcome[bool]:
    """Add an id to the favorites. Adding twice is a no-op."""
    outcome = await session.favorites.add(pokemon_id)
    return _membership_outcome(outcome, response, member=True)


@router.delete("/{pokemon_id}", response_model=Outcome[bool])
async def remove_favorite(
    pokemon_id: PokemonId, session: Session, response: Response
) -> Outcome[bool]:
    """Remove an id from the favorites. Removing an absent id is a no-op."""
    outcome = await session.favorites.remove(pokemon_id)
    return _membership_outcome(outcome, response, member=False)


@router.post("/{pokemon_id}/toggle", response_model=Outcome[bool])
async def toggle_favorite(
    pokemon_id: PokemonId, session: Session, response: Response
) -> Outcome[bool]:
    """Flip membership. The value is the new membership state."""
    outcome = await session.favorites.toggle(pokemon_id)
    _set_failure_status(response, outcome)
    return Outcome[bool](ok=outcome.ok, value=outcome.value, failure=outcome.failure)


def _membership_outcome(
    outcome: Outcome[None], response: Response, *, member: bool
) -> Outcome[bool]:
    _set_failure_status(response, outcome)
    if not outcome.ok:
        return Outcome[bool](ok=False, failure=outcome.failure)
    return Outcome[bool].success(member)
