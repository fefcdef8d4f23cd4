"""
Grouped favorites view.

Pure projection of the present detail records of the current favorites,
grouped by type for the favorites listing. Recomputed on every read; never
stored, so it cannot go stale relative to its inputs.
"""

from collections.abc import Iterable, Mapping

from pokefaves.config import FALLBACK_TYPE_COLOR, TYPE_COLORS
from pokefaves.models.grouping import TypeGroup
from pokefaves.models.pokemon import DetailRecord


def type_color(type_name: str) -> str:
    """Display color for a type, falling back to neutral gray."""
    return TYPE_COLORS.get(type_name, FALLBACK_TYPE_COLOR)


def group_by_type(
    favorite_ids: Iterable[int],
    present: Mapping[int, DetailRecord],
) -> list[TypeGroup]:
    """
    Group present records of the given favorites by type.

    A record with several types appears in each of its type groups. Ids with
    no present record (pending, failed, absent) are omitted. Members are
    sorted by id ascending; groups are sorted by type name.

    Args:
        favorite_ids: Current favorites
        present: Present detail records by id

    Returns:
        Type groups in display order
    """
    groups: dict[str, list[DetailRecord]] = {}

    for favorite_id in dict.fromkeys(favorite_ids):
        record = present.get(favorite_id)
        if record is None:
            continue
        for type_name in dict.fromkeys(record.types):
            groups.setdefault(type_name, []).append(record)

    return [
        TypeGroup(
            type=type_name,
            color=type_color(type_name),
            members=sorted(members, key=lambda r: r.id),
        )
        for type_name, members in sorted(groups.items())
    ]
