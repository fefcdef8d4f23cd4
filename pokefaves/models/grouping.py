from dataclasses import dataclass, field

from pokefaves.models.pokemon import DetailRecord


@dataclass
class TypeGroup:
    """
    One section of the grouped favorites listing.

    Members are sorted by id ascending.
    """

    type: str
    color: str
    members: list[DetailRecord] = field(default_factory=list)

    @property
    def ids(self) -> list[int]:
        """Member ids in display order."""
        return [record.id for record in self.members]

    @property
    def count(self) -> int:
        return len(self.members)
