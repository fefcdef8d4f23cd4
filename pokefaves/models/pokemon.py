from dataclasses import dataclass, field


@dataclass(frozen=True)
class DetailRecord:
    """
    Detail record for one favorited Pokémon.

    Immutable once fetched. Keyed by the catalog id.

    Attributes:
        id: PokéAPI catalog id
        name: Lowercase species/form name (e.g., "pikachu")
        types: Type names ordered by slot (e.g., ["grass", "poison"])
        stats: Base stats keyed by stat name (e.g., {"hp": 35})
        abilities: Ability names in slot order
        height: Height in decimetres
        weight: Weight in hectograms
        base_experience: Base experience yield, if known
        sprite_url: Front default sprite
        artwork_url: Official artwork image
    """

    id: int
    name: str
    types: tuple[str, ...] = ()
    stats: dict[str, int] = field(default_factory=dict, hash=False, compare=False)
    abilities: tuple[str, ...] = ()
    height: int | None = None
    weight: int | None = None
    base_experience: int | None = None
    sprite_url: str | None = None
    artwork_url: str | None = None

    @property
    def primary_type(self) -> str | None:
        """First type slot, if any."""
        return self.types[0] if self.types else None

    def display_number(self) -> str:
        """Pokédex-style number, zero padded to three digits."""
        return f"#{self.id:03d}"

    def height_m(self) -> float | None:
        """Height in metres."""
        return None if self.height is None else self.height / 10

    def weight_kg(self) -> float | None:
        """Weight in kilograms."""
        return None if self.weight is None else self.weight / 10
