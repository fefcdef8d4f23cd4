from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Pokefaves"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./data/pokefaves.db"

    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    fetch_timeout_seconds: float = 10.0

    # Storage key holding the JSON array of favorited ids
    favorites_key: str = "favorites"

    # Detail reconciliation pacing (0 disables the inter-batch delay)
    batch_size: int = 10
    batch_delay_seconds: float = 0.1

    connectivity_probe_url: str = "https://pokeapi.co/api/v2/"
    connectivity_poll_seconds: float = 15.0


settings = Settings()


# =============================================================================
# TYPE PALETTE
# =============================================================================

# Display colors for type groups on the favorites listing
TYPE_COLORS: dict[str, str] = {
    "normal": "#A8A878",
    "fire": "#FF6B35",
    "water": "#3498DB",
    "electric": "#FFD700",
    "grass": "#27AE60",
    "ice": "#74B9FF",
    "fighting": "#E74C3C",
    "poison": "#9B59B6",
    "ground": "#D35400",
    "flying": "#87CEEB",
    "psychic": "#FF6B9D",
    "bug": "#2ECC71",
    "rock": "#95A5A6",
    "ghost": "#8E44AD",
    "dragon": "#1E3A8A",
    "dark": "#2C3E50",
    "steel": "#7F8C8D",
    "fairy": "#FF9FF3",
}

# Used for types missing from the palette
FALLBACK_TYPE_COLOR = "#94A3B8"
