from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CatalogSync"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/catalogsync"

    # External catalog provider (PriceCharting-style product search)
    catalog_api_url: str = "https://www.pricecharting.com"
    catalog_api_token: str = ""

    # Pacing and retry policy for outbound catalog requests.
    # min_request_interval must respect the provider's published rate limit.
    min_request_interval: float = 2.0
    request_timeout: float = 30.0
    max_attempts: int = 3
    backoff_base_delay: float = 2.0
    backoff_multiplier: float = 2.0

    # Where import progress is persisted between runs
    checkpoint_backend: Literal["database", "file"] = "database"
    checkpoint_path: str = "catalog-import-checkpoint.json"
    import_job_name: str = "catalog-reconciliation"


settings = Settings()


# =============================================================================
# SET MATCHING THRESHOLDS
# =============================================================================

# Minimum edit-distance similarity for the SIMILARITY tier
SIMILARITY_THRESHOLD = 0.85

# Minimum fraction of set-name tokens found in the listing label
TOKEN_OVERLAP_THRESHOLD = 0.60

# Fixed confidence assigned to the STRUCTURAL_PATTERN tier
STRUCTURAL_CONFIDENCE = 0.75

# Tokens shorter than or equal to this length are ignored by token overlap
MIN_OVERLAP_TOKEN_LENGTH = 2


# =============================================================================
# VOCABULARIES
# =============================================================================

# Brand and noise words dropped during normalization.
# Multi-word entries are removed as whole phrases before single words.
STOP_TOKENS: tuple[str, ...] = (
    "short print",
    "upper deck",
    "base",
    "refractor",
    "trading",
    "card",
    "cards",
    "marvel",
    "topps",
    "panini",
    "fleer",
    "skybox",
    "impel",
)

# Manufacturer names recognised by the STRUCTURAL_PATTERN tier
MANUFACTURER_TOKENS: tuple[str, ...] = ("upper deck", "topps", "panini", "fleer")

# Product lines recognised by the STRUCTURAL_PATTERN tier
PRODUCT_LINE_TOKENS: tuple[str, ...] = ("marvel", "platinum", "chrome", "ultra", "prizm")

# A listing must mention at least one of these to be treated as a card product
CARD_CATEGORY_TOKENS: tuple[str, ...] = (
    "trading card",
    "card",
    "cards",
    "marvel",
    "x-men",
    "spider-man",
    "fantastic four",
    "avengers",
    "wolverine",
    "deadpool",
    "hulk",
    "iron man",
    "captain america",
    "thor",
)

# Listings mentioning any of these are never card products
NON_CARD_TOKENS: tuple[str, ...] = (
    "playstation",
    "xbox",
    "nintendo",
    "pc",
    "game",
    "video",
    "dvd",
    "blu-ray",
    "figure",
    "toy",
    "funko",
)
