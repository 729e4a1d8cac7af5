"""
CatalogSync services.

External catalog access, persistence boundaries and the reconciliation run.
"""

from catalogsync.services.canonical_store import CanonicalStore, SqlCanonicalStore
from catalogsync.services.catalog_client import CatalogClient, dedupe_listings
from catalogsync.services.checkpoint_store import (
    CheckpointStore,
    DatabaseCheckpointStore,
    FileCheckpointStore,
    build_checkpoint_store,
)
from catalogsync.services.rate_limiter import RateLimiter
from catalogsync.services.reconciliation import ReconciliationOrchestrator, build_query

__all__ = [
    "CanonicalStore",
    "CatalogClient",
    "CheckpointStore",
    "DatabaseCheckpointStore",
    "FileCheckpointStore",
    "RateLimiter",
    "ReconciliationOrchestrator",
    "SqlCanonicalStore",
    "build_checkpoint_store",
    "build_query",
    "dedupe_listings",
]
