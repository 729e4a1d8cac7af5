from catalogsync.db.database import get_session, init_db
from catalogsync.db.operations import (
    card_to_model,
    checkpoint_to_model,
    create_set,
    create_subset_set,
    delete_checkpoint,
    extract_year,
    generate_slug,
    get_card,
    get_cards_by_set,
    get_checkpoint,
    get_set_by_slug,
    insert_card,
    list_sets,
    set_to_model,
    upsert_checkpoint,
)

__all__ = [
    "card_to_model",
    "checkpoint_to_model",
    "create_set",
    "create_subset_set",
    "delete_checkpoint",
    "extract_year",
    "generate_slug",
    "get_card",
    "get_cards_by_set",
    "get_checkpoint",
    "get_session",
    "get_set_by_slug",
    "init_db",
    "insert_card",
    "list_sets",
    "set_to_model",
    "upsert_checkpoint",
]
