from catalogsync.parsers.card_identity import parse_title
from catalogsync.parsers.catalog_payload import parse_listing, parse_products_response

__all__ = [
    "parse_listing",
    "parse_products_response",
    "parse_title",
]
