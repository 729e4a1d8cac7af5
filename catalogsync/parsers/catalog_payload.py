"""
External catalog response parser.

Converts the provider's product search JSON into ExternalListing objects.

Expected shape:
    {
        "status": "success",
        "products": [
            {"id": "123", "product-name": "Colossus #64",
             "console-name": "1992 Marvel Masterpieces",
             "loose-price": 450, "cib-price": 900, "new-price": null,
             "image": "https://..."}
        ]
    }

Prices are integer cents. Malformed products are skipped, not fatal.
"""

import logging
from typing import Any

from catalogsync.models.catalog import ExternalListing, PriceTiers

logger = logging.getLogger(__name__)


def _cents(value: Any) -> int | None:
    """Coerce a provider price to integer cents, None if absent or invalid."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_listing(product: dict[str, Any]) -> ExternalListing | None:
    """
    Build an ExternalListing from one provider product.

    Returns None if the product has no ID or no title.
    """
    external_id = product.get("id")
    title = product.get("product-name")
    if external_id in (None, "") or not title:
        return None

    image = product.get("image") or product.get("image-url") or None
    return ExternalListing(
        external_id=str(external_id),
        title=str(title).strip(),
        category_label=str(product.get("console-name") or "").strip(),
        price_tiers=PriceTiers(
            loose=_cents(product.get("loose-price")),
            complete=_cents(product.get("cib-price")),
            new=_cents(product.get("new-price")),
        ),
        image_url=str(image) if image else None,
    )


def parse_products_response(data: dict[str, Any]) -> list[ExternalListing]:
    """
    Parse a product search response body.

    Args:
        data: Decoded JSON body from the products endpoint

    Returns:
        Listings in provider order (not yet deduplicated)
    """
    products = data.get("products") or []
    listings: list[ExternalListing] = []

    for product in products:
        if not isinstance(product, dict):
            continue
        listing = parse_listing(product)
        if listing is None:
            logger.debug("Skipping malformed product: %r", product)
            continue
        listings.append(listing)

    return listings
