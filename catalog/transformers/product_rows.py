"""
Row adapters between the grouping engine and the products table.

The sync path writes one row per scraped listing with its grouping columns
(group key, storage surrogate, base name, extracted facets) so later partial
re-scrapes land in the same group without recomputing the whole catalog.
The read path turns rows back into listings, and grouped results into the
"grouped products" view shape the catalog serves.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from .group_identity import group_key, storage_group_id
from .product_grouping import ListingLike, Listing, ProductGroup, coerce_listing
from .variant_extractor import extract_variant_info, parse_price

DEFAULT_SOURCE = "nautichandler"


def _timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def listing_to_row(
    item: ListingLike,
    source: str = DEFAULT_SOURCE,
    now: Optional[datetime] = None,
) -> dict:
    """Build the products-table row for a scraped listing."""
    listing = coerce_listing(item)
    info = extract_variant_info(listing.title)
    price_numeric = parse_price(listing.price)

    return {
        "id": listing.id,
        "title": listing.title,
        "price": listing.price,
        "price_numeric": price_numeric if price_numeric > 0 else None,
        "image": listing.image or None,
        "link": listing.link or None,
        "description": listing.description or None,
        "category": listing.category or None,
        "group_id": group_key(info.base_name),
        "group_hash": storage_group_id(info.base_name),
        "base_name": info.base_name,
        "size": info.size,
        "color": info.color,
        "material": info.material,
        "source": source,
        "in_stock": True,
        "updated_at": _timestamp(now),
    }


def regroup_row(row: dict) -> dict:
    """
    Recompute the grouping columns of a stored row.

    Facets and price already on the row are kept when the title yields
    nothing new.

    Returns:
        Dict of columns to update
    """
    info = extract_variant_info(row.get("title") or "")
    price_numeric = parse_price(row.get("price"))

    return {
        "group_id": group_key(info.base_name),
        "group_hash": storage_group_id(info.base_name),
        "base_name": info.base_name,
        "size": info.size or row.get("size"),
        "color": info.color or row.get("color"),
        "material": info.material or row.get("material"),
        "price_numeric": price_numeric if price_numeric > 0 else row.get("price_numeric"),
    }


def row_to_listing(row: dict) -> Listing:
    """Turn a products-table row back into a listing."""
    return Listing.model_validate(row)


def group_to_catalog_row(group: ProductGroup) -> dict:
    """Render a group in the grouped-products view shape."""
    representative = group.representative
    price = parse_price(representative.price) or None

    if group.price_range:
        min_price = group.price_range.min_numeric
        max_price = group.price_range.max_numeric
    else:
        min_price = max_price = price

    return {
        "id": representative.id,
        "title": representative.title,
        "price": representative.price,
        "price_numeric": price,
        "image": representative.image,
        "link": representative.link,
        "description": representative.description,
        "category": representative.category,
        "group_id": group.group_id,
        "base_name": group.base_name,
        "variant_count": group.variant_count,
        "min_price": min_price,
        "max_price": max_price,
        "available_sizes": group.variant_options.sizes or [],
        "available_colors": group.variant_options.colors or [],
    }


def listings_to_rows(
    listings: Iterable[ListingLike],
    source: str = DEFAULT_SOURCE,
    now: Optional[datetime] = None,
) -> list[dict]:
    """
    Build rows for a batch, one per listing id.

    The same listing often shows up on several category pages; the last
    occurrence wins but keeps the position of the first. Listings without an
    id are keyed by link, then title.
    """
    rows_by_key: dict[str, dict] = {}
    for item in listings:
        row = listing_to_row(item, source=source, now=now)
        rows_by_key[row["id"] or row["link"] or row["title"]] = row
    return list(rows_by_key.values())
