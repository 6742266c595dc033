"""
Catalog queries over a flat list of listings.

Search, category and price filtering, sorting, pagination and facet
building for the catalog and search views. Grouping is applied per page and
falls back to ungrouped listings if it fails, so a grouping bug never takes
the catalog down.
"""

import re
from typing import Iterable, Literal, Optional

from pydantic import BaseModel, Field
from rich.console import Console

from .product_grouping import (
    GroupedProduct,
    Listing,
    ListingLike,
    VariantOptions,
    coerce_listing,
    deduplicate_products,
)
from .variant_extractor import extract_variant_info, parse_price

console = Console()

SortOrder = Literal["price-asc", "price-desc", "name", "newest"]

# Storefront categories and the free-text spellings that map onto them
TARGET_CATEGORIES = {
    "electronics": ["electronic"],
    "motor": [],
    "ropes": ["rope"],
    "safety": [],
    "anchors": ["anchor", "anchoring", "docking"],
    "fitting": ["fittings"],
    "plumbing": [],
    "painting": ["paint"],
    "screws": ["screw"],
    "tools": ["tool", "machine"],
    "electrics": ["lighting", "electric"],
    "maintenance": ["cleaning"],
    "navigation": [],
    "clothing": ["personal", "gear", "nautical"],
    "life-on-board": ["life", "board"],
    "inflatables": ["inflatable", "water", "toys"],
}


class CatalogQuery(BaseModel):
    """Catalog request parameters."""

    q: str = ""
    category: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    sort_by: Optional[SortOrder] = None
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=20, ge=1, le=100)
    deduplicate: bool = True


class CatalogFacets(BaseModel):
    """Filter values available across the matching listings."""

    colors: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    max_price: Optional[float] = None


class CatalogPage(BaseModel):
    """One page of catalog results."""

    products: list[Listing] = Field(default_factory=list)
    grouped: Optional[list[GroupedProduct]] = None
    page: int = 1
    has_more: bool = False
    total: int = 0
    facets: CatalogFacets = Field(default_factory=CatalogFacets)


def normalize_category(raw_category: str) -> str:
    """Map free-text category names ("100810-Anchoring") onto catalog categories."""
    category = re.sub(r"\s+", " ", raw_category.lower()).strip()
    category = re.sub(r"^\d+-", "", category)

    for name, aliases in TARGET_CATEGORIES.items():
        if category == name:
            return name
        if any(alias in category for alias in aliases):
            return name
        if name in category:
            return name

    return category


def _matches_category(listing: Listing, target: str) -> bool:
    listing_category = (listing.category or "").lower()
    if not listing_category:
        return False
    return (
        listing_category == target
        or target in listing_category
        or listing_category in target
    )


def filter_listings(listings: Iterable[Listing], query: CatalogQuery) -> list[Listing]:
    """Apply the text, category and price filters of ``query``."""
    results = list(listings)

    if query.q:
        needle = query.q.lower()
        results = [
            p
            for p in results
            if needle in p.title.lower()
            or needle in (p.description or "").lower()
            or needle in (p.category or "").lower()
        ]

    if query.category:
        target = normalize_category(query.category)
        results = [p for p in results if _matches_category(p, target)]

    if query.price_min is not None or query.price_max is not None:
        in_range = []
        for p in results:
            price = parse_price(p.price)
            if query.price_min is not None and price < query.price_min:
                continue
            if query.price_max is not None and price > query.price_max:
                continue
            in_range.append(p)
        results = in_range

    return results


def sort_listings(
    listings: Iterable[Listing], sort_by: Optional[SortOrder]
) -> list[Listing]:
    """Sort listings; "newest" and None keep the scraped order."""
    results = list(listings)
    if sort_by == "price-asc":
        results.sort(key=lambda p: parse_price(p.price))
    elif sort_by == "price-desc":
        results.sort(key=lambda p: parse_price(p.price), reverse=True)
    elif sort_by == "name":
        results.sort(key=lambda p: p.title.casefold())
    return results


def build_facets(listings: Iterable[Listing]) -> CatalogFacets:
    """Collect the distinct colors and sizes and the highest price."""
    colors: list[str] = []
    sizes: list[str] = []
    max_price = None

    for listing in listings:
        color, size = listing.color, listing.size
        if not (color and size):
            info = extract_variant_info(listing.title)
            color = color or info.color
            size = size or info.size
        if color and color not in colors:
            colors.append(color)
        if size and size not in sizes:
            sizes.append(size)

        price = parse_price(listing.price)
        if price > 0 and (max_price is None or price > max_price):
            max_price = price

    return CatalogFacets(colors=colors, sizes=sizes, max_price=max_price)


def group_or_passthrough(listings: list[Listing]) -> list[GroupedProduct]:
    """Group listings, or pass them through one per group if grouping fails."""
    try:
        return deduplicate_products(listings)
    except Exception as e:
        console.print(f"[yellow]Grouping failed, serving ungrouped listings: {e}[/yellow]")
        return [
            GroupedProduct(
                **coerce_listing(listing).model_dump(),
                group_id=listing.id,
                variant_count=1,
                has_variants=False,
                variant_options=VariantOptions(),
            )
            for listing in listings
        ]


def run_query(listings: Iterable[ListingLike], query: CatalogQuery) -> CatalogPage:
    """Filter, sort, paginate and optionally group a catalog."""
    candidates = [coerce_listing(item) for item in listings]
    matching = sort_listings(filter_listings(candidates, query), query.sort_by)

    start = (query.page - 1) * query.per_page
    page_items = matching[start : start + query.per_page]

    return CatalogPage(
        products=page_items,
        grouped=group_or_passthrough(page_items) if query.deduplicate else None,
        page=query.page,
        has_more=len(matching) > start + query.per_page,
        total=len(matching),
        facets=build_facets(matching),
    )
