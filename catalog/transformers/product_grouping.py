"""
Product grouping for scraped listings.

Scraped catalogs list every variant of a product as its own listing, with no
stable id and no "variant of" relation. This module rebuilds the product
families: listings whose titles reduce to the same base name share a group,
the cheapest listing represents the group, and the group carries its price
range and the sizes/colors/materials seen across its variants.

Grouping is a pure batch transform. Groups come out in the order their first
listing was seen, and the caller's listings are never modified.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .group_identity import group_key, group_key_for_title
from .variant_extractor import VariantInfo, extract_variant_info, parse_price


class Listing(BaseModel):
    """One scraped product occurrence."""

    id: str = ""  # scraper-assigned, not stable across runs
    title: str
    price: str = ""
    image: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    # Filled in by the grouping engine on its own copies
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        """Accept numeric ids from the database."""
        return "" if v is None else str(v)

    @field_validator("title", mode="before")
    @classmethod
    def clean_title(cls, v: Any) -> str:
        """Collapse whitespace runs left over from HTML text nodes."""
        if v is None:
            return ""
        return re.sub(r"\s+", " ", str(v)).strip()

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> str:
        """Keep the display price as given; price ranges echo it verbatim."""
        return "" if v is None else str(v)


class VariantOptions(BaseModel):
    """Distinct variant values seen in a group; empty sets are None."""

    sizes: Optional[list[str]] = None
    colors: Optional[list[str]] = None
    materials: Optional[list[str]] = None


class PriceRange(BaseModel):
    """Cheapest and dearest positive prices in a group."""

    min: str
    max: str
    min_numeric: float
    max_numeric: float


class ProductGroup(BaseModel):
    """A product family: all listings sharing one group key."""

    group_id: str
    base_name: str
    representative: Listing
    variants: list[Listing] = Field(default_factory=list)
    variant_count: int = 1
    variant_options: VariantOptions = Field(default_factory=VariantOptions)
    price_range: Optional[PriceRange] = None

    @property
    def has_variants(self) -> bool:
        return self.variant_count > 1


class GroupedProduct(Listing):
    """Flattened catalog view: the representative listing plus group info."""

    group_id: str
    variant_count: int = 1
    has_variants: bool = False
    variant_options: VariantOptions = Field(default_factory=VariantOptions)


ListingLike = Union[Listing, dict]


def coerce_listing(item: ListingLike) -> Listing:
    """
    Accept a Listing or a plain mapping (scraper output, DB row).

    Subclasses such as GroupedProduct are narrowed to their Listing fields so
    group info from an earlier run never leaks into a new grouping.
    """
    if type(item) is Listing:
        return item
    if isinstance(item, Listing):
        return Listing.model_validate(item.model_dump(include=set(Listing.model_fields)))
    return Listing.model_validate(item)


@dataclass
class _GroupBuilder:
    """Mutable accumulator for one group while a batch is consumed."""

    group_id: str
    base_name: str
    variants: list[Listing] = field(default_factory=list)
    sizes: list[str] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)

    def add(self, listing: Listing, info: VariantInfo) -> None:
        tagged = listing.model_copy(
            update={"size": info.size, "color": info.color, "material": info.material}
        )
        self.variants.append(tagged)
        for values, value in (
            (self.sizes, info.size),
            (self.colors, info.color),
            (self.materials, info.material),
        ):
            if value and value not in values:
                values.append(value)

    def build(self) -> ProductGroup:
        representative = self.variants[0]
        price_range = None

        if len(self.variants) > 1:
            priced = [(parse_price(v.price), v) for v in self.variants]
            positive = [(amount, v) for amount, v in priced if amount > 0]
            if positive:
                min_price = min(amount for amount, _ in positive)
                max_price = max(amount for amount, _ in positive)
                cheapest = next(v for amount, v in positive if amount == min_price)
                dearest = next(v for amount, v in positive if amount == max_price)
                price_range = PriceRange(
                    min=cheapest.price,
                    max=dearest.price,
                    min_numeric=min_price,
                    max_numeric=max_price,
                )
                representative = cheapest

        return ProductGroup(
            group_id=self.group_id,
            base_name=self.base_name,
            representative=representative,
            variants=list(self.variants),
            variant_count=len(self.variants),
            variant_options=VariantOptions(
                sizes=list(self.sizes) or None,
                colors=list(self.colors) or None,
                materials=list(self.materials) or None,
            ),
            price_range=price_range,
        )


def group_products(listings: Iterable[ListingLike]) -> list[ProductGroup]:
    """Group listings into product families, in first-seen order."""
    builders: dict[str, _GroupBuilder] = {}

    for item in listings:
        listing = coerce_listing(item)
        info = extract_variant_info(listing.title)
        key = group_key(info.base_name)

        builder = builders.get(key)
        if builder is None:
            builder = builders[key] = _GroupBuilder(group_id=key, base_name=info.base_name)
        builder.add(listing, info)

    return [builder.build() for builder in builders.values()]


def flatten_group(group: ProductGroup) -> GroupedProduct:
    """Project a group onto its representative listing."""
    return GroupedProduct(
        **coerce_listing(group.representative).model_dump(),
        group_id=group.group_id,
        variant_count=group.variant_count,
        has_variants=group.has_variants,
        variant_options=group.variant_options,
    )


def deduplicate_products(listings: Iterable[ListingLike]) -> list[GroupedProduct]:
    """One representative row per product family, with variant info."""
    return [flatten_group(group) for group in group_products(listings)]


def find_product_group(
    listings: Iterable[ListingLike], group_id: str
) -> Optional[ProductGroup]:
    """Return the full group with ``group_id``, or None if absent."""
    return next(
        (group for group in group_products(listings) if group.group_id == group_id),
        None,
    )


def get_variants_for_product(
    listings: Iterable[ListingLike], product_id: str
) -> list[Listing]:
    """Return every listing in the same family as the listing ``product_id``."""
    candidates = [coerce_listing(item) for item in listings]

    product = next((p for p in candidates if p.id == product_id), None)
    if product is None:
        return []

    key = group_key_for_title(product.title)
    return [p for p in candidates if group_key_for_title(p.title) == key]
