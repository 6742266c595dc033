"""
Catalog transformers.

The grouping engine that rebuilds product families from scraped listings,
plus the pure helpers the catalog routes build on:
- Variant extraction (size / color / material / base name) and price parsing
- Group identity (slug key, storage surrogate id)
- Grouping, deduplication and group lookup
- Row adapters for the database and catalog queries
"""

from .catalog_query import (
    CatalogFacets,
    CatalogPage,
    CatalogQuery,
    build_facets,
    filter_listings,
    group_or_passthrough,
    normalize_category,
    run_query,
    sort_listings,
)
from .group_identity import group_key, group_key_for_title, storage_group_id
from .product_grouping import (
    GroupedProduct,
    Listing,
    PriceRange,
    ProductGroup,
    VariantOptions,
    coerce_listing,
    deduplicate_products,
    find_product_group,
    get_variants_for_product,
    group_products,
)
from .product_rows import (
    group_to_catalog_row,
    listing_to_row,
    listings_to_rows,
    regroup_row,
    row_to_listing,
)
from .variant_extractor import VariantInfo, extract_variant_info, parse_price

__all__ = [
    # Extraction
    "VariantInfo",
    "extract_variant_info",
    "parse_price",
    # Identity
    "group_key",
    "group_key_for_title",
    "storage_group_id",
    # Grouping
    "Listing",
    "GroupedProduct",
    "PriceRange",
    "ProductGroup",
    "VariantOptions",
    "coerce_listing",
    "group_products",
    "deduplicate_products",
    "find_product_group",
    "get_variants_for_product",
    # Row adapters
    "listing_to_row",
    "listings_to_rows",
    "regroup_row",
    "row_to_listing",
    "group_to_catalog_row",
    # Catalog queries
    "CatalogQuery",
    "CatalogPage",
    "CatalogFacets",
    "normalize_category",
    "filter_listings",
    "sort_listings",
    "build_facets",
    "group_or_passthrough",
    "run_query",
]
