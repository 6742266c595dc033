"""
Tests for the grouping engine: bucketing, representatives, price ranges,
variant options and group lookup.

Run with:
    pytest tests/test_product_grouping.py -v
"""

from catalog.extractors.nautic_extractor import SAMPLE_LISTINGS
from catalog.transformers.product_grouping import (
    GroupedProduct,
    Listing,
    deduplicate_products,
    find_product_group,
    get_variants_for_product,
    group_products,
)
from catalog.transformers.variant_extractor import parse_price


# =============================================================================
# GROUPING
# =============================================================================


class TestGroupProducts:
    """Listings sharing a base name form one product family."""

    def test_end_to_end_scenario(self, swivel_listings):
        groups = group_products(swivel_listings)
        assert len(groups) == 2

        swivel, teak = groups
        assert swivel.group_id == "anchor-swivel"
        assert swivel.base_name == "Anchor Swivel"
        assert swivel.variant_count == 2
        assert swivel.has_variants
        assert swivel.representative.price == "€20.00"
        assert swivel.variant_options.sizes == ["8mm", "10mm"]
        assert swivel.variant_options.colors == ["black", "white"]
        assert swivel.variant_options.materials is None
        assert swivel.price_range.min == "€20.00"
        assert swivel.price_range.max == "€25.00"
        assert swivel.price_range.min_numeric == 20.0
        assert swivel.price_range.max_numeric == 25.0

        assert teak.group_id == "teak-oil"
        assert teak.variant_count == 1
        assert not teak.has_variants
        assert teak.price_range is None

    def test_groups_in_first_seen_order(self):
        groups = group_products(
            [
                {"title": "Teak Oil 1L", "price": "€28.00"},
                {"title": "Anchor Swivel 8mm", "price": "€20.00"},
                {"title": "Teak Oil 2.5L", "price": "€55.00"},
            ]
        )
        assert [g.group_id for g in groups] == ["teak-oil", "anchor-swivel"]
        assert [v.title for v in groups[0].variants] == ["Teak Oil 1L", "Teak Oil 2.5L"]

    def test_representative_is_cheapest(self):
        groups = group_products(
            [
                {"id": "a", "title": "Boat Fender 20x80cm Blue", "price": "€34.99"},
                {"id": "b", "title": "Boat Fender 15x60cm White", "price": "€24.99"},
                {"id": "c", "title": "Boat Fender 25x90cm Black", "price": "€49.00"},
            ]
        )
        assert len(groups) == 1
        group = groups[0]
        assert group.representative.id == "b"
        assert parse_price(group.representative.price) == group.price_range.min_numeric
        assert group.price_range.max == "€49.00"

    def test_tied_minimum_picks_first(self):
        groups = group_products(
            [
                {"id": "a", "title": "Anchor Swivel 8mm", "price": "€20.00"},
                {"id": "b", "title": "Anchor Swivel 10mm", "price": "€20.00"},
            ]
        )
        assert groups[0].representative.id == "a"

    def test_no_positive_price_keeps_first_listing(self):
        groups = group_products(
            [
                {"id": "a", "title": "Anchor Swivel 8mm", "price": "on request"},
                {"id": "b", "title": "Anchor Swivel 10mm", "price": ""},
            ]
        )
        group = groups[0]
        assert group.representative.id == "a"
        assert group.price_range is None
        assert group.variant_count == 2

    def test_unparseable_price_still_counted(self):
        groups = group_products(
            [
                {"id": "a", "title": "Anchor Swivel 8mm", "price": "garbage"},
                {"id": "b", "title": "Anchor Swivel 10mm", "price": "€25.00"},
            ]
        )
        group = groups[0]
        assert group.variant_count == 2
        assert group.representative.id == "b"
        assert group.price_range.min == group.price_range.max == "€25.00"

    def test_variants_are_tagged_with_facets(self, swivel_listings):
        swivel = group_products(swivel_listings)[0]
        assert [(v.size, v.color) for v in swivel.variants] == [
            ("8mm", "black"),
            ("10mm", "white"),
        ]

    def test_variant_options_are_deduplicated(self):
        groups = group_products(
            [
                {"title": "Dock Line 12mm Black", "price": "€10.00"},
                {"title": "Dock Line 12mm White", "price": "€10.00"},
                {"title": "Dock Line 14mm Black", "price": "€12.00"},
            ]
        )
        assert groups[0].variant_options.sizes == ["12mm", "14mm"]
        assert groups[0].variant_options.colors == ["black", "white"]

    def test_materials_are_unioned_in_order(self):
        """Chrome and brass are both colors and materials, so they strip from the name."""
        groups = group_products(
            [
                {"title": "Deck Cleat 10cm Chrome", "price": "€12.00"},
                {"title": "Deck Cleat 12cm Brass", "price": "€18.00"},
                {"title": "Deck Cleat 15cm Chrome", "price": "€21.00"},
            ]
        )
        assert len(groups) == 1
        assert groups[0].variant_options.materials == ["chrome", "brass"]
        assert groups[0].variant_options.sizes == ["10cm", "12cm", "15cm"]

    def test_case_variants_share_a_group(self):
        groups = group_products(
            [
                {"title": "Sailing Gloves XL", "price": "€30.00"},
                {"title": "Sailing Gloves xl", "price": "€29.00"},
            ]
        )
        assert [g.group_id for g in groups] == ["sailing-gloves"]
        assert groups[0].variant_options.sizes == ["XL", "xl"]

    def test_price_strings_are_kept_verbatim(self):
        groups = group_products(
            [
                {"title": "Anchor Swivel 8mm", "price": "€ 1 234,56"},
                {"title": "Anchor Swivel 10mm", "price": "€ 1 500,00"},
            ]
        )
        assert groups[0].price_range.min == "€ 1 234,56"
        assert groups[0].price_range.max == "€ 1 500,00"
        assert groups[0].price_range.min_numeric == 1234.56

    def test_empty_input(self):
        assert group_products([]) == []
        assert deduplicate_products([]) == []

    def test_input_is_not_mutated(self):
        listings = [
            Listing(id="1", title="Anchor Swivel 8mm Black", price="€20.00"),
            Listing(id="2", title="Anchor Swivel 10mm White", price="€25.00"),
        ]
        raw = [{"id": "3", "title": "Teak Oil 1L", "price": "€28.00"}]

        group_products(listings + raw)

        assert listings[0].size is None and listings[0].color is None
        assert raw == [{"id": "3", "title": "Teak Oil 1L", "price": "€28.00"}]

    def test_grouping_ignores_listing_id(self):
        groups = group_products(
            [
                {"id": "same", "title": "Anchor Swivel 8mm", "price": "€20.00"},
                {"id": "same", "title": "Teak Oil 1L", "price": "€28.00"},
            ]
        )
        assert len(groups) == 2

    def test_grouping_stability(self):
        """Listings land together exactly when their keys match."""
        titles = [
            "Anchor Swivel 8mm Black",
            "anchor swivel 10mm",
            "Anchor-Swivel XL",
            "Anchor Shackle 8mm",
        ]
        groups = group_products([{"title": t, "price": "€1.00"} for t in titles])
        assert [g.variant_count for g in groups] == [3, 1]

    def test_empty_base_names_collide(self):
        """Titles made only of variant tokens share the empty key."""
        groups = group_products(
            [
                {"title": "8mm Black", "price": "€5.00"},
                {"title": "10mm White", "price": "€6.00"},
            ]
        )
        assert len(groups) == 1
        assert groups[0].group_id == ""
        assert groups[0].variant_count == 2

    def test_sample_catalog(self):
        groups = group_products(SAMPLE_LISTINGS)
        assert len(groups) == 10
        by_id = {g.group_id: g for g in groups}
        assert by_id["stainless-steel-anchor-chain"].variant_count == 2
        assert by_id["boat-fender"].variant_options.colors == ["white", "blue"]


# =============================================================================
# FLATTENED VIEW
# =============================================================================


class TestDeduplicateProducts:
    """One representative row per family."""

    def test_flattened_rows(self, swivel_listings):
        rows = deduplicate_products(swivel_listings)
        assert [r.id for r in rows] == ["1", "3"]

        swivel = rows[0]
        assert isinstance(swivel, GroupedProduct)
        assert swivel.title == "Anchor Swivel 8mm Black"
        assert swivel.group_id == "anchor-swivel"
        assert swivel.variant_count == 2
        assert swivel.has_variants is True
        assert swivel.variant_options.sizes == ["8mm", "10mm"]

        assert rows[1].has_variants is False

    def test_regrouping_representatives_is_idempotent(self):
        rows = deduplicate_products(SAMPLE_LISTINGS)
        regrouped = group_products(rows)
        assert len(regrouped) == len(rows)
        assert all(g.variant_count == 1 for g in regrouped)

    def test_flattened_rows_can_be_flattened_again(self, swivel_listings):
        """Earlier group info is dropped, not carried into the new groups."""
        again = deduplicate_products(deduplicate_products(swivel_listings))

        assert [r.id for r in again] == ["1", "3"]
        assert all(r.variant_count == 1 and not r.has_variants for r in again)
        assert again[0].variant_options.sizes == ["8mm"]

    def test_regrouped_variants_are_plain_listings(self, swivel_listings):
        group = group_products(deduplicate_products(swivel_listings))[0]
        assert type(group.representative) is Listing
        assert all(type(v) is Listing for v in group.variants)


# =============================================================================
# LOOKUP
# =============================================================================


class TestGroupLookup:
    """Finding a family by group id or by one of its listings."""

    def test_find_product_group(self, swivel_listings):
        group = find_product_group(swivel_listings, "anchor-swivel")
        assert group is not None
        assert [v.id for v in group.variants] == ["1", "2"]

    def test_find_missing_group(self, swivel_listings):
        assert find_product_group(swivel_listings, "no-such-group") is None

    def test_get_variants_for_product(self, swivel_listings):
        variants = get_variants_for_product(swivel_listings, "2")
        assert [v.id for v in variants] == ["1", "2"]

    def test_get_variants_for_singleton(self, swivel_listings):
        assert [v.id for v in get_variants_for_product(swivel_listings, "3")] == ["3"]

    def test_get_variants_for_unknown_product(self, swivel_listings):
        assert get_variants_for_product(swivel_listings, "404") == []
