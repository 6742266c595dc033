"""
Supabase loader for the scraped catalog.

Stores one row per scraped listing in PostgreSQL, with the grouping columns
(group_id, group_hash, base_name, size, color, material) computed on the way
in so later partial re-scrapes join their existing product family.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv
from rich.console import Console
from supabase import Client, create_client

from catalog.transformers.product_grouping import (
    ListingLike,
    ProductGroup,
    find_product_group,
)
from catalog.transformers.product_rows import (
    DEFAULT_SOURCE,
    listings_to_rows,
    regroup_row,
    row_to_listing,
)

# Load .env file from project root
load_dotenv(Path(__file__).parent.parent.parent / ".env")

console = Console()


@dataclass
class SyncStats:
    """Outcome of a sync or regroup run."""

    total: int = 0
    inserted: int = 0
    updated: int = 0
    grouped: int = 0
    errors: int = 0


class SupabaseLoader:
    """
    Loads scraped listings into Supabase and reads them back.

    - Listing rows (with grouping columns) -> products table
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        table_name: str = "products",
        batch_size: int = 100,
        source: str = DEFAULT_SOURCE,
    ):
        """
        Initialize the Supabase loader.

        Args:
            supabase_url: Supabase project URL (or set SUPABASE_URL env var)
            supabase_key: Supabase anon/service key (or set SUPABASE_KEY env var)
            table_name: Table holding one row per listing
            batch_size: Rows per upsert request
            source: Value written to the rows' source column
        """
        self.supabase_url = supabase_url or os.getenv("SUPABASE_URL")
        self.supabase_key = supabase_key or os.getenv("SUPABASE_KEY")

        if not self.supabase_url or not self.supabase_key:
            raise ValueError(
                "Supabase credentials required. Set SUPABASE_URL and SUPABASE_KEY "
                "environment variables or pass them to the constructor."
            )

        self.client: Client = create_client(self.supabase_url, self.supabase_key)
        self.table_name = table_name
        self.batch_size = batch_size
        self.source = source

    def _table(self):
        return self.client.table(self.table_name)

    def sync_listings(self, listings: Iterable[ListingLike]) -> SyncStats:
        """
        Upsert listings with their grouping columns.

        The same listing often appears on several category pages; rows are
        de-duplicated by id (last occurrence wins) before upserting, since one
        upsert cannot touch the same row twice. A failed batch is counted and
        skipped.

        Returns:
            SyncStats for the run
        """
        rows = listings_to_rows(listings, source=self.source)

        stats = SyncStats(total=len(rows))
        if not rows:
            return stats

        console.print(f"[cyan]Syncing {len(rows)} listings to Supabase...[/cyan]")

        for start in range(0, len(rows), self.batch_size):
            batch = rows[start : start + self.batch_size]
            batch_number = start // self.batch_size + 1
            try:
                result = self._table().upsert(batch, on_conflict="id").execute()
                stats.inserted += len(result.data) if result.data else len(batch)
            except Exception as e:
                console.print(f"[red]  Batch {batch_number} failed: {e}[/red]")
                stats.errors += len(batch)

        stats.grouped = len({row["group_id"] for row in rows})
        console.print(
            f"[green]✓ Synced {stats.inserted} listings into {stats.grouped} groups "
            f"({stats.errors} errors)[/green]"
        )
        return stats

    def regroup_missing(self) -> SyncStats:
        """
        Fill in grouping columns on rows stored without them.

        Returns:
            SyncStats with updated/error counts
        """
        result = (
            self._table()
            .select("*")
            .or_("group_id.is.null,base_name.is.null")
            .execute()
        )
        rows = result.data or []

        stats = SyncStats(total=len(rows))
        if not rows:
            console.print("[dim]All products already have group_id assigned[/dim]")
            return stats

        for row in rows:
            try:
                self._table().update(regroup_row(row)).eq("id", row["id"]).execute()
                stats.updated += 1
            except Exception as e:
                console.print(f"[red]  Failed to update product {row.get('id')}: {e}[/red]")
                stats.errors += 1

        stats.grouped = stats.updated
        console.print(f"[green]✓ Updated {stats.updated} products with group_id[/green]")
        return stats

    def get_products(
        self,
        category: Optional[str] = None,
        limit: int = 100,
    ) -> list[dict]:
        """
        Retrieve product rows from the database.

        Args:
            category: Filter by category (optional)
            limit: Maximum number of rows to return

        Returns:
            List of product rows
        """
        query = self._table().select("*").limit(limit)

        if category:
            query = query.eq("category", category)

        result = query.execute()
        return result.data or []

    def get_product(self, product_id: str) -> Optional[dict]:
        """Get a single product row by id, or None."""
        result = self._table().select("*").eq("id", product_id).execute()
        return result.data[0] if result.data else None

    def load_product_group(self, group_id: str) -> Optional[ProductGroup]:
        """
        Load a full product family by its group key.

        Rows are fetched by their stored group_id and regrouped in memory,
        which also yields the representative and price range.
        """
        result = self._table().select("*").eq("group_id", group_id).execute()
        rows = result.data or []
        if not rows:
            return None
        return find_product_group([row_to_listing(row) for row in rows], group_id)

    def get_stats(self) -> dict:
        """
        Get database statistics.

        Returns:
            Dict with product and group counts
        """
        total_result = self._table().select("id", count="exact").execute()
        total = total_result.count or 0

        rows = self._table().select("group_id,category").execute().data or []
        by_category: dict[str, int] = {}
        for row in rows:
            category = row.get("category") or "unknown"
            by_category[category] = by_category.get(category, 0) + 1

        return {
            "total_products": total,
            "total_groups": len({row.get("group_id") for row in rows if row.get("group_id")}),
            "by_category": by_category,
        }
