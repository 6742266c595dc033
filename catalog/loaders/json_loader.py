"""
Local JSON catalog: the flat products.json the storefront can serve directly.
"""

import json
from pathlib import Path
from typing import Iterable

from rich.console import Console

from catalog.transformers.product_grouping import Listing, ListingLike
from catalog.transformers.product_rows import DEFAULT_SOURCE, listings_to_rows, row_to_listing

console = Console()


class JsonCatalogLoader:
    """Reads and writes the catalog as a JSON array of product rows."""

    def __init__(self, path: Path, source: str = DEFAULT_SOURCE):
        self.path = Path(path)
        self.source = source

    def save_listings(self, listings: Iterable[ListingLike]) -> Path:
        """Write listings as product rows, keeping the last row per id."""
        return self.save_rows(listings_to_rows(listings, source=self.source))

    def save_rows(self, rows: list[dict]) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
        console.print(f"[green]✓ Saved {len(rows)} products to {self.path}[/green]")
        return self.path

    def load_rows(self) -> list[dict]:
        """Load product rows; a missing file is an empty catalog."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def load_listings(self) -> list[Listing]:
        return [row_to_listing(row) for row in self.load_rows()]
