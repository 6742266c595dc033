"""
Catalog sync pipeline orchestrating extraction, grouping, and loading.
"""

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import PipelineConfig, config
from catalog.extractors.nautic_extractor import SAMPLE_LISTINGS, NauticExtractor
from catalog.loaders.json_loader import JsonCatalogLoader
from catalog.transformers.product_grouping import Listing, ProductGroup, group_products

console = Console(record=True)


def _get_supabase_loader():
    """Import SupabaseLoader lazily so local-only runs don't need credentials."""
    from catalog.loaders.supabase_loader import SupabaseLoader

    return SupabaseLoader


class CatalogPipeline:
    """
    ETL pipeline for the Nautichandler catalog.

    Orchestrates:
    - Extract: scrape listing pages (or use the sample catalog)
    - Transform: group variant listings into product families
    - Load: sync rows to Supabase and/or the local JSON catalog
    """

    def __init__(
        self,
        pipeline_config: Optional[PipelineConfig] = None,
        categories: Optional[list[str]] = None,
        use_supabase: bool = True,
        save_local: bool = False,
        use_sample: bool = False,
    ):
        self.config = pipeline_config or config
        self.categories = categories or list(self.config.scraper.categories.keys())
        self.use_supabase = use_supabase
        self.save_local = save_local
        self.use_sample = use_sample
        self.supabase_loader = None
        self.json_loader = JsonCatalogLoader(
            self.config.storage.json_path, source=self.config.storage.source
        )

        if use_supabase:
            try:
                LoaderClass = _get_supabase_loader()
                self.supabase_loader = LoaderClass(
                    table_name=self.config.storage.table_name,
                    batch_size=self.config.storage.batch_size,
                    source=self.config.storage.source,
                )
                console.print("[green]✓ Supabase loader initialized[/green]")
            except Exception as e:
                console.print(f"[red]Failed to initialize Supabase: {e}[/red]")
                console.print("[yellow]Falling back to local JSON catalog[/yellow]")
                self.use_supabase = False
                self.save_local = True

        self.listings: list[Listing] = []
        self.groups: list[ProductGroup] = []
        self.skipped_count: int = 0

    async def run(self) -> dict:
        """
        Run the complete pipeline.

        Returns:
            Summary dict with pipeline results
        """
        start_time = datetime.now()
        self._print_header()

        try:
            # EXTRACT
            console.print("\n[bold blue]═══ EXTRACT PHASE ═══[/bold blue]")
            raw_listings = await self._extract()

            if not raw_listings:
                console.print("[bold red]No listings extracted. Aborting pipeline.[/bold red]")
                return {"success": False, "error": "No listings extracted"}

            # TRANSFORM
            console.print("\n[bold blue]═══ GROUPING PHASE ═══[/bold blue]")
            self.listings, self.groups = self._transform(raw_listings)

            # LOAD
            console.print("\n[bold blue]═══ LOAD PHASE ═══[/bold blue]")
            load_result = self._load(self.listings)

            elapsed = (datetime.now() - start_time).total_seconds()
            self._print_summary(elapsed)

            return {
                "success": True,
                "listings_extracted": len(raw_listings),
                "listings_skipped": self.skipped_count,
                "groups": len(self.groups),
                "elapsed_seconds": elapsed,
                **load_result,
            }

        except Exception as e:
            console.print(f"[bold red]Pipeline failed: {e}[/bold red]")
            return {"success": False, "error": str(e)}

        finally:
            self._save_transcript()

    async def _extract(self) -> list[Listing]:
        """Extract phase: scrape configured categories, or use sample data."""
        if self.use_sample:
            console.print(f"[dim]Using {len(SAMPLE_LISTINGS)} sample listings[/dim]")
            return list(SAMPLE_LISTINGS)

        listings: list[Listing] = []
        async with NauticExtractor(self.config.scraper) as extractor:
            for category_key in self.categories:
                console.print(f"\n[bold magenta]Processing category: {category_key}[/bold magenta]")
                category_listings = await extractor.fetch_category(category_key)
                console.print(f"[green]✓ {len(category_listings)} listings[/green]")
                listings.extend(category_listings)

        if not listings:
            console.print("[yellow]Live scrape returned nothing, using sample listings[/yellow]")
            return list(SAMPLE_LISTINGS)

        return listings

    def _transform(self, raw_listings: list[Listing]) -> tuple[list[Listing], list[ProductGroup]]:
        """Transform phase: drop untitled listings and group the rest."""
        listings = [listing for listing in raw_listings if listing.title.strip()]
        self.skipped_count = len(raw_listings) - len(listings)
        if self.skipped_count:
            console.print(f"[dim]Skipped {self.skipped_count} listings without a title[/dim]")

        groups = group_products(listings)
        with_variants = sum(1 for group in groups if group.has_variants)
        console.print(
            f"[green]✓ {len(listings)} listings -> {len(groups)} product groups "
            f"({with_variants} with variants)[/green]"
        )
        return listings, groups

    def _load(self, listings: list[Listing]) -> dict:
        """Load phase: sync to Supabase and/or write the local JSON catalog."""
        result = {}

        if self.use_supabase and self.supabase_loader:
            stats = self.supabase_loader.sync_listings(listings)
            result["synced"] = stats.inserted
            result["sync_errors"] = stats.errors

        if self.save_local:
            path = self.json_loader.save_listings(listings)
            result["output_path"] = str(path)

        return result

    def _save_transcript(self) -> None:
        """Save the console transcript when file logging is enabled."""
        logging_config = self.config.logging
        if not logging_config.log_to_file:
            return
        logging_config.ensure_dirs()
        log_file = logging_config.log_dir / f"pipeline_{datetime.now():%Y%m%d_%H%M%S}.log"
        console.save_text(str(log_file))

    def _print_header(self) -> None:
        """Print pipeline header."""
        console.print(
            Panel.fit(
                "[bold cyan]Nautichandler Catalog Sync[/bold cyan]\n"
                f"Categories: {', '.join(self.categories) if not self.use_sample else 'sample'}\n"
                f"Pages per category: {self.config.scraper.pages_per_category}\n"
                f"Supabase: {self.use_supabase} | Local JSON: {self.save_local}",
                title="Pipeline",
            )
        )

    def _print_summary(self, elapsed: float) -> None:
        """Print a table of the largest product groups."""
        table = Table(title="Product Groups")
        table.add_column("Group", style="cyan")
        table.add_column("Variants", justify="right")
        table.add_column("Price", style="green")
        table.add_column("Sizes")
        table.add_column("Colors")

        largest = sorted(self.groups, key=lambda g: g.variant_count, reverse=True)[:15]
        for group in largest:
            if group.price_range:
                price = f"{group.price_range.min} - {group.price_range.max}"
            else:
                price = group.representative.price
            table.add_row(
                group.base_name or "[dim](empty)[/dim]",
                str(group.variant_count),
                price,
                ", ".join(group.variant_options.sizes or []),
                ", ".join(group.variant_options.colors or []),
            )

        console.print(table)
        console.print(f"\n[bold green]Completed in {elapsed:.1f}s[/bold green]")
