#!/usr/bin/env python3
"""
Nautichandler Catalog Sync - Main Entry Point

Scrapes chandlery listings from nautichandler.com, groups size/color variants
into product families, and saves them to Supabase (or a local JSON catalog).

Usage:
    python main.py                        # Scrape all categories, sync to Supabase
    python main.py -c ropes anchors -p 2  # Two pages of ropes and anchors
    python main.py --sample --no-supabase # Group the demo catalog into data/products.json
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import PipelineConfig, ScraperConfig, StorageConfig
from rich.console import Console
from rich.table import Table
from catalog.loaders.json_loader import JsonCatalogLoader
from catalog.pipeline import CatalogPipeline
from catalog.transformers.catalog_query import CatalogQuery, run_query
from catalog.transformers.product_grouping import group_products

console = Console()

AVAILABLE_CATEGORIES = ScraperConfig().categories


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that preserves formatting and adds width."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=40, width=100)


def parse_args(argv: Optional[list[str]] = None):
    """Parse command line arguments."""

    category_list = "\n".join(
        f"    {name:<14} {path}" for name, path in AVAILABLE_CATEGORIES.items()
    )

    epilog = f"""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
AVAILABLE CATEGORIES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
{category_list}

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
EXAMPLES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  Scraping:
    python main.py                          All categories, 3 pages each
    python main.py -c ropes -p 1            First page of ropes only
    python main.py --sample --no-supabase   Demo catalog, local JSON only

  Local catalog:
    python main.py --show data/products.json
    python main.py --search chain --price-max 60 --sort price-asc

  Database Management:
    python main.py --regroup                Fill in missing group ids
    python main.py --stats                  Product and group counts

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
NOTES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  • Variants are grouped by base name: "Anchor Chain 8mm" and
    "Anchor Chain 10mm" share the group id "anchor-chain"
  • Requires .env file with SUPABASE_URL and SUPABASE_KEY for cloud storage
"""

    parser = argparse.ArgumentParser(
        prog="python main.py",
        description="""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
                        NAUTICHANDLER CATALOG SYNC
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
Scrapes chandlery listings and groups them into product families:
  • Size, color and material pulled from each title
  • Cheapest variant shown per family, with its price range

Data is saved to Supabase (cloud) by default, with an optional local JSON catalog.
""",
        epilog=epilog,
        formatter_class=CustomHelpFormatter,
    )

    scrape_group = parser.add_argument_group(
        "Scraping Options", "Control what and how much to scrape"
    )

    scrape_group.add_argument(
        "--categories",
        "-c",
        type=str,
        nargs="+",
        default=list(AVAILABLE_CATEGORIES.keys()),
        metavar="CAT",
        help="Categories to scrape (default: all). See list below.",
    )

    scrape_group.add_argument(
        "--pages",
        "-p",
        type=int,
        default=3,
        metavar="NUM",
        help="Listing pages per category (default: 3)",
    )

    scrape_group.add_argument(
        "--sample",
        action="store_true",
        help="Use the built-in demo catalog instead of scraping",
    )

    storage_group = parser.add_argument_group(
        "Storage Options", "Control where data is saved"
    )

    storage_group.add_argument(
        "--no-supabase",
        action="store_true",
        help="Disable cloud storage (local JSON only)",
    )

    storage_group.add_argument(
        "--local",
        action="store_true",
        help="Also write the local JSON catalog (in addition to Supabase)",
    )

    storage_group.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        metavar="DIR",
        help="Local output directory (default: ./data)",
    )

    catalog_group = parser.add_argument_group(
        "Local Catalog", "Inspect a JSON catalog without touching the network"
    )

    catalog_group.add_argument(
        "--show",
        type=str,
        metavar="FILE",
        help="Print the product groups of a JSON catalog and exit",
    )

    catalog_group.add_argument(
        "--search",
        type=str,
        metavar="QUERY",
        help="Search the local JSON catalog and exit",
    )

    catalog_group.add_argument("--category", type=str, metavar="CAT", help="Category filter for --search")
    catalog_group.add_argument("--price-min", type=float, metavar="EUR", help="Minimum price for --search")
    catalog_group.add_argument("--price-max", type=float, metavar="EUR", help="Maximum price for --search")
    catalog_group.add_argument(
        "--sort",
        choices=["price-asc", "price-desc", "name", "newest"],
        help="Sort order for --search",
    )
    catalog_group.add_argument("--page", type=int, default=1, metavar="NUM", help="Result page for --search")

    db_group = parser.add_argument_group(
        "Database Management", "Manage the Supabase products table"
    )

    db_group.add_argument(
        "--regroup",
        action="store_true",
        help="Assign group ids to stored products missing them and exit",
    )

    db_group.add_argument(
        "--stats",
        action="store_true",
        help="Show database statistics and exit",
    )

    return parser.parse_args(argv)


def create_config(args) -> PipelineConfig:
    """Create pipeline configuration from arguments."""
    all_categories = ScraperConfig().categories
    selected_categories = {
        k: v for k, v in all_categories.items() if k in args.categories
    }

    scraper_config = ScraperConfig(
        categories=selected_categories,
        pages_per_category=args.pages,
    )

    storage_config = StorageConfig()
    if args.output:
        storage_config.base_dir = Path(args.output)

    return PipelineConfig(scraper=scraper_config, storage=storage_config)


async def run_pipeline(
    config: PipelineConfig,
    use_supabase: bool = True,
    save_local: bool = False,
    use_sample: bool = False,
) -> dict:
    """Run the catalog pipeline."""
    pipeline = CatalogPipeline(
        config,
        use_supabase=use_supabase,
        save_local=save_local,
        use_sample=use_sample,
    )
    return await pipeline.run()


def show_catalog(path: Path) -> int:
    """Print the product groups of a local JSON catalog."""
    listings = JsonCatalogLoader(path).load_listings()
    if not listings:
        console.print(f"[yellow]No products found in {path}[/yellow]")
        return 1

    groups = group_products(listings)

    table = Table(title=f"{len(listings)} listings in {len(groups)} groups")
    table.add_column("Group ID", style="cyan")
    table.add_column("Base name")
    table.add_column("Variants", justify="right")
    table.add_column("From", style="green")
    table.add_column("Sizes")
    table.add_column("Colors")
    table.add_column("Materials")

    for group in groups:
        table.add_row(
            group.group_id,
            group.base_name,
            str(group.variant_count),
            group.representative.price,
            ", ".join(group.variant_options.sizes or []),
            ", ".join(group.variant_options.colors or []),
            ", ".join(group.variant_options.materials or []),
        )

    console.print(table)
    return 0


def search_catalog(config: PipelineConfig, args) -> int:
    """Run a catalog query against the local JSON catalog."""
    query = CatalogQuery(
        q=args.search or "",
        category=args.category,
        price_min=args.price_min,
        price_max=args.price_max,
        sort_by=args.sort,
        page=args.page,
        per_page=config.catalog.per_page,
        deduplicate=config.catalog.deduplicate,
    )
    result = run_query(JsonCatalogLoader(config.storage.json_path).load_listings(), query)

    table = Table(title=f"'{query.q}': {result.total} matches (page {result.page})")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Price", style="green")
    table.add_column("Variants", justify="right")

    rows = result.grouped if result.grouped is not None else result.products
    for product in rows:
        variant_count = getattr(product, "variant_count", 1)
        table.add_row(product.id, product.title, product.price, str(variant_count))

    console.print(table)
    console.print(
        f"[dim]Colors: {', '.join(result.facets.colors) or '-'} | "
        f"Sizes: {', '.join(result.facets.sizes) or '-'} | "
        f"Max price: {result.facets.max_price}[/dim]"
    )
    if result.has_more:
        console.print(f"[dim]More results: --page {result.page + 1}[/dim]")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = create_config(args)

    if args.show:
        return show_catalog(Path(args.show))

    if args.search is not None:
        return search_catalog(config, args)

    if args.regroup or args.stats:
        try:
            from catalog.loaders.supabase_loader import SupabaseLoader

            loader = SupabaseLoader(table_name=config.storage.table_name)
            if args.regroup:
                stats = loader.regroup_missing()
                console.print(
                    f"[green]Updated {stats.updated} of {stats.total} products "
                    f"({stats.errors} errors)[/green]"
                )
                return 0 if stats.errors == 0 else 1

            stats = loader.get_stats()
            console.print("\n[bold cyan]Database Statistics[/bold cyan]")
            console.print(f"Products: {stats['total_products']}")
            console.print(f"Groups: {stats['total_groups']}")
            for category, count in sorted(stats["by_category"].items()):
                console.print(f"  {category:<16} {count}")
            return 0
        except Exception as e:
            console.print(f"\n[red]Database error: {e}[/red]")
            return 1

    use_supabase = not args.no_supabase
    save_local = args.local or args.no_supabase

    console.print(f"[dim]Categories:[/dim] {', '.join(args.categories)}")
    console.print(f"[dim]Pages per category:[/dim] {args.pages}")
    console.print(f"[dim]Use Supabase:[/dim] {use_supabase}")
    console.print(f"[dim]Save locally:[/dim] {save_local}")

    try:
        result = asyncio.run(
            run_pipeline(
                config,
                use_supabase=use_supabase,
                save_local=save_local,
                use_sample=args.sample,
            )
        )

        if result["success"]:
            console.print(
                f"\n[bold green]✓ {result['listings_extracted']} listings in "
                f"{result['groups']} product groups[/bold green]"
            )
            if result.get("output_path"):
                console.print(f"[green]Output saved to: {result['output_path']}[/green]")
            return 0
        else:
            console.print(f"\n[bold red]Pipeline failed: {result.get('error')}[/bold red]")
            return 1

    except KeyboardInterrupt:
        console.print("\n[yellow]Pipeline cancelled by user[/yellow]")
        return 130
    except Exception as e:
        console.print(f"\n[bold red]Unexpected error: {e}[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
