"""
Configuration settings for the Nautichandler catalog sync pipeline.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ScraperConfig:
    """Configuration for the listing extractor."""

    # Base URLs
    base_url: str = "https://nautichandler.com"
    language: str = "en"

    # Category pages on the storefront
    # NOTE: the numeric prefix is the shop's category id, the slug can change
    categories: dict = field(
        default_factory=lambda: {
            "electronics": "/en/190-electronics",
            "motor": "/en/100393-motor",
            "ropes": "/en/100395-ropes",
            "safety": "/en/100389-safety",
            "anchors": "/en/100810-anchors",
            "fitting": "/en/100396-fitting",
            "plumbing": "/en/100713-plumbing",
            "painting": "/en/100390-painting",
            "screws": "/en/100394-screws",
            "tools": "/en/100391-tools-machines",
            "electrics": "/en/100392-electricslighting",
            "maintenance": "/en/100669-maintenance-cleaning-products",
            "navigation": "/en/100329-navigation",
            "clothing": "/en/43-personal-equipment",
            "life-on-board": "/en/197-life-on-board",
            "inflatables": "/en/100911-inflatablewater-toys",
        }
    )

    # Listing pages to walk per category
    pages_per_category: int = 3

    # Be polite between page loads
    page_delay_seconds: float = 1.0

    # HTTP settings
    timeout_seconds: float = 25.0
    verify_ssl: bool = False  # the shop's certificate chain is incomplete
    headers: dict = field(
        default_factory=lambda: {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
    )

    def category_url(self, category_key: str) -> str:
        """Get the absolute URL for a configured category."""
        path = self.categories.get(category_key, f"/{self.language}/{category_key}")
        return f"{self.base_url}{path}"


@dataclass
class StorageConfig:
    """Configuration for catalog storage."""

    # Base data directory
    base_dir: Path = field(
        default_factory=lambda: Path(__file__).parent.parent / "data"
    )

    # Supabase table holding one row per scraped listing
    table_name: str = "products"
    batch_size: int = 100
    source: str = "nautichandler"

    json_filename: str = "products.json"

    @property
    def json_path(self) -> Path:
        """Get the path of the local JSON catalog."""
        return self.base_dir / self.json_filename

    def ensure_dirs(self) -> None:
        """Create necessary directories if they don't exist."""
        self.base_dir.mkdir(parents=True, exist_ok=True)


@dataclass
class CatalogConfig:
    """Defaults for catalog queries."""

    per_page: int = 20
    deduplicate: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    log_dir: Path = field(default_factory=lambda: Path(__file__).parent.parent / "logs")
    log_to_file: bool = True

    def ensure_dirs(self) -> None:
        """Create log directory if it doesn't exist."""
        self.log_dir.mkdir(parents=True, exist_ok=True)


@dataclass
class PipelineConfig:
    """Main configuration combining all settings."""

    scraper: ScraperConfig = field(default_factory=ScraperConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def ensure_dirs(self) -> None:
        """Ensure all necessary directories exist."""
        self.storage.ensure_dirs()
        if self.logging.log_to_file:
            self.logging.ensure_dirs()


# Default configuration instance
config = PipelineConfig()
