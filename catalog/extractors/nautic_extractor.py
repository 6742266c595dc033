"""
Nautichandler listing extractor.

Fetches category, search and featured pages over plain HTTP and parses the
product cards of the PrestaShop theme into listings. Theme markup varies
between pages, so every element is located through an ordered list of
fallback selectors.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, urljoin

import httpx
from bs4 import BeautifulSoup
from rich.console import Console

from config.settings import ScraperConfig, config
from catalog.transformers.product_grouping import Listing

console = Console()

BASE_URL = "https://nautichandler.com"

PRODUCT_SELECTORS = (
    ".product-miniature",
    ".product-container",
    ".product-item",
    "[data-id-product]",
    ".js-product-miniature",
)
TITLE_SELECTORS = (".product-title a", ".product-name a", "h3 a", "h2 a", ".name a")
PRICE_SELECTORS = (".price", ".product-price", '[itemprop="price"]', ".current-price")
IMAGE_SELECTORS = (
    ".thumbnail-container img",
    ".product-image img",
    ".product-thumbnail img",
    ".product-cover img",
    "a.thumbnail img",
    "img.product-thumbnail-first",
    "img",
)
# Lazy-loading themes keep the real URL in a data attribute
IMAGE_ATTRIBUTES = (
    "data-src",
    "data-full-size-image-url",
    "data-cover",
    "data-lazy-src",
    "data-original",
    "src",
)


@dataclass
class ScrapeResult:
    """Listings parsed from one page."""

    url: str
    listings: list = field(default_factory=list)
    has_more: bool = False


def _clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _select_first(element, selectors):
    for selector in selectors:
        found = element.select_one(selector)
        if found is not None:
            return found
    return None


def extract_product_id(link: str, index: int) -> str:
    """Take the shop's numeric id from "/en/1004-anchor-chain", else a positional id."""
    match = re.search(r"/(\d+)-", link)
    if match:
        return match.group(1)
    return f"product-{index}"


def normalize_image_url(image: str, base_url: str = BASE_URL) -> str:
    """Make relative and protocol-relative image URLs absolute."""
    image = image.strip()
    if not image:
        return ""

    if image.startswith("//"):
        image = "https:" + image
    elif image.startswith("/"):
        image = base_url + image
    elif not image.startswith("http"):
        image = f"{base_url}/{image}"

    # Collapse double slashes, except the one after the scheme
    return re.sub(r"([^:])//+", r"\1/", image)


def _extract_image(card, base_url: str) -> str:
    for selector in IMAGE_SELECTORS:
        img = card.select_one(selector)
        if img is None:
            continue
        for attribute in IMAGE_ATTRIBUTES:
            value = img.get(attribute)
            if value:
                return normalize_image_url(value, base_url)
    return ""


def _parse_card(card, index: int, base_url: str, category: Optional[str]) -> Optional[Listing]:
    title_el = _select_first(card, TITLE_SELECTORS)
    if title_el is None:
        return None

    title = _clean_text(title_el.get_text())
    href = title_el.get("href") or ""
    link = urljoin(base_url + "/", href) if href else ""

    price_el = _select_first(card, PRICE_SELECTORS)
    price = _clean_text(price_el.get_text()) if price_el is not None else ""

    if not (title and price and link):
        return None

    return Listing(
        id=extract_product_id(link, index),
        title=title,
        price=price,
        image=_extract_image(card, base_url) or None,
        link=link,
        category=category,
    )


def parse_listings(
    html: str, base_url: str = BASE_URL, category: Optional[str] = None
) -> list[Listing]:
    """
    Parse product cards from a listing page.

    The first card selector that yields at least one complete listing wins.
    Cards missing a title, price or link are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")

    for selector in PRODUCT_SELECTORS:
        listings = []
        for card in soup.select(selector):
            listing = _parse_card(card, len(listings), base_url, category)
            if listing is not None:
                listings.append(listing)
        if listings:
            return listings

    return []


def has_next_page(html: str, current_page: int) -> bool:
    """Check the pagination block for a page after ``current_page``."""
    soup = BeautifulSoup(html, "html.parser")

    pagination_selectors = (
        ".pagination .next:not(.disabled)",
        ".pagination-nav .next",
        'a[rel="next"]',
        f'.pagination li:-soup-contains("{current_page + 1}")',
    )
    for selector in pagination_selectors:
        if soup.select(selector):
            return True

    return len(soup.select(".pagination a, .pagination li")) > current_page


def build_url(
    query: str = "",
    category_id: str = "",
    category_url: str = "",
    page: int = 1,
    base_url: str = BASE_URL,
) -> str:
    """Build the storefront URL for a category, search or the featured page."""
    if category_url and "/en/" in category_url:
        url = category_url if category_url.startswith("http") else f"{base_url}{category_url}"
        return f"{url}?page={page}" if page > 1 else url

    if category_id and category_id != "featured":
        url = f"{base_url}/en/{category_id}"
        return f"{url}?page={page}" if page > 1 else url

    if query:
        url = f"{base_url}/en/search?controller=search&s={quote(query)}"
        return f"{url}&page={page}" if page > 1 else url

    return f"{base_url}/en/"


class NauticExtractor:
    """Fetches listing pages from nautichandler.com over HTTP."""

    def __init__(
        self,
        scraper_config: Optional[ScraperConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = scraper_config or config.scraper
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self) -> None:
        """Open the HTTP client."""
        self.client = httpx.AsyncClient(
            headers=self.config.headers,
            timeout=self.config.timeout_seconds,
            verify=self.config.verify_ssl,
            follow_redirects=True,
            transport=self.transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def fetch_page(self, url: str, page: int = 1, category: Optional[str] = None) -> ScrapeResult:
        """Fetch and parse one listing page."""
        if self.client is None:
            raise RuntimeError("NauticExtractor used outside of 'async with'")

        response = await self.client.get(url)
        response.raise_for_status()
        html = response.text

        return ScrapeResult(
            url=url,
            listings=parse_listings(html, self.config.base_url, category),
            has_more=has_next_page(html, page),
        )

    async def fetch_category(self, category_key: str, max_pages: Optional[int] = None) -> list[Listing]:
        """
        Fetch listings from the first pages of a category.

        Stops early when a page is empty, has no successor, or fails to load.

        Args:
            category_key: Key into ScraperConfig.categories
            max_pages: Page limit (default: ScraperConfig.pages_per_category)

        Returns:
            Listings in page order
        """
        pages = max_pages or self.config.pages_per_category
        category_url = self.config.category_url(category_key)
        listings: list[Listing] = []

        for page in range(1, pages + 1):
            url = build_url(category_url=category_url, page=page, base_url=self.config.base_url)
            try:
                result = await self.fetch_page(url, page=page, category=category_key)
            except httpx.HTTPError as e:
                console.print(f"[yellow]  Failed to fetch {url}: {e}[/yellow]")
                break

            console.print(
                f"[dim]  Page {page}: {len(result.listings)} listings "
                f"(more: {result.has_more})[/dim]"
            )
            listings.extend(result.listings)

            if not result.listings or not result.has_more:
                break
            await asyncio.sleep(self.config.page_delay_seconds)

        return listings


# Demo catalog served when the live site yields nothing
SAMPLE_LISTINGS = [
    Listing(
        id="1001",
        title="3M Yellow Masking Paper Tape 50mmx50m",
        price="€15.82",
        image="https://nautichandler.com/2817-home_default/3m-yellow-masking-paper-tape-50mmx50m.jpg",
        link="https://nautichandler.com/en/3m-yellow-masking-paper-tape-50mmx50m",
        description="Professional grade masking tape for marine applications",
        category="painting",
    ),
    Listing(
        id="1002",
        title="WEST SYSTEM 105/205a Pack Resin 1.2kg",
        price="€51.85",
        image="https://nautichandler.com/2819-home_default/west-system-105-205a-pack-resin-12kg.jpg",
        link="https://nautichandler.com/en/west-system-105-205a-pack-resin-12kg",
        description="High-quality epoxy resin system for boat repairs",
        category="maintenance",
    ),
    Listing(
        id="1004",
        title="Stainless Steel Anchor Chain 8mm",
        price="€45.00",
        image="https://nautichandler.com/2821-home_default/anchor-chain-8mm.jpg",
        link="https://nautichandler.com/en/anchor-chain-8mm",
        description="Heavy-duty stainless steel anchor chain per meter",
        category="anchors",
    ),
    Listing(
        id="1014",
        title="Stainless Steel Anchor Chain 10mm",
        price="€58.00",
        image="https://nautichandler.com/2831-home_default/anchor-chain-10mm.jpg",
        link="https://nautichandler.com/en/anchor-chain-10mm",
        description="Heavy-duty stainless steel anchor chain per meter",
        category="anchors",
    ),
    Listing(
        id="1005",
        title="Marine Safety Rope 12mm Orange",
        price="€32.50",
        image="https://nautichandler.com/2822-home_default/safety-rope-12mm.jpg",
        link="https://nautichandler.com/en/safety-rope-12mm-orange",
        description="High-visibility floating safety rope for rescue operations",
        category="ropes",
    ),
    Listing(
        id="1006",
        title="LED Navigation Light Set",
        price="€78.90",
        image="https://nautichandler.com/2823-home_default/led-navigation-light-set.jpg",
        link="https://nautichandler.com/en/led-navigation-light-set",
        description="Complete port and starboard navigation lights",
        category="electrics",
    ),
    Listing(
        id="1007",
        title="Boat Fender 15x60cm White",
        price="€24.99",
        image="https://nautichandler.com/2824-home_default/boat-fender-white.jpg",
        link="https://nautichandler.com/en/boat-fender-15x60-white",
        description="UV-resistant inflatable boat fender",
        category="anchors",
    ),
    Listing(
        id="1015",
        title="Boat Fender 20x80cm Blue",
        price="€34.99",
        image="https://nautichandler.com/2832-home_default/boat-fender-blue.jpg",
        link="https://nautichandler.com/en/boat-fender-20x80-blue",
        description="UV-resistant inflatable boat fender",
        category="anchors",
    ),
    Listing(
        id="1009",
        title="Automatic Bilge Pump 1100 GPH",
        price="€56.00",
        image="https://nautichandler.com/2826-home_default/bilge-pump-1100gph.jpg",
        link="https://nautichandler.com/en/bilge-pump-1100-gph",
        description="Automatic bilge pump with float switch",
        category="plumbing",
    ),
    Listing(
        id="1010",
        title="Mooring Line 14mm x 10m Pre-Spliced",
        price="€38.50",
        image="https://nautichandler.com/2827-home_default/mooring-line-14mm.jpg",
        link="https://nautichandler.com/en/mooring-line-14mm-10m",
        description="Pre-spliced mooring line with eye loop",
        category="ropes",
    ),
    Listing(
        id="1011",
        title="Antifouling Paint Blue 2.5L",
        price="€89.99",
        image="https://nautichandler.com/2828-home_default/antifouling-blue.jpg",
        link="https://nautichandler.com/en/antifouling-paint-blue-2-5l",
        description="Self-polishing antifouling hull paint",
        category="painting",
    ),
    Listing(
        id="1012",
        title="Automatic Life Jacket 150N Adult",
        price="€95.00",
        image="https://nautichandler.com/2829-home_default/life-jacket-auto-150n.jpg",
        link="https://nautichandler.com/en/life-jacket-automatic-150n",
        description="SOLAS approved automatic inflatable life jacket",
        category="safety",
    ),
]
