import asyncio                      # Concurrent page fetches
import logging                      # For logging scrape progress
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

import aiohttp                      # Enables making asynchronous HTTP requests.
from aiohttp import ClientSession, ClientTimeout

from config import ScraperConfig
from models import ScrapeResult
from text_extractor import aggregate_excerpts, page_excerpt

PageFetcher = Callable[[ClientSession, str, ScraperConfig], Awaitable[Optional[str]]]


# Turn "stripe.com/" or "https://stripe.com/" into "https://stripe.com"
def normalize_website(website: Optional[str]) -> Optional[str]:
    if not website or not website.strip():
        return None
    url = website.strip().rstrip("/")
    if "://" not in url:
        url = f"https://{url}"
    return url


def candidate_urls(website: Optional[str], config: Optional[ScraperConfig] = None) -> List[str]:
    """Homepage plus the conventional "about"-style pages, in the order they are tried."""
    config = config or ScraperConfig()
    base_url = normalize_website(website)
    if not base_url:
        return []
    return [f"{base_url}{path}" for path in config.candidate_paths]


# Async function to fetch a web page and return its HTML content
async def fetch_page(session: ClientSession, url: str, config: ScraperConfig) -> Optional[str]:
    """Fetches a page and returns its HTML text, or None on failure."""
    try:
        async with session.get(
            url,
            headers=config.headers(),
            timeout=ClientTimeout(total=config.timeout),
            allow_redirects=True,
        ) as resp:
            if 200 <= resp.status < 300:             # Any 2xx counts as a usable page
                return await resp.text(errors="replace")
            logging.debug(f"[Scrape] {url} returned HTTP {resp.status}")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logging.debug(f"[Scrape] {url} unavailable: {e!r}")
    return None


# -----------------------------------
# Scrape a company's website
# -----------------------------------
async def scrape_website(
    website: Optional[str],
    session: Optional[ClientSession] = None,
    config: Optional[ScraperConfig] = None,
    fetch: PageFetcher = fetch_page,
) -> ScrapeResult:
    """
    Fetch every candidate page once, keep the pages with usable text and
    aggregate them into one excerpt. A failing page is skipped; the scrape
    only fails when no page produced content.
    """
    config = config or ScraperConfig()
    urls = candidate_urls(website, config)

    if not urls:
        return ScrapeResult(success=False, content="", sources=[], error="No URL provided")

    logging.info(f"[Scrape] Fetching {len(urls)} candidate pages for {urls[0]}")

    # Start an HTTP session to reuse across requests unless the caller shares one
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()
    try:
        if config.concurrent:
            htmls = await asyncio.gather(*(fetch(session, url, config) for url in urls))
        else:
            htmls = [await fetch(session, url, config) for url in urls]
    finally:
        if owns_session:
            await session.close()

    pages = []
    for url, html in zip(urls, htmls):
        if not html:
            continue
        excerpt = page_excerpt(html, config)
        if excerpt is None:
            logging.debug(f"[Scrape] {url} below {config.min_chars} chars, skipped")
            continue
        logging.info(f"[Scrape] Got {len(excerpt)} chars from {url}")
        pages.append((url, excerpt))

    if not pages:
        return ScrapeResult(success=False, content="", sources=[], error="No content extracted")

    content = aggregate_excerpts(pages, config)
    logging.info(f"[Scrape] Total: {len(content)} chars from {len(pages)} pages")
    return ScrapeResult(
        success=True,
        content=content,
        sources=[url for url, _ in pages],
        scraped_at=datetime.now(timezone.utc),
    )
