# enrichment_smoke_test.py
# Manual check against live websites (and the LLM endpoint if GROQ_API_KEY is set).

import asyncio
import logging
from aiohttp import ClientSession
from config import Settings
from enrichment_pipeline import EnrichmentPipeline
from web_scraper import scrape_website


async def main():
    logging.basicConfig(level=logging.INFO)
    settings = Settings.from_env()

    # 1) Directly test scrape_website on a known domain
    print("=== Direct scraper test ===")
    direct = await scrape_website("stripe.com", config=settings.scraper)
    print(direct.sources, len(direct.content), "\n")

    # 2) Test one company through the full pipeline
    print("=== Pipeline enrich_company test ===")
    pipeline = EnrichmentPipeline(settings)
    async with ClientSession() as session:
        record = await pipeline.enrich_company(
            {"name": "Stripe", "website": "https://stripe.com", "industry": "Fintech"},
            session=session,
        )
    print(record.model_dump_json(by_alias=True, indent=2), "\n")

    # 3) Test a batch (one company without a website)
    print("=== Pipeline batch_enrich test ===")
    batch = await pipeline.batch_enrich(
        [{"name": "OpenAI", "website": "openai.com"}, {"name": "Stealth Co"}],
        max_parallel=2,
    )
    for item in batch:
        print(item.source, item.website_scraped, item.score, item.grade)
    print(pipeline.get_metrics())

if __name__ == "__main__":
    asyncio.run(main())
