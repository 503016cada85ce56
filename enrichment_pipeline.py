import asyncio  # Provides async support for concurrent operations
import logging  # For logging pipeline stages
import time     # To measure execution time
from typing import Any, Dict, List, Optional, Union

from aiohttp import ClientSession  # Shared HTTP session for page fetches
from pydantic import ValidationError

from config import Settings
from exceptions import InvalidCompanyError, LLMUnavailableError
from llm_client import LLMClient, build_llm_client
from models import CompanyInput, EnrichmentRecord, ScrapeResult
from normalizer import normalize
from prompt_builder import build_prompt
from web_scraper import scrape_website

CompanyLike = Union[CompanyInput, Dict[str, Any]]

_UNSET = object()


def to_company(company: CompanyLike) -> CompanyInput:
    """Validate caller input; a missing or blank name is the only hard error."""
    if isinstance(company, CompanyInput):
        if not company.name or not company.name.strip():
            raise InvalidCompanyError("Company name is required for enrichment")
        return company
    if not isinstance(company, dict):
        raise InvalidCompanyError(f"Unsupported company input: {type(company).__name__}")
    try:
        return CompanyInput.model_validate(company)
    except ValidationError as e:
        raise InvalidCompanyError(f"Invalid company input: {e}") from e


# -----------------------------------
# Pipeline class: full orchestration
# -----------------------------------
class EnrichmentPipeline:
    """
    Scrape -> prompt -> LLM -> normalize for one company at a time.

    enrich_company never raises for scrape or LLM failures; it returns a
    record whose `source` says whether the model produced it.
    """

    def __init__(self, settings: Optional[Settings] = None, llm_client: Optional[LLMClient] = _UNSET):
        self.settings = settings or Settings()
        # No credential -> no client -> fallback mode
        self.llm_client = build_llm_client(self.settings.llm) if llm_client is _UNSET else llm_client
        self.total_requests = 0       # Count of enrichments started
        self.llm_records = 0          # Records built from model output
        self.fallback_records = 0     # Records built entirely from fallback data
        self.scrape_failures = 0      # Enrichments where no page yielded content
        self.timeouts = 0             # Batch enrichments cut off by the per-company timeout

    # -----------------------------------
    # LLM stage; None means "use fallback mode"
    # -----------------------------------
    async def analyze(self, company: CompanyInput, scrape_result: ScrapeResult) -> Optional[Dict[str, Any]]:
        if self.llm_client is None:
            logging.info("[Pipeline] No API key - using fallback data")
            return None

        prompt = build_prompt(company, scrape_result.content)
        try:
            return await self.llm_client.call(prompt)
        except LLMUnavailableError as e:
            logging.warning(f"[Pipeline] LLM failed for {company.name}, using fallback data: {e.last_error}")
            return None

    # -----------------------------------
    # Enrich a single company
    # -----------------------------------
    async def enrich_company(self, company: CompanyLike, session: Optional[ClientSession] = None) -> EnrichmentRecord:
        company = to_company(company)
        start = time.time()
        self.total_requests += 1
        logging.info(f"[Pipeline] Starting enrichment for: {company.name}")

        scrape_result = await scrape_website(company.website, session=session, config=self.settings.scraper)
        if not scrape_result.success:
            self.scrape_failures += 1
            logging.info(f"[Pipeline] Scrape failed for {company.name}: {scrape_result.error}")

        llm_output = await self.analyze(company, scrape_result)
        record = normalize(company, scrape_result, llm_output)

        if record.is_fallback:
            self.fallback_records += 1
        else:
            self.llm_records += 1
        logging.info(
            f"[Pipeline] Completed: {company.name} | source={record.source} "
            f"score={record.score} grade={record.grade}"
        )
        logging.debug(f"[Pipeline] {company.name} took {int((time.time() - start) * 1000)}ms")
        return record

    async def _enrich_with_timeout(self, company: CompanyInput, session, timeout: Optional[float]) -> EnrichmentRecord:
        try:
            return await asyncio.wait_for(self.enrich_company(company, session=session), timeout=timeout)
        except asyncio.TimeoutError:
            self.timeouts += 1
            self.fallback_records += 1
            logging.warning(f"[Pipeline] {company.name} timed out after {timeout}s, using fallback data")
            scrape_result = ScrapeResult(success=False, error=f"Timed out after {timeout}s")
            return normalize(company, scrape_result, None)

    # -----------------------------------
    # Batch enrichment for many companies
    # -----------------------------------
    async def batch_enrich(
        self,
        companies: List[CompanyLike],
        max_parallel: Optional[int] = None,
        timeout: Optional[float] = None,
        session: Optional[ClientSession] = None,
    ) -> List[EnrichmentRecord]:
        """Enrich companies concurrently; results come back in input order."""
        validated = [to_company(c) for c in companies]   # Reject bad input before any network call
        semaphore = asyncio.Semaphore(max_parallel or self.settings.max_parallel)  # Limit concurrency
        timeout = timeout if timeout is not None else self.settings.company_timeout

        async def run(company: CompanyInput) -> EnrichmentRecord:
            async with semaphore:
                return await self._enrich_with_timeout(company, session, timeout)

        return await asyncio.gather(*(run(c) for c in validated))  # Run all tasks concurrently

    # -----------------------------------
    # Metrics for debugging/monitoring
    # -----------------------------------
    def get_metrics(self):
        return {
            "total_requests": self.total_requests,
            "llm_records": self.llm_records,
            "fallback_records": self.fallback_records,
            "scrape_failures": self.scrape_failures,
            "timeouts": self.timeouts,
            "fallback_rate": (round(self.fallback_records / self.total_requests, 2)
                              if self.total_requests else 0),
        }
