"""
Tests for the enrichment orchestrator.

Scraping is patched at the module boundary; the LLM endpoint is a
StubEndpoint behind the real openai SDK.
"""

import asyncio

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from config import LLMConfig, Settings
from enrichment_pipeline import EnrichmentPipeline, to_company
from exceptions import InvalidCompanyError, LLMUnavailableError
from llm_client import LLMClient
from llm_stubs import StubEndpoint, ok, status
from models import CompanyInput, ScrapeResult

SCRAPED = ScrapeResult(
    success=True,
    content="=== https://acme.example ===\nAcme builds robots.",
    sources=["https://acme.example"],
)
NOT_SCRAPED = ScrapeResult(success=False, error="No content extracted")


def scrape_returning(result):
    return patch("enrichment_pipeline.scrape_website", AsyncMock(return_value=result))


class TestToCompany:

    def test_dict_input(self):
        assert to_company({"name": "Acme", "founded": 2016}).founded == "2016"

    @pytest.mark.parametrize("bad", [{}, {"name": ""}, {"name": "   "}, {"website": "acme.example"}, "Acme", None])
    def test_invalid_input(self, bad):
        with pytest.raises(InvalidCompanyError):
            to_company(bad)

    def test_constructed_without_validation(self):
        with pytest.raises(InvalidCompanyError):
            to_company(CompanyInput.model_construct(name=""))


class TestEnrichCompany:

    @pytest.mark.asyncio
    async def test_llm_path(self, company, make_llm_client, llm_payload):
        endpoint = StubEndpoint([ok(llm_payload)])
        pipeline = EnrichmentPipeline(llm_client=make_llm_client(endpoint))

        with scrape_returning(SCRAPED) as scrape:
            record = await pipeline.enrich_company(company)

        scrape.assert_awaited_once()
        assert scrape.await_args.args[0] == "https://acme.example"
        assert record.source == "llm-pipeline"
        assert record.website_scraped is True
        assert record.sources == ["https://acme.example"]
        assert record.score == 78
        # Scraped text reaches the prompt
        assert "Acme builds robots." in endpoint.request_json(0)["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_scrape_failure_still_analyzed(self, company, make_llm_client, llm_payload):
        endpoint = StubEndpoint([ok(llm_payload)])
        pipeline = EnrichmentPipeline(llm_client=make_llm_client(endpoint))

        with scrape_returning(NOT_SCRAPED):
            record = await pipeline.enrich_company(company)

        assert record.source == "llm-pipeline"
        assert record.website_scraped is False
        assert "No website content available" in endpoint.request_json(0)["messages"][1]["content"]
        assert pipeline.get_metrics()["scrape_failures"] == 1

    @pytest.mark.asyncio
    async def test_no_credential_uses_fallback(self, company):
        pipeline = EnrichmentPipeline(Settings(llm=LLMConfig(api_key=None)))
        assert pipeline.llm_client is None

        with scrape_returning(SCRAPED):
            record = await pipeline.enrich_company(company)

        assert record.source == "fallback-data"
        assert record.website_scraped is True
        assert record.score == 65

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self, company, make_llm_client, llm_payload, sleeps):
        endpoint = StubEndpoint([status(429), status(429), ok(llm_payload)])
        pipeline = EnrichmentPipeline(llm_client=make_llm_client(endpoint))

        with scrape_returning(SCRAPED):
            record = await pipeline.enrich_company(company)

        assert record.source == "llm-pipeline"
        assert endpoint.calls == 3
        assert sleeps.delays == [10.0, 10.0]

    @pytest.mark.asyncio
    async def test_retry_exhaustion_uses_fallback(self, company, make_llm_client):
        endpoint = StubEndpoint([status(500)])
        pipeline = EnrichmentPipeline(llm_client=make_llm_client(endpoint))

        with scrape_returning(SCRAPED):
            record = await pipeline.enrich_company(company)

        assert endpoint.calls == 3
        assert record.source == "fallback-data"
        assert record.score == 65
        assert record.grade == "B"
        assert record.sources == ["https://acme.example"]

    @pytest.mark.asyncio
    async def test_non_completion_body_uses_fallback(self, company, make_llm_client):
        gateway = httpx.Response(200, text="<html>gateway</html>", headers={"content-type": "text/html"})
        pipeline = EnrichmentPipeline(llm_client=make_llm_client(StubEndpoint([gateway])))

        with scrape_returning(SCRAPED):
            record = await pipeline.enrich_company(company)

        assert record.source == "fallback-data"
        assert record.score == 65

    @pytest.mark.asyncio
    async def test_failing_llm_gives_identical_shapes(self, company):
        failing = AsyncMock(spec=LLMClient)
        failing.call.side_effect = LLMUnavailableError(RuntimeError("down"), 3)
        pipeline = EnrichmentPipeline(llm_client=failing)

        with scrape_returning(NOT_SCRAPED):
            first = (await pipeline.enrich_company(company)).model_dump()
            second = (await pipeline.enrich_company(company)).model_dump()

        first.pop("enriched_at")
        second.pop("enriched_at")
        assert first == second
        assert first["source"] == "fallback-data"

    @pytest.mark.asyncio
    async def test_no_website_skips_network(self, bare_company):
        pipeline = EnrichmentPipeline(llm_client=None)
        with patch("web_scraper.aiohttp.ClientSession") as session_cls:
            record = await pipeline.enrich_company(bare_company)

        session_cls.assert_not_called()
        assert record.website_scraped is False
        assert record.sources == []

    @pytest.mark.asyncio
    async def test_invalid_input_raises(self):
        pipeline = EnrichmentPipeline(llm_client=None)
        with pytest.raises(InvalidCompanyError):
            await pipeline.enrich_company({"website": "acme.example"})

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, company):
        broken = AsyncMock(spec=LLMClient)
        broken.call.side_effect = KeyError("bug")
        pipeline = EnrichmentPipeline(llm_client=broken)

        with scrape_returning(SCRAPED), pytest.raises(KeyError):
            await pipeline.enrich_company(company)


class TestBatchEnrich:

    @pytest.mark.asyncio
    async def test_all_companies_analyzed(self, make_llm_client, llm_payload):
        endpoint = StubEndpoint([ok(llm_payload)])
        pipeline = EnrichmentPipeline(llm_client=make_llm_client(endpoint))
        companies = [{"name": f"Company {i}"} for i in range(5)]

        with scrape_returning(NOT_SCRAPED):
            records = await pipeline.batch_enrich(companies, max_parallel=2)

        assert len(records) == 5
        assert all(r.source == "llm-pipeline" for r in records)
        assert endpoint.calls == 5
        assert pipeline.get_metrics()["llm_records"] == 5

    @pytest.mark.asyncio
    async def test_order_preserved(self):
        pipeline = EnrichmentPipeline(llm_client=None)

        # Earlier companies finish last
        async def staggered(website, **kwargs):
            await asyncio.sleep(0.01 * (5 - int(website[-1])))
            return NOT_SCRAPED

        companies = [{"name": f"Company {i}", "website": f"c{i}.example/{i}"} for i in range(5)]
        with patch("enrichment_pipeline.scrape_website", staggered):
            records = await pipeline.batch_enrich(companies, max_parallel=5)

        assert [r.summary.split(" is a ")[0] for r in records] == [f"Company {i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        pipeline = EnrichmentPipeline(llm_client=None)
        running = 0
        peak = 0

        async def slow_scrape(*args, **kwargs):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return NOT_SCRAPED

        with patch("enrichment_pipeline.scrape_website", slow_scrape):
            await pipeline.batch_enrich([{"name": f"C{i}"} for i in range(6)], max_parallel=2)

        assert peak == 2

    @pytest.mark.asyncio
    async def test_timeout_yields_fallback(self, company):
        pipeline = EnrichmentPipeline(llm_client=None)

        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        with patch("enrichment_pipeline.scrape_website", hang):
            records = await pipeline.batch_enrich([company], timeout=0.05)

        assert records[0].source == "fallback-data"
        assert records[0].website_scraped is False
        assert pipeline.get_metrics()["timeouts"] == 1

    @pytest.mark.asyncio
    async def test_invalid_company_rejected_up_front(self):
        pipeline = EnrichmentPipeline(llm_client=None)
        with scrape_returning(NOT_SCRAPED) as scrape, pytest.raises(InvalidCompanyError):
            await pipeline.batch_enrich([{"name": "Fine"}, {"name": ""}])
        scrape.assert_not_awaited()
