import logging                                # For logging events and errors
import json                                   # For JSON serialization
import uuid                                   # To generate unique comparison IDs
import time                                   # To measure execution time
from typing import Dict, Tuple

from aiohttp import ClientSession             # Async HTTP client shared by the page fetches
from fastapi import FastAPI, HTTPException    # FastAPI classes for API and error responses
from fastapi.responses import StreamingResponse  # Used for Server-Sent Events (SSE) streaming

from config import Settings
from enrichment_pipeline import EnrichmentPipeline
from exceptions import InvalidCompanyError
from models import BatchEnrichRequest, EnrichRequest
from utils import SimpleCache, hash_key

settings = Settings.from_env()

# Set up basic logging level
logging.basicConfig(level=settings.log_level)

# Initialize FastAPI app
app = FastAPI(title="Company Enrichment API")

# Pipeline and the record cache it never sees
pipeline = EnrichmentPipeline(settings)
cache = SimpleCache()


def _company_summary(request: EnrichRequest) -> Dict:
    return {"id": request.company_id, "name": request.name, "website": request.website}


async def _enrich_cached(request: EnrichRequest, refresh: bool, session: ClientSession) -> Tuple[Dict, bool]:
    """Return (record dict, served_from_cache)."""
    key = hash_key(request.name, request.website)
    if not (refresh or request.refresh):
        cached = cache.get(key)
        if cached:
            logging.info(f"[API] Cache hit for {request.name}")
            return cached, True

    record = await pipeline.enrich_company(request.to_company(), session=session)
    data = record.model_dump(by_alias=True, mode="json")
    cache.set(key, data)
    return data, False


# ---------------------------
# /enrich endpoint
# ---------------------------
@app.post("/enrich")
async def enrich(request: EnrichRequest):
    logging.info(f"[API] Enriching company: {request.name}")
    async with ClientSession() as session:
        try:
            data, cached = await _enrich_cached(request, request.refresh, session)
        except InvalidCompanyError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "data": data,
        "company": _company_summary(request),
        "cached": cached,
    }


# ---------------------------
# /enrich/batch endpoint (compare)
# ---------------------------
@app.post("/enrich/batch")
async def enrich_batch(request: BatchEnrichRequest):
    start = time.time()                                 # Record start time
    comparison_id = str(uuid.uuid4())                   # Generate a unique comparison ID
    logging.info(f"[START] Comparison ID: {comparison_id}, companies: {len(request.companies)}")

    results = [None] * len(request.companies)
    pending = []
    for i, company in enumerate(request.companies):
        cached = None if (request.refresh or company.refresh) else cache.get(hash_key(company.name, company.website))
        if cached:
            results[i] = {"company": _company_summary(company), "enrichment": cached, "cached": True}
        else:
            pending.append(i)

    if pending:
        async with ClientSession() as session:
            records = await pipeline.batch_enrich(
                [request.companies[i].to_company() for i in pending],
                max_parallel=request.max_parallel,
                timeout=request.timeout_seconds,
                session=session,
            )
        for i, record in zip(pending, records):
            company = request.companies[i]
            data = record.model_dump(by_alias=True, mode="json")
            cache.set(hash_key(company.name, company.website), data)
            results[i] = {"company": _company_summary(company), "enrichment": data, "cached": False}

    # Final structured response
    return {
        "comparison_id": comparison_id,
        "total_companies": len(request.companies),
        "processing_time_ms": int((time.time() - start) * 1000),
        "results": results,
    }


# ---------------------------
# /enrich/stream endpoint (SSE)
# ---------------------------
@app.post("/enrich/stream")
async def enrich_stream(request: BatchEnrichRequest):
    comparison_id = str(uuid.uuid4())                   # Unique ID for the streaming session

    # Async generator for streaming results as SSE events
    async def event_stream():
        # Send initial message to client
        yield f"event: start\ndata: Comparison ID {comparison_id} initiated\n\n"

        # Open HTTP session for the scrapes
        async with ClientSession() as session:
            for company in request.companies:
                data, cached = await _enrich_cached(company, request.refresh, session)
                payload = {"company": _company_summary(company), "enrichment": data, "cached": cached}
                # Stream result as JSON
                yield f"data: {json.dumps(payload)}\n\n"

        # Final SSE close event
        yield "event: end\ndata: Enrichment Complete\n\n"

    # Return response as SSE stream
    return StreamingResponse(event_stream(), media_type="text/event-stream")


# ---------------------------
# Metrics and cache management
# ---------------------------
@app.get("/metrics")
async def metrics():
    return {**pipeline.get_metrics(), "cached_records": len(cache), "cache_hits": cache.hits}


@app.delete("/enrich/cache")
async def clear_cache():
    cleared = len(cache)
    cache.clear()
    return {"cleared": cleared}
