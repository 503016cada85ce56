"""
Pytest configuration and shared fixtures.

Provides sample companies, a complete model answer and an LLMClient wired
to a stubbed chat-completions endpoint (httpx.MockTransport).
"""

from typing import Any, Dict

import httpx
import pytest
from openai import AsyncOpenAI

from config import LLMConfig
from llm_client import LLMClient
from llm_stubs import SleepRecorder, StubEndpoint
from models import CompanyInput


# ============================================================================
# Company fixtures
# ============================================================================

@pytest.fixture
def company() -> CompanyInput:
    return CompanyInput(
        name="Acme Robotics",
        website="https://acme.example",
        description="Acme builds warehouse robots. It sells to logistics firms.",
        industry="Robotics",
        founded="2016",
        employees="120",
        location="Austin, TX",
    )


@pytest.fixture
def bare_company() -> CompanyInput:
    """Only a name; every other field missing."""
    return CompanyInput(name="Stealth Co")


@pytest.fixture
def long_text() -> str:
    return "Acme builds autonomous warehouse robots for logistics operators. " * 6


# ============================================================================
# LLM fixtures
# ============================================================================

@pytest.fixture
def llm_payload() -> Dict[str, Any]:
    """A complete, schema-conforming model answer."""
    return {
        "summary": "Acme Robotics makes autonomous warehouse robots.",
        "whatTheyDo": ["Builds robots", "Sells fleet software", "Offers leasing", "Runs support", "Integrates WMS"],
        "businessModel": "Robot-as-a-Service subscriptions",
        "targetCustomers": "Third-party logistics providers",
        "keyProducts": ["AcmeBot", "Fleet Console"],
        "techStack": ["ROS", "Python", "AWS"],
        "fundingStage": "Series B",
        "competitors": ["Locus Robotics", "6 River Systems", "Geek+"],
        "marketPosition": "Challenger in mid-market warehouses",
        "signals": [
            {"label": "Hiring actively", "detected": True, "evidence": "12 open roles"},
            {"label": "Recent product launch", "detected": False, "evidence": "None found"},
        ],
        "signalStrength": "Moderate",
        "keyInsight": "Leasing model lowers adoption barrier.",
        "score": 78,
        "grade": "B",
        "recommendation": "Buy",
        "thesis": "Strong unit economics in a growing niche.",
        "strengths": ["Recurring revenue", "Experienced team", "Sticky software"],
        "risks": ["Hardware margins", "Well-funded rivals", "Customer concentration"],
        "nextSteps": ["Customer references", "Review cohort data"],
    }


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(api_key="test-key", base_url="https://llm.test/v1")


@pytest.fixture
def make_llm_client(llm_config, sleeps):
    """Build an LLMClient whose HTTP traffic goes to a StubEndpoint."""

    def _make(endpoint: StubEndpoint) -> LLMClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
        sdk = AsyncOpenAI(
            api_key=llm_config.api_key,
            base_url=llm_config.base_url,
            max_retries=0,
            http_client=http_client,
        )
        return LLMClient(llm_config, client=sdk, sleep=sleeps)

    return _make
