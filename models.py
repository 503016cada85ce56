from datetime import datetime                        # Timestamps for records and scrapes
from typing import List, Literal, Optional, Union    # Generic types for static type hints

from pydantic import BaseModel, ConfigDict, Field, field_validator  # Validation and settings management
from pydantic.alias_generators import to_camel       # Records are exchanged with camelCase keys

Source = Literal["llm-pipeline", "fallback-data"]
SignalStrength = Literal["Strong", "Moderate", "Weak", "Unknown"]
Grade = Literal["A", "B", "C", "D", "F"]


# -------------------------------
# Input: one company to enrich
# -------------------------------
class CompanyInput(BaseModel):
    name: str                          # Company identity; the only required field
    website: Optional[str] = None      # Homepage URL or bare domain (e.g. "stripe.com")
    description: Optional[str] = None
    industry: Optional[str] = None
    founded: Optional[str] = None      # Year or free text ("2015", "recent years")
    employees: Optional[str] = None    # Headcount or band ("51-200")
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("company name must not be empty")
        return value

    # Mock datasets carry founded/employees as numbers
    @field_validator("website", "description", "industry", "founded", "employees", "location", mode="before")
    @classmethod
    def coerce_to_text(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None


# -------------------------------
# Output of the website scrape
# -------------------------------
class ScrapeResult(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    success: bool
    content: str = ""                        # Aggregated excerpt, empty on failure
    sources: List[str] = []                  # URLs that contributed content, in candidate order
    error: Optional[str] = None
    scraped_at: Optional[datetime] = None


class Signal(BaseModel):
    label: str
    detected: bool = False
    evidence: str = ""


# -------------------------------
# The pipeline's sole output type
# -------------------------------
class EnrichmentRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Metadata
    enriched_at: datetime
    source: Source
    website_scraped: bool
    sources: List[str]

    # Descriptive fields
    summary: str
    what_they_do: List[str]
    business_model: str
    target_customers: str
    key_products: List[str]
    tech_stack: List[str]
    funding_stage: str
    competitors: List[str]
    market_position: str

    # Signals
    signals: List[Signal]
    signal_strength: SignalStrength
    key_insight: str

    # Scoring; absent on the llm path means "unscored"
    score: Optional[int] = Field(default=None, ge=0, le=100)
    grade: Optional[Grade] = None
    recommendation: Optional[str] = None
    thesis: Optional[str] = None
    strengths: List[str] = []
    risks: List[str] = []
    next_steps: List[str] = []

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback-data"


# -------------------------------
# HTTP request schemas
# -------------------------------
class EnrichRequest(CompanyInput):
    model_config = ConfigDict(populate_by_name=True)

    company_id: Optional[Union[int, str]] = Field(default=None, alias="companyId")  # Caller's own identifier
    refresh: bool = False                     # Ignore any cached record

    def to_company(self) -> CompanyInput:
        return CompanyInput.model_validate(self.model_dump(include=set(CompanyInput.model_fields)))


class BatchEnrichRequest(BaseModel):
    companies: List[EnrichRequest] = Field(min_length=1)
    max_parallel: Optional[int] = Field(default=None, ge=1)     # Defaults to settings.max_parallel
    timeout_seconds: Optional[float] = Field(default=None, gt=0)  # Defaults to settings.company_timeout
    refresh: bool = False
