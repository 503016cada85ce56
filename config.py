import os                              # For reading environment variables like API keys
from typing import List, Optional      # Type hints for better code clarity

from dotenv import load_dotenv         # Loads environment variables from a .env file
from pydantic import BaseModel, Field  # Typed configuration objects

# Groq exposes an OpenAI-compatible chat-completions API
DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama-3.1-8b-instant"

# Browser-like headers so company sites serve their normal HTML
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


# -------------------------------
# LLM client configuration
# -------------------------------
class LLMConfig(BaseModel):
    api_key: Optional[str] = None              # Bearer credential; None routes every request to fallback mode
    base_url: str = DEFAULT_LLM_BASE_URL       # Chat-completions endpoint root
    model: str = DEFAULT_LLM_MODEL             # Model identifier sent in the request body
    temperature: float = 0.4                   # Low temperature favours stable output
    max_tokens: int = 2048                     # Enough room for the full analysis schema
    timeout: float = 60.0                      # Per-request timeout in seconds
    max_attempts: int = Field(default=3, ge=1)  # Total attempts, rate-limited ones included
    rate_limit_delay: float = 10.0             # Fixed cooldown after an HTTP 429
    backoff_seconds: float = 2.0               # Multiplied by the hard-failure count

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


# -------------------------------
# Website scraper configuration
# -------------------------------
class ScraperConfig(BaseModel):
    candidate_paths: List[str] = ["", "/about", "/about-us", "/company"]  # Homepage first, then "about"-style pages
    timeout: float = 10.0            # Seconds allowed per page
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
    accept_language: str = "en-US,en;q=0.5"
    min_chars: int = 200             # Shorter page text is noise, not signal
    page_char_limit: int = 4000      # Cap on each page's contribution
    total_char_limit: int = 10000    # Cap on the aggregated excerpt
    concurrent: bool = True          # Fetch candidate pages in parallel

    def headers(self) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
        }


# -------------------------------
# Top-level settings
# -------------------------------
class Settings(BaseModel):
    llm: LLMConfig = LLMConfig()
    scraper: ScraperConfig = ScraperConfig()
    max_parallel: int = 5             # Companies enriched at once in a batch
    company_timeout: float = 90.0     # Overall seconds allowed per company in a batch
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and a .env file if present)."""
        load_dotenv()  # Makes variables like GROQ_API_KEY available via os.getenv

        api_key = os.getenv("GROQ_API_KEY") or os.getenv("LLM_API_KEY")
        llm = LLMConfig(
            api_key=api_key or None,
            base_url=os.getenv("LLM_BASE_URL", DEFAULT_LLM_BASE_URL),
            model=os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.4")),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", "2048")),
            timeout=float(os.getenv("LLM_TIMEOUT_SECONDS", "60")),
            max_attempts=int(os.getenv("LLM_MAX_ATTEMPTS", "3")),
            rate_limit_delay=float(os.getenv("LLM_RATE_LIMIT_DELAY", "10")),
            backoff_seconds=float(os.getenv("LLM_BACKOFF_SECONDS", "2")),
        )
        scraper = ScraperConfig(
            timeout=float(os.getenv("SCRAPER_TIMEOUT_SECONDS", "10")),
            concurrent=os.getenv("SCRAPER_CONCURRENT", "true").lower() in ("1", "true", "yes"),
        )
        return cls(
            llm=llm,
            scraper=scraper,
            max_parallel=int(os.getenv("ENRICH_MAX_PARALLEL", "5")),
            company_timeout=float(os.getenv("ENRICH_COMPANY_TIMEOUT", "90")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
