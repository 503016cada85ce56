import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from models import CompanyInput, EnrichmentRecord, ScrapeResult, Signal
from prompt_builder import FUNDING_STAGES, GRADES, RECOMMENDATIONS, SIGNAL_LABELS, SIGNAL_STRENGTHS

# Fixed scoring used when no model output exists at all
FALLBACK_SCORE = 65
FALLBACK_GRADE = "B"
FALLBACK_RECOMMENDATION = "Hold - Needs Further Analysis"
FALLBACK_STRENGTHS = ["Established web presence", "Clear product focus", "Active in growing market"]
FALLBACK_RISKS = ["Limited data available", "Competitive market", "Further due diligence needed"]
FALLBACK_NEXT_STEPS = ["Schedule founder call", "Review financials", "Analyze competitive landscape"]

GRADE_PATTERN = re.compile(r"([A-Z])[+-]?", re.IGNORECASE)

# Where a reviewer should look to confirm each signal by hand
SIGNAL_VERIFICATION_HINTS = {
    "Hiring actively": "Check careers page for verification",
    "Recent product launch": "Review blog/news for updates",
    "Enterprise customers": "Check case studies section",
    "Strong technical team": "Review LinkedIn profiles",
    "Market expansion": "Check press releases",
    "Revenue growth": "Review funding announcements",
    "Partnership activity": "Check integrations page",
}


# -----------------------------------
# Deterministic fallback generators
# -----------------------------------
def fallback_summary(company: CompanyInput) -> str:
    description = company.description or "They provide innovative solutions in their market."
    return (
        f"{company.name} is a {company.industry or 'technology'} company based in "
        f"{company.location or 'the US'}. {description} Founded in {company.founded or 'recent years'}, "
        f"they have grown to {company.employees or 'a dedicated'} team."
    )


def fallback_what_they_do(company: CompanyInput) -> List[str]:
    first_sentence = company.description.split(".")[0].strip() if company.description else ""
    return [
        f"Provides {company.industry or 'technology'} solutions",
        first_sentence or "Offers innovative platform services",
        "Serves enterprise and SMB customers",
        "Focuses on user experience and scalability",
        f"Operates from {company.location or 'multiple locations'}",
    ]


def fallback_signals(company: Optional[CompanyInput] = None) -> List[Signal]:
    return [
        Signal(label=label, detected=False, evidence=SIGNAL_VERIFICATION_HINTS[label])
        for label in SIGNAL_LABELS
    ]


def fallback_thesis(company: CompanyInput) -> str:
    return (
        f"{company.name} operates in the {company.industry or 'technology'} space. "
        "Manual review recommended to validate investment potential."
    )


# One generator per descriptive/signal field
DESCRIPTIVE_FALLBACKS: Dict[str, Callable[[CompanyInput], Any]] = {
    "summary": fallback_summary,
    "what_they_do": fallback_what_they_do,
    "business_model": lambda company: "SaaS / Technology",
    "target_customers": lambda company: "Businesses and enterprises",
    "key_products": lambda company: [f"{company.name} Platform"],
    "tech_stack": lambda company: ["Cloud", "Modern Web Stack"],
    "funding_stage": lambda company: "Unknown",
    "competitors": lambda company: ["Various competitors"],
    "market_position": lambda company: "Emerging player",
    "signals": fallback_signals,
    "signal_strength": lambda company: "Unknown",
    "key_insight": lambda company: "Further analysis needed.",
}


# -----------------------------------
# Coercion of raw model values
# -----------------------------------
def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def _text(value: Any) -> Optional[str]:
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        value = str(value).strip()
        return value or None
    return None


def _text_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return None
    items = [_text(item) for item in value]
    items = [item for item in items if item]
    return items or None


def _choice(value: Any, allowed: List[str]) -> Optional[str]:
    """Match value case-insensitively against an enumerated set."""
    text = _text(value)
    if not text:
        return None
    for option in allowed:
        if text.lower() == option.lower():
            return option
    return None


def _score(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        score = round(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(0, min(100, score))


def _grade(value: Any) -> Optional[str]:
    text = _text(value)
    if not text:
        return None
    # A single letter, optionally with a modifier ("B+")
    match = GRADE_PATTERN.fullmatch(text)
    return _choice(match.group(1), GRADES) if match else None


def _recommendation(value: Any) -> Optional[str]:
    text = _text(value)
    if not text:
        return None
    # Longest match first so "Strong Buy" is not read as "Buy"
    for option in sorted(RECOMMENDATIONS, key=len, reverse=True):
        if text.lower().startswith(option.lower()):
            return option
    return None


def _detected(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _signals(value: Any) -> Optional[List[Signal]]:
    if not isinstance(value, list):
        return None
    signals = []
    for item in value:
        if not isinstance(item, dict):
            continue
        label = _text(item.get("label"))
        if not label:
            continue
        signals.append(Signal(
            label=label,
            detected=_detected(item.get("detected")),
            evidence=_text(item.get("evidence")) or "",
        ))
    return signals or None


# Model key -> (record field, coercion); a coercion returning None means "omitted"
DESCRIPTIVE_FIELDS = {
    "summary": ("summary", _text),
    "whatTheyDo": ("what_they_do", _text_list),
    "businessModel": ("business_model", _text),
    "targetCustomers": ("target_customers", _text),
    "keyProducts": ("key_products", _text_list),
    "techStack": ("tech_stack", _text_list),
    "fundingStage": ("funding_stage", lambda v: _choice(v, FUNDING_STAGES)),
    "competitors": ("competitors", _text_list),
    "marketPosition": ("market_position", _text),
    "signals": ("signals", _signals),
    "signalStrength": ("signal_strength", lambda v: _choice(v, SIGNAL_STRENGTHS)),
    "keyInsight": ("key_insight", _text),
}

SCORING_FIELDS = {
    "score": ("score", _score),
    "grade": ("grade", _grade),
    "recommendation": ("recommendation", _recommendation),
    "thesis": ("thesis", _text),
    "strengths": ("strengths", _text_list),
    "risks": ("risks", _text_list),
    "nextSteps": ("next_steps", _text_list),
}

SCORING_DEFAULTS = {"strengths": [], "risks": [], "next_steps": []}


def _coerce(llm_output: Dict[str, Any], key: str, coerce: Callable[[Any], Any]) -> Any:
    value = llm_output.get(key)
    return coerce(value) if is_present(value) else None


# -----------------------------------
# Record assembly
# -----------------------------------
def _metadata(scrape_result: ScrapeResult, source: str) -> Dict[str, Any]:
    return {
        "enriched_at": datetime.now(timezone.utc),
        "source": source,
        "website_scraped": scrape_result.success,
        "sources": list(scrape_result.sources),
    }


def build_fallback_record(company: CompanyInput, scrape_result: ScrapeResult) -> EnrichmentRecord:
    """Complete record built only from the company's own fields."""
    fields = {name: generate(company) for name, generate in DESCRIPTIVE_FALLBACKS.items()}
    return EnrichmentRecord(
        **_metadata(scrape_result, "fallback-data"),
        **fields,
        score=FALLBACK_SCORE,
        grade=FALLBACK_GRADE,
        recommendation=FALLBACK_RECOMMENDATION,
        thesis=fallback_thesis(company),
        strengths=list(FALLBACK_STRENGTHS),
        risks=list(FALLBACK_RISKS),
        next_steps=list(FALLBACK_NEXT_STEPS),
    )


def merge_llm_output(
    company: CompanyInput, scrape_result: ScrapeResult, llm_output: Dict[str, Any]
) -> EnrichmentRecord:
    """
    Prefer the model's value for every field. Descriptive and signal fields
    the model omitted fall back one by one; the scoring family stays empty.
    """
    fields: Dict[str, Any] = {}
    fallback_fields = []

    for key, (name, coerce) in DESCRIPTIVE_FIELDS.items():
        value = _coerce(llm_output, key, coerce)
        if value is None:
            value = DESCRIPTIVE_FALLBACKS[name](company)
            fallback_fields.append(key)
        fields[name] = value

    for key, (name, coerce) in SCORING_FIELDS.items():
        value = _coerce(llm_output, key, coerce)
        fields[name] = value if value is not None else SCORING_DEFAULTS.get(name)

    if fallback_fields:
        logging.info(f"[Normalize] {company.name}: fallback used for {', '.join(fallback_fields)}")

    return EnrichmentRecord(**_metadata(scrape_result, "llm-pipeline"), **fields)


def normalize(
    company: CompanyInput, scrape_result: ScrapeResult, llm_output: Optional[Dict[str, Any]]
) -> EnrichmentRecord:
    """llm_output is None when no credential is configured or the LLM client gave up."""
    if llm_output is None:
        return build_fallback_record(company, scrape_result)
    return merge_llm_output(company, scrape_result, llm_output)
