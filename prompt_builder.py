from typing import Optional

from models import CompanyInput

# System instruction sent with every analysis request
SYSTEM_PROMPT = (
    "You are a VC analyst. Always respond with valid JSON only, no markdown formatting."
)

# Enumerated value sets; the normalizer validates model output against these
FUNDING_STAGES = ["Pre-Seed", "Seed", "Series A", "Series B", "Series C", "Growth", "Public", "Unknown"]
SIGNAL_STRENGTHS = ["Strong", "Moderate", "Weak", "Unknown"]
GRADES = ["A", "B", "C", "D", "F"]
RECOMMENDATIONS = ["Strong Buy", "Buy", "Hold", "Pass"]

# The seven investment signals, in display order
SIGNAL_LABELS = [
    "Hiring actively",
    "Recent product launch",
    "Enterprise customers",
    "Strong technical team",
    "Market expansion",
    "Revenue growth",
    "Partnership activity",
]

NO_CONTENT_NOTICE = "No website content available - analyze based on provided info only."


def _or(value: Optional[str], placeholder: str) -> str:
    return value if value else placeholder


def _signal_lines() -> str:
    return ",\n".join(
        f'    {{"label": "{label}", "detected": true/false, "evidence": "brief reason"}}'
        for label in SIGNAL_LABELS
    )


# -----------------------------------
# Render the analysis request
# -----------------------------------
def build_prompt(company: CompanyInput, scraped_content: Optional[str] = None) -> str:
    """
    Render the single user prompt for one company.

    Missing company fields are shown as "Unknown"/"N/A", and the output
    schema spells out every field, enumerated value set and list length the
    normalizer expects back.
    """
    content = scraped_content.strip() if scraped_content else ""

    return f"""You are a VC analyst. Analyze this company comprehensively for investment evaluation.

=== COMPANY INFO ===
Name: {company.name}
Website: {_or(company.website, "N/A")}
Industry: {_or(company.industry, "Unknown")}
Description: {_or(company.description, "N/A")}
Founded: {_or(company.founded, "Unknown")}
Employees: {_or(company.employees, "Unknown")}
Location: {_or(company.location, "Unknown")}

=== SCRAPED WEBSITE CONTENT ===
{content or NO_CONTENT_NOTICE}

=== TASK ===
Extract structured data and provide investment analysis. Return a JSON object with ALL these fields:

{{
  "summary": "2-3 sentence executive summary",
  "whatTheyDo": ["5 specific points about their products/services"],
  "businessModel": "How they make money",
  "targetCustomers": "Who their customers are",
  "keyProducts": ["Main products/services list"],
  "techStack": ["Technologies they likely use"],
  "fundingStage": "{'/'.join(FUNDING_STAGES)}",
  "competitors": ["3-5 direct competitors"],
  "marketPosition": "Their market position description",

  "signals": [
{_signal_lines()}
  ],
  "signalStrength": "{'/'.join(SIGNAL_STRENGTHS)}",
  "keyInsight": "One key insight for investors",

  "score": 0-100,
  "grade": "{'/'.join(GRADES)}",
  "recommendation": "{'/'.join(RECOMMENDATIONS)}",
  "thesis": "2-3 sentences on investment thesis",
  "strengths": ["3 key strengths"],
  "risks": ["3 key risks"],
  "nextSteps": ["2-3 due diligence steps"]
}}

Return ONLY valid JSON, no markdown formatting or extra text."""
