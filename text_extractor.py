import re                                # Whitespace normalisation
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Comment   # HTML parser to extract text from pages

from config import ScraperConfig

# Blocks whose text never describes the company: code, styling and site chrome
NOISE_TAGS = ["script", "style", "nav", "header", "footer"]

WHITESPACE_RE = re.compile(r"\s+")


# -----------------------------------
# HTML -> plain text
# -----------------------------------
def extract_text(html: str) -> str:
    """
    Strip markup and page chrome from raw HTML.

    Script, style, nav, header and footer blocks are dropped together with
    HTML comments; entities are decoded by the parser and whitespace runs
    collapse to single spaces.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(NOISE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    text = soup.get_text(separator=" ")
    return WHITESPACE_RE.sub(" ", text).strip()


def page_excerpt(html: str, config: Optional[ScraperConfig] = None) -> Optional[str]:
    """Return the capped excerpt for one page, or None when it is too short to use."""
    config = config or ScraperConfig()
    text = extract_text(html)
    if len(text) < config.min_chars:
        return None
    return text[:config.page_char_limit]


# -----------------------------------
# Combine per-page excerpts for the prompt
# -----------------------------------
def aggregate_excerpts(pages: List[Tuple[str, str]], config: Optional[ScraperConfig] = None) -> str:
    """
    Join (url, excerpt) pairs in order, each under a "=== url ===" delimiter
    so the model can attribute claims, and cap the total length.
    """
    config = config or ScraperConfig()
    blocks = [f"=== {url} ===\n{excerpt}" for url, excerpt in pages]
    return "\n\n".join(blocks)[:config.total_char_limit]
