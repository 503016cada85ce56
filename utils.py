import hashlib  # Import hashlib for hashing utilities
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


# -----------------------------------------------
# Utility: Generate a unique hash key for caching
# -----------------------------------------------
def hash_key(name: str, website: Optional[str]) -> str:
    # Company identity is name + website, case-insensitive
    # Use MD5 hashing to produce a fixed-length unique hex string
    identity = f"{name.strip().lower()}:{(website or '').strip().lower().rstrip('/')}"
    return hashlib.md5(identity.encode()).hexdigest()


# ----------------------------------------------------
# Pull a JSON object out of free-form model text
# ----------------------------------------------------
def _first_object_span(text: str) -> Optional[str]:
    """Return the first balanced top-level {...} span, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Extract and parse a JSON object from an LLM response.

    Tries a fenced code block first, then the first brace-matched object in
    the text. Raises ValueError when neither yields a JSON object.
    """
    if not text or not text.strip():
        raise ValueError("Empty payload")

    fenced = FENCED_JSON_RE.search(text)
    candidate = fenced.group(1) if fenced else text
    span = _first_object_span(candidate)
    if span is None:
        raise ValueError("No JSON object found in payload")

    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in payload: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("Payload is not a JSON object")
    return parsed


# ----------------------------------------------------
# In-memory cache for enrichment records
# ----------------------------------------------------
class SimpleCache:
    def __init__(self):
        self._cache = {}  # Dictionary to store cached values
        self.hits = 0     # Number of successful lookups

    def get(self, key: str):
        # Retrieve the value from cache, or None if key is not found
        value = self._cache.get(key)
        if value is not None:
            self.hits += 1
        return value

    def set(self, key: str, value: dict):
        # Store a copy stamped with the time it was cached
        self._cache[key] = {**value, "cachedAt": datetime.now(timezone.utc).isoformat()}

    def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def clear(self):
        self._cache.clear()
        self.hits = 0

    def __len__(self):
        return len(self._cache)
