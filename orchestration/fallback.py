"""
Fallback Envelope

Well-formed, empty result returned when the model never produced valid JSON.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote_plus

FALLBACK_MODE = "search_urls"


def search_urls(query: str):
    encoded = quote_plus(query)
    return [
        f"https://www.google.com/search?q={encoded}",
        f"https://www.bing.com/search?q={encoded}",
    ]


def build_fallback_envelope(query: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the degraded-mode envelope for a query.

    Args:
        query: The original search term, echoed back
        now: Generation time (defaults to current UTC time)
    """
    generated_at = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "query": query,
        "generated_at": generated_at,
        "mode": FALLBACK_MODE,
        "qualified": [],
        "borderline": [],
        "not_qualified": [],
        "notes": search_urls(query),
    }
