import logging
from typing import Iterable, Optional

from fuzzywuzzy import fuzz

logger = logging.getLogger(__name__)

# partial_ratio score needed to count a field as a match
MATCH_THRESHOLD = 80


def normalize_query(query: Optional[str]) -> str:
    return (query or '').strip().lower()


def matches_query(query: Optional[str], fields: Iterable[str], threshold: int = MATCH_THRESHOLD) -> bool:
    """Check whether any field matches the query, tolerating small typos"""
    query = normalize_query(query)
    if not query:
        return True

    for field in fields:
        if not field:
            continue
        text = field.lower()
        if query in text:
            return True
        if len(query) >= 3 and fuzz.partial_ratio(query, text) >= threshold:
            logger.debug(f"Fuzzy match for '{query}' on '{field}'")
            return True
    return False
