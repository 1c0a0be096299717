# backend/baggo/agents/suggestion_parser.py
"""
Pulls typed suggestions out of a trip-assistant reply:

    SUGGESTION: hotel
    Name: Pet Paradise Hotel
    Location: Downtown
    Description: Luxury hotel with pet amenities
    Pet-friendly: Yes

Location is optional. Blocks with an unknown type or a missing line are skipped.
"""

import re
from typing import List, get_args

from baggo.core.logger import logger
from baggo.models.itinerary_models import SuggestedActivity, SuggestionType


SUGGESTION_TYPES = get_args(SuggestionType)

SUGGESTION_RE = re.compile(
    r"SUGGESTION:\s*(?P<type>\w+)\s*\n\s*"
    r"Name:\s*(?P<title>[^\n]+?)\s*\n\s*"
    r"(?:Location:\s*(?P<location>[^\n]+?)\s*\n\s*)?"
    r"Description:\s*(?P<description>[^\n]+?)\s*\n\s*"
    r"Pet-friendly:\s*(?P<pet>\w+)",
    re.IGNORECASE,
)


def parse_suggestions(text: str) -> List[SuggestedActivity]:
    suggestions: List[SuggestedActivity] = []
    for match in SUGGESTION_RE.finditer(text or ""):
        kind = match.group("type").lower()
        if kind not in SUGGESTION_TYPES:
            logger.debug(f"Skipping suggestion of unknown type '{kind}'")
            continue

        suggestions.append(SuggestedActivity(
            type=kind,
            title=match.group("title"),
            description=match.group("description"),
            location=match.group("location"),
            # only the first word counts: "Yes, leashed" is pet friendly, "Partial" is not
            is_pet_friendly=match.group("pet").lower() == "yes",
        ))
    return suggestions
