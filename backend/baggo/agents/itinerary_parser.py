# backend/baggo/agents/itinerary_parser.py
"""
Turns day-structured itinerary text written by the language model into
TripDay / TripActivity records.

Expected shape (anything that does not match is skipped, never an error):

    DAY 1: 2025-06-05 - Arrival
    MORNING:
    - Activity 1: Dog beach walk - 9:30 AM
      Location: Bau Beach
      Description: Off-leash fun.
      Pet-friendly: Yes
    AFTERNOON:
    - Lunch: Trattoria da Enzo - 1:00 PM
      ...
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple
from uuid import uuid4

from baggo.core.logger import logger
from baggo.models.itinerary_models import TripActivity, TripDay


# ---------------------------------------------------------------------------
# CONFIGURATION TABLES
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PeriodSpec:
    label: str
    default_time: str


@dataclass(frozen=True)
class EntryPass:
    """One extraction pass: a bullet label pattern and the activity type it emits."""
    label_pattern: str
    activity_type: str


@dataclass(frozen=True)
class ParserConfig:
    periods: Tuple[PeriodSpec, ...]
    # passes run in this order and their results are concatenated in this order
    passes: Tuple[EntryPass, ...]
    max_hour: int = 23


DEFAULT_PARSER_CONFIG = ParserConfig(
    periods=(
        PeriodSpec("MORNING", "09:00"),
        PeriodSpec("AFTERNOON", "13:00"),
        PeriodSpec("EVENING", "18:00"),
    ),
    passes=(
        EntryPass(r"Activity\s*\d*", "activity"),
        EntryPass(r"(?:Meal|Breakfast|Lunch|Dinner)", "restaurant"),
    ),
)


DAY_HEADING_RE = re.compile(r"\bDAY\s+(\d+)\s*:[^\n]*", re.IGNORECASE)
TIME_RE = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE)

# Bullet entry body shared by every pass. The title may not contain a dash;
# description continuation lines are kept as long as they contain no dash.
ENTRY_BODY = (
    r":\s*(?P<title>[^-\n]*?)"
    r"(?:\s*-\s*(?P<time>\d{1,2}:\d{2}\s*(?:AM|PM)?)?)?\s*\n"
    r"\s*Location:\s*(?P<location>[^\n]*)\s*\n"
    r"\s*Description:\s*(?P<description>[^\n]*(?:\n[^-\n]*)*)\s*\n"
    r"\s*Pet-friendly:\s*(?P<pet>[^\n]*)"
)


@dataclass(frozen=True)
class RawEntry:
    title: str
    time: Optional[str]
    location: str
    description: str
    pet_friendly: str
    activity_type: str


# ---------------------------------------------------------------------------
# 1. DAY SEGMENTATION
# ---------------------------------------------------------------------------
def split_days(text: str) -> List[Tuple[str, str]]:
    """Pairs each DAY heading's raw number token with its block of text."""
    headings = list(DAY_HEADING_RE.finditer(text))
    blocks = []
    for i, match in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(text)
        blocks.append((match.group(1), text[match.end():end]))
    return blocks


def day_index(token: str, day_count: int) -> Optional[int]:
    """0-based index for a heading token, or None when it is not a known day."""
    try:
        number = int(token)
    except ValueError:
        return None
    if number < 1 or number > day_count:
        return None
    return number - 1


# ---------------------------------------------------------------------------
# 2. PERIOD SEGMENTATION
# ---------------------------------------------------------------------------
def _period_pattern(label: str, config: ParserConfig) -> Pattern:
    labels = "|".join(p.label for p in config.periods)
    return re.compile(
        rf"\b{label}\s*:\s*(.*?)(?=\b(?:{labels})\s*:|\bDAY\s+\d+\s*:|\Z)",
        re.IGNORECASE | re.DOTALL,
    )


def extract_period(day_text: str, label: str, config: ParserConfig = DEFAULT_PARSER_CONFIG) -> Optional[str]:
    match = _period_pattern(label, config).search(day_text)
    if not match or not match.group(1).strip():
        return None
    return match.group(1).strip()


# ---------------------------------------------------------------------------
# 3. ENTRY EXTRACTION PASSES
# ---------------------------------------------------------------------------
def extract_entries(section_text: str, entry_pass: EntryPass) -> List[RawEntry]:
    """Entries of one pass, in order of appearance."""
    pattern = re.compile(r"[-•]\s*" + entry_pass.label_pattern + ENTRY_BODY, re.IGNORECASE)
    return [
        RawEntry(
            title=m.group("title").strip(),
            time=m.group("time"),
            location=m.group("location").strip(),
            description=m.group("description").strip(),
            pet_friendly=m.group("pet"),
            activity_type=entry_pass.activity_type,
        )
        for m in pattern.finditer(section_text)
    ]


def extract_section_entries(section_text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG) -> List[RawEntry]:
    """All passes over one period: pass A entries first, then pass B entries."""
    entries: List[RawEntry] = []
    for entry_pass in config.passes:
        entries.extend(extract_entries(section_text, entry_pass))
    return entries


# ---------------------------------------------------------------------------
# 4. TIME NORMALIZATION
# ---------------------------------------------------------------------------
def normalize_time(raw: Optional[str], default_time: str) -> str:
    """'2:30 PM' -> '14:30', '12:05 AM' -> '00:05'. Falls back to default_time."""
    if not raw:
        return default_time

    match = TIME_RE.search(raw)
    if not match:
        return default_time

    hour = int(match.group(1))
    minute = match.group(2)
    period = (match.group(3) or "").lower()

    if period == "pm" and hour < 12:
        hour += 12
    elif period == "am" and hour == 12:
        hour = 0

    return f"{hour:02d}:{minute}"


def end_time_for(start_time: str, max_hour: int = 23) -> str:
    """One hour after start, hour pinned at max_hour (23:30 stays 23:30)."""
    hour, minute = (int(part) for part in start_time.split(":"))
    return f"{min(hour + 1, max_hour):02d}:{minute:02d}"


def is_pet_friendly(raw: str) -> bool:
    return "yes" in (raw or "").lower()


def to_activity(entry: RawEntry, default_time: str, config: ParserConfig = DEFAULT_PARSER_CONFIG) -> TripActivity:
    start = normalize_time(entry.time, default_time)
    return TripActivity(
        id=str(uuid4()),
        type=entry.activity_type,
        title=entry.title,
        description=entry.description,
        location=entry.location,
        start_time=start,
        end_time=end_time_for(start, config.max_hour),
        is_pet_friendly=is_pet_friendly(entry.pet_friendly),
    )


# ---------------------------------------------------------------------------
# DAY ASSEMBLY
# ---------------------------------------------------------------------------
def extract_day_activities(day_text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG) -> List[TripActivity]:
    activities: List[TripActivity] = []
    for period in config.periods:
        section = extract_period(day_text, period.label, config)
        if section is None:
            continue
        for entry in extract_section_entries(section, config):
            activities.append(to_activity(entry, period.default_time, config))
    return activities


def parse_itinerary(
    text: str,
    existing_days: Sequence[TripDay],
    config: ParserConfig = DEFAULT_PARSER_CONFIG,
) -> List[TripDay]:
    """
    Returns a copy of `existing_days` where every day with at least one
    extracted activity has its activities replaced. Days that are missing,
    unparseable or out of range in the text keep their previous activities.
    Never raises.
    """
    days = [d.model_copy(deep=True) for d in existing_days]
    if not text:
        return days

    try:
        for token, block in split_days(text):
            index = day_index(token, len(days))
            if index is None:
                logger.debug(f"Skipping itinerary heading 'DAY {token}' ({len(days)} days known)")
                continue

            activities = extract_day_activities(block, config)
            if activities:
                days[index].activities = activities
    except Exception as e:
        logger.error(f"Itinerary parsing failed, keeping previous days: {e}")
        return [d.model_copy(deep=True) for d in existing_days]

    return days
