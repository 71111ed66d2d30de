"""
Dosage text -> morning/noon/night intake schedule.

Prescriptions arrive with free-form dosage strings ("1-0-1", "১+০+১",
"twice daily", "after meals", "every 8 hours", ...). The parser is a
best-effort classifier: rules are tried in a fixed order and the first one
that matches wins.

  1. digit triple        "1-0-1", "1+1+1", "2 1 2"   positional, dose = sum
  2. named frequency     once / twice / thrice / N times
  3. time-of-day words   morning, lunch, bedtime ...
  4. interval            every N hours
  5. meals               before / after meals
  6. fallback            morning only

Unparsable, empty or oversized input never raises.
"""

import calendar
import re
import unicodedata
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta


@dataclass(frozen=True)
class ParsedDosage:
    morning: bool = False
    noon: bool = False
    night: bool = False
    total_doses: int = 0

    def to_dict(self):
        return asdict(self)


NO_DOSES = ParsedDosage()
ONCE_DAILY = ParsedDosage(morning=True, total_doses=1)
TWICE_DAILY = ParsedDosage(morning=True, night=True, total_doses=2)
THRICE_DAILY = ParsedDosage(morning=True, noon=True, night=True, total_doses=3)


_TRIPLE_PATTERN = re.compile(
    r"(?<![\d.])(\d{1,6})(?:\s*[-+]\s*|\s+)(\d{1,6})(?:\s*[-+]\s*|\s+)(\d{1,6})(?![\d.])"
)
_NAMED_PATTERN = re.compile(
    r"\b(?:(once)|(twice)|(thrice)|(\d{1,6})\s*(?:times?|x)\b)"
    r"(?:\s*(?:daily|a day|per day|each day|every day))?"
)
_MORNING_PATTERN = re.compile(r"morning|breakfast")
_NOON_PATTERN = re.compile(r"noon|afternoon|lunch")
_NIGHT_PATTERN = re.compile(r"night|evening|dinner|bedtime")
_INTERVAL_PATTERN = re.compile(r"\bevery\s*(\d{1,6})?\s*(?:hours?|hrs?|h)\b")
_MEALS_PATTERN = re.compile(r"\b(?:before|after)\s+(?:meals?|food)\b")

_DURATION_PATTERNS = (
    ("days", re.compile(r"(?<!\d)(\d{1,6})\s*days?\b")),
    ("weeks", re.compile(r"(?<!\d)(\d{1,6})\s*weeks?\b")),
    ("months", re.compile(r"(?<!\d)(\d{1,6})\s*months?\b")),
)


def normalize_digits(text: str) -> str:
    """Map any Unicode decimal digit (Bengali, Devanagari, Arabic-Indic...) to ASCII."""
    out = []
    for ch in text:
        if ch.isdecimal() and not ("0" <= ch <= "9"):
            out.append(str(unicodedata.decimal(ch)))
        else:
            out.append(ch)
    return "".join(out)


def _clean(text) -> str:
    if not text or not isinstance(text, str):
        return ""
    return normalize_digits(text).lower().strip()


def _from_count(times: int) -> ParsedDosage | None:
    if times <= 0:
        return None
    if times == 1:
        return ONCE_DAILY
    if times == 2:
        return TWICE_DAILY
    return THRICE_DAILY


def _match_triple(text: str) -> ParsedDosage | None:
    m = _TRIPLE_PATTERN.search(text)
    if not m:
        return None
    morning, noon, night = (int(g) for g in m.groups())
    return ParsedDosage(
        morning=morning > 0,
        noon=noon > 0,
        night=night > 0,
        total_doses=morning + noon + night,
    )


def _match_named_frequency(text: str) -> ParsedDosage | None:
    for m in _NAMED_PATTERN.finditer(text):
        once, twice, thrice, count = m.groups()
        if once:
            return ONCE_DAILY
        if twice:
            return TWICE_DAILY
        if thrice:
            return THRICE_DAILY
        parsed = _from_count(int(count))
        if parsed:
            return parsed
    return None


def _match_time_of_day(text: str) -> ParsedDosage | None:
    morning = bool(_MORNING_PATTERN.search(text))
    noon = bool(_NOON_PATTERN.search(text))
    night = bool(_NIGHT_PATTERN.search(text))
    if not (morning or noon or night):
        return None
    return ParsedDosage(
        morning=morning,
        noon=noon,
        night=night,
        total_doses=int(morning) + int(noon) + int(night),
    )


def _match_interval(text: str) -> ParsedDosage | None:
    m = _INTERVAL_PATTERN.search(text)
    if not m:
        return None
    hours = int(m.group(1)) if m.group(1) else 1
    if hours >= 24:
        return ONCE_DAILY
    if hours >= 12:
        return TWICE_DAILY
    # 6-11h is three doses; anything tighter is capped at three slots too.
    return THRICE_DAILY


def _match_meals(text: str) -> ParsedDosage | None:
    if _MEALS_PATTERN.search(text):
        return THRICE_DAILY
    return None


_RULES = (
    _match_triple,
    _match_named_frequency,
    _match_time_of_day,
    _match_interval,
    _match_meals,
)


def parse_dosage_schedule(dosage) -> ParsedDosage:
    text = _clean(dosage)
    if not text:
        return NO_DOSES
    for rule in _RULES:
        parsed = rule(text)
        if parsed is not None:
            return parsed
    # Unrecognized instructions still get one morning reminder.
    return ONCE_DAILY


def _add_months(start: datetime, months: int) -> datetime:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def calculate_end_date(duration, start: datetime | None = None) -> datetime | None:
    """End of a course from text like "7 days", "2 weeks", "3 months".

    Returns None (open-ended) for anything it does not recognize.
    """
    text = _clean(duration)
    if not text:
        return None
    start = start or datetime.now()
    for unit, pattern in _DURATION_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        amount = int(m.group(1))
        if amount <= 0:
            return None
        try:
            if unit == "days":
                return start + timedelta(days=amount)
            if unit == "weeks":
                return start + timedelta(weeks=amount)
            return _add_months(start, amount)
        except (OverflowError, ValueError):
            # Past datetime.max: treat as open-ended.
            return None
    return None
