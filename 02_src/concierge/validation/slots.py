"""Per-field validation of dining request slots.

Every validator takes the raw user-supplied string and returns either
``Valid(value)`` with the normalized value or ``Invalid(message)`` with the
text used to ask for the field again. No I/O happens here; the caller passes
the current time so the date and time rules share one clock reading.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping, Union
from zoneinfo import ZoneInfo

from ..models import SLOT_ORDER, SlotName

VALID_CUISINES = ("chinese", "japanese", "italian", "mexican", "indian", "thai")

LOCATION_ALIASES = {
    "manhattan": "manhattan",
    "new york": "manhattan",
    "new york city": "manhattan",
    "nyc": "manhattan",
    "ny": "manhattan",
    "brooklyn": "brooklyn",
    "queens": "queens",
    "bronx": "bronx",
    "the bronx": "bronx",
    "staten island": "staten island",
}

MAX_PARTY_SIZE = 20
MAX_DAYS_AHEAD = 90
EARLIEST_HOUR = 6
LATEST_HOUR = 23

PARTY_SIZE_PATTERN = re.compile(r"[0-9]+")
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_PATTERN = re.compile(r"^([0-9]{2}):([0-5][0-9])$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class Valid:
    value: Any


@dataclass(frozen=True)
class Invalid:
    message: str


ValidationResult = Union[Valid, Invalid]


def current_time(tz_name: str = "America/New_York") -> datetime:
    """Wall-clock time in the service timezone."""
    return datetime.now(ZoneInfo(tz_name))


def normalize_location(raw: str | None) -> str | None:
    """Canonical borough name for a user-supplied location, or None."""
    if not raw:
        return None
    return LOCATION_ALIASES.get(raw.strip().lower())


def normalize_cuisine(raw: str) -> str:
    return raw.strip().lower()


def validate_location(raw: str) -> ValidationResult:
    normalized = normalize_location(raw)
    if normalized is None:
        return Invalid(
            "Sorry, we only serve the New York City area right now. "
            f'"{raw}" isn\'t in our coverage. '
            'Try Manhattan, Brooklyn, Queens, or just "NYC".'
        )
    return Valid(normalized)


def validate_cuisine(raw: str) -> ValidationResult:
    cuisine = normalize_cuisine(raw)
    if cuisine not in VALID_CUISINES:
        options = ", ".join(c.capitalize() for c in VALID_CUISINES)
        return Invalid(
            f'Hmm, I don\'t have "{raw}" in my list yet. '
            f"I can help with: {options}. Which one sounds good?"
        )
    return Valid(cuisine)


def validate_party_size(raw: str) -> ValidationResult:
    text = raw.strip()
    # Plain ASCII digits only; int() also takes "+5", "1_0" and other scripts
    size = int(text) if PARTY_SIZE_PATTERN.fullmatch(text) else None

    if size is None or size < 1:
        return Invalid(
            "That doesn't look right. How many people will be dining? "
            "Please enter a number (e.g., 2)."
        )
    if size > MAX_PARTY_SIZE:
        return Invalid(
            f"That's a large party! For groups over {MAX_PARTY_SIZE}, please "
            f"contact the restaurant directly. How many people (1-{MAX_PARTY_SIZE})?"
        )
    return Valid(size)


def _parse_date(raw: str) -> date | None:
    text = raw.strip()
    if not DATE_PATTERN.fullmatch(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def validate_dining_date(raw: str, now: datetime) -> ValidationResult:
    requested = _parse_date(raw)
    if requested is None:
        return Invalid(
            "I couldn't understand that date. Could you try again? "
            'You can say "today", "tomorrow", or a date like "March 5th".'
        )

    today = now.date()
    if requested < today:
        return Invalid(
            f"That date ({raw}) is in the past! Please pick today or a future date."
        )
    if requested > today + timedelta(days=MAX_DAYS_AHEAD):
        return Invalid(
            "That's quite far out! I can only take reservations up to "
            f"{MAX_DAYS_AHEAD} days ahead. Could you pick a closer date?"
        )
    return Valid(requested)


def validate_dining_time(
    raw: str, now: datetime, dining_date: str | None = None
) -> ValidationResult:
    match = TIME_PATTERN.match(raw.strip())
    if not match:
        return Invalid(
            'I couldn\'t parse that time. Try something like "7 pm" or "19:30".'
        )

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours < EARLIEST_HOUR or hours > LATEST_HOUR:
        return Invalid(
            "Most restaurants are open between 6 AM and 11 PM. "
            "Could you pick a time in that range?"
        )

    if dining_date and _parse_date(dining_date) == now.date():
        if (hours, minutes) <= (now.hour, now.minute):
            return Invalid(
                f"It's already past {raw.strip()} today! Please pick a later "
                "time, or choose a future date."
            )
    return Valid(f"{hours:02d}:{minutes:02d}")


def validate_email(raw: str) -> ValidationResult:
    email = raw.strip()
    if not EMAIL_PATTERN.match(email):
        return Invalid(
            "That doesn't look like a valid email. "
            "Please enter an email like yourname@example.com."
        )
    return Valid(email)


_VALIDATORS: dict[SlotName, Callable[[str, Mapping[str, str | None], datetime], ValidationResult]] = {
    SlotName.LOCATION: lambda raw, slots, now: validate_location(raw),
    SlotName.CUISINE: lambda raw, slots, now: validate_cuisine(raw),
    SlotName.PARTY_SIZE: lambda raw, slots, now: validate_party_size(raw),
    SlotName.DINING_DATE: lambda raw, slots, now: validate_dining_date(raw, now),
    SlotName.DINING_TIME: lambda raw, slots, now: validate_dining_time(
        raw, now, slots.get(SlotName.DINING_DATE.value)
    ),
    SlotName.EMAIL: lambda raw, slots, now: validate_email(raw),
}


def validate_slot(
    name: SlotName | str,
    raw: str,
    slots: Mapping[str, str | None],
    now: datetime,
) -> ValidationResult:
    """Validate one slot; ``slots`` supplies sibling values (dining time needs the date)."""
    return _VALIDATORS[SlotName(name)](raw, slots, now)


def first_invalid_slot(
    slots: Mapping[str, str | None], now: datetime
) -> tuple[SlotName, Invalid] | None:
    """First present slot, in elicitation order, that fails validation."""
    for slot in SLOT_ORDER:
        raw = slots.get(slot.value)
        if not raw:
            continue
        result = validate_slot(slot, raw, slots, now)
        if isinstance(result, Invalid):
            return slot, result
    return None


def validate_all(
    slots: Mapping[str, str | None], now: datetime
) -> dict[SlotName, ValidationResult]:
    """Validate every present slot."""
    return {
        slot: validate_slot(slot, slots[slot.value], slots, now)
        for slot in SLOT_ORDER
        if slots.get(slot.value)
    }
