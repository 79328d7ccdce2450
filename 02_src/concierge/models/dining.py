"""Dining request and restaurant data models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


@dataclass
class DiningRequest:
    """A complete, normalized dining request."""

    location: str
    cuisine: str
    party_size: int
    dining_date: date
    dining_time: str  # "HH:MM", 24-hour
    email: str

    def to_payload(self) -> dict:
        """Queue message body."""
        return {
            "Location": self.location,
            "Cuisine": self.cuisine,
            "NumberOfPeople": str(self.party_size),
            "DiningDate": self.dining_date.isoformat(),
            "DiningTime": self.dining_time,
            "Email": self.email,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "DiningRequest":
        """Parse a queue message body. Raises KeyError/ValueError when malformed."""
        return cls(
            location=payload["Location"],
            cuisine=payload["Cuisine"],
            party_size=int(payload["NumberOfPeople"]),
            dining_date=date.fromisoformat(payload["DiningDate"]),
            dining_time=payload["DiningTime"],
            email=payload["Email"],
        )


@dataclass
class WorkItem:
    """A queued dining request plus the handle used to acknowledge it."""

    request: DiningRequest
    receipt_handle: str
    message_id: str
    receive_count: int = 1


@dataclass
class CandidateRecord:
    """A search index hit."""

    restaurant_id: str
    cuisine: str | None = None


@dataclass
class RestaurantDetail:
    """Restaurant record from the record store."""

    business_id: str
    name: str
    address: str
    rating: str = "N/A"
    review_count: str = "N/A"
    zip_code: str = ""

    @classmethod
    def placeholder(cls, business_id: str) -> "RestaurantDetail":
        """Stand-in for a record that could not be found."""
        return cls(
            business_id=business_id,
            name="Unknown Restaurant",
            address="Address not available",
        )


@dataclass
class UserPreference:
    """Last submitted request for an email address."""

    email: str
    location: str
    cuisine: str
    party_size: int
    dining_date: date
    dining_time: str
    last_search_at: datetime

    @classmethod
    def from_request(
        cls, request: DiningRequest, last_search_at: datetime
    ) -> "UserPreference":
        return cls(
            email=request.email,
            location=request.location,
            cuisine=request.cuisine,
            party_size=request.party_size,
            dining_date=request.dining_date,
            dining_time=request.dining_time,
            last_search_at=last_search_at,
        )


@dataclass
class Notification:
    """An outgoing email."""

    recipient: str
    subject: str
    text_body: str
    html_body: str


class WorkerStatus(str, Enum):
    """Outcome of one queue worker invocation."""

    EMPTY = "empty"
    NO_CANDIDATES = "no_candidates"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass
class WorkerResult:
    """Result of QueueWorker.run_once()."""

    status: WorkerStatus
    message_id: str | None = None
    selected_ids: list[str] = field(default_factory=list)
    notified: bool = False
    detail: str | None = None
