"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single observability event (dialog turn, submission, worker run)."""

    id: str
    event_type: str  # e.g. "dialog_turn", "work_item_processed"
    actor: str  # component that recorded the event
    data: dict
    timestamp: datetime
