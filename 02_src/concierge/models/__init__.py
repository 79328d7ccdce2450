"""Core data models for the Dining Concierge."""

from .dialog import (
    DINING_INTENT,
    FALLBACK_INTENT,
    GREETING_INTENT,
    SLOT_ORDER,
    THANK_YOU_INTENT,
    ConversationState,
    DialogAction,
    DialogPhase,
    DialogResponse,
    DialogStatus,
    DialogTurn,
    IntentState,
    SlotName,
)
from .dining import (
    CandidateRecord,
    DiningRequest,
    Notification,
    RestaurantDetail,
    UserPreference,
    WorkerResult,
    WorkerStatus,
    WorkItem,
)
from .tracing import TraceEvent

__all__ = [
    # Dialog
    "DINING_INTENT",
    "GREETING_INTENT",
    "THANK_YOU_INTENT",
    "FALLBACK_INTENT",
    "SLOT_ORDER",
    "SlotName",
    "DialogPhase",
    "DialogAction",
    "DialogStatus",
    "IntentState",
    "ConversationState",
    "DialogTurn",
    "DialogResponse",
    # Dining
    "DiningRequest",
    "WorkItem",
    "CandidateRecord",
    "RestaurantDetail",
    "UserPreference",
    "Notification",
    "WorkerStatus",
    "WorkerResult",
    # Tracing
    "TraceEvent",
]
