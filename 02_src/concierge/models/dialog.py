"""Dialog state and controller I/O models."""

from dataclasses import dataclass, field
from enum import Enum


DINING_INTENT = "DiningSuggestionsIntent"
GREETING_INTENT = "GreetingIntent"
THANK_YOU_INTENT = "ThankYouIntent"
FALLBACK_INTENT = "FallbackIntent"


class SlotName(str, Enum):
    """Fields of a dining request, as collected in conversation."""

    LOCATION = "location"
    CUISINE = "cuisine"
    PARTY_SIZE = "party_size"
    DINING_DATE = "dining_date"
    DINING_TIME = "dining_time"
    EMAIL = "email"


# Elicitation and validation order
SLOT_ORDER: tuple[SlotName, ...] = (
    SlotName.LOCATION,
    SlotName.CUISINE,
    SlotName.PARTY_SIZE,
    SlotName.DINING_DATE,
    SlotName.DINING_TIME,
    SlotName.EMAIL,
)


class DialogPhase(str, Enum):
    """Whether fields are still being collected or the request is complete."""

    MID_DIALOG = "mid-dialog"
    REQUEST_COMPLETE = "request-complete"


class DialogAction(str, Enum):
    CLOSE = "Close"
    ELICIT_SLOT = "ElicitSlot"
    DELEGATE = "Delegate"


class IntentState(str, Enum):
    IN_PROGRESS = "InProgress"
    FULFILLED = "Fulfilled"
    FAILED = "Failed"


class DialogStatus(str, Enum):
    """Controller state after a turn."""

    ELICITING = "eliciting"
    DELEGATING = "delegating"
    CLOSED = "closed"


def empty_slots() -> dict[str, str | None]:
    return {slot.value: None for slot in SLOT_ORDER}


@dataclass
class ConversationState:
    """Slot values collected so far for one dialog session.

    Passed by value between turns; the controller never keeps it.
    """

    intent_name: str | None = None
    slots: dict[str, str | None] = field(default_factory=empty_slots)
    slot_to_elicit: str | None = None
    session_attributes: dict[str, str] = field(default_factory=dict)

    def missing_slots(self) -> list[SlotName]:
        """Slots without a value, in elicitation order."""
        return [slot for slot in SLOT_ORDER if not self.slots.get(slot.value)]

    def to_dict(self) -> dict:
        return {
            "intent_name": self.intent_name,
            "slots": dict(self.slots),
            "slot_to_elicit": self.slot_to_elicit,
            "session_attributes": dict(self.session_attributes),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationState":
        slots = empty_slots()
        slots.update(data.get("slots") or {})
        return cls(
            intent_name=data.get("intent_name"),
            slots=slots,
            slot_to_elicit=data.get("slot_to_elicit"),
            session_attributes=dict(data.get("session_attributes") or {}),
        )


@dataclass
class DialogTurn:
    """One invocation of the dialog controller."""

    intent_name: str | None
    phase: DialogPhase
    slots: dict[str, str | None] = field(default_factory=dict)
    session_attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class DialogResponse:
    """What the upstream dialog manager should do next."""

    action: DialogAction
    intent_name: str | None
    slots: dict[str, str | None]
    intent_state: IntentState = IntentState.IN_PROGRESS
    message: str | None = None
    slot_to_elicit: str | None = None
    session_attributes: dict[str, str] = field(default_factory=dict)

    @property
    def status(self) -> DialogStatus:
        if self.action is DialogAction.ELICIT_SLOT:
            return DialogStatus.ELICITING
        if self.action is DialogAction.DELEGATE:
            return DialogStatus.DELEGATING
        return DialogStatus.CLOSED

    def to_state(self) -> ConversationState:
        """State to carry into the next turn."""
        return ConversationState(
            intent_name=self.intent_name,
            slots=dict(self.slots),
            slot_to_elicit=self.slot_to_elicit,
            session_attributes=dict(self.session_attributes),
        )

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "intent_name": self.intent_name,
            "intent_state": self.intent_state.value,
            "slots": dict(self.slots),
            "slot_to_elicit": self.slot_to_elicit,
            "message": self.message,
            "session_attributes": dict(self.session_attributes),
        }
