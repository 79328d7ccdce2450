"""DialogController implementation.

One call per conversational turn. The controller holds no state between
calls: the upstream dialog manager passes the collected slots in and gets the
updated slots back in the response.
"""

from datetime import datetime
from typing import Callable, Protocol

from ..errors import ConfigurationError
from ..logging_config import get_logger
from ..models import (
    DINING_INTENT,
    GREETING_INTENT,
    SLOT_ORDER,
    THANK_YOU_INTENT,
    DialogAction,
    DialogPhase,
    DialogResponse,
    DialogTurn,
    DiningRequest,
    IntentState,
    SlotName,
)
from ..submission import IRequestSubmitter
from ..tracker import ITracker
from ..validation import Valid, current_time, first_invalid_slot, validate_all

logger = get_logger(__name__)

GREETING_MESSAGE = (
    "Hi there! I can help you find restaurant suggestions. "
    'Just say something like "I\'m looking for Italian food" to get started.'
)
THANK_YOU_MESSAGE = (
    "You're welcome! If you want to search again, just say "
    '"find me a restaurant" anytime. Enjoy your meal!'
)
HELP_MESSAGE = (
    "I'm not sure I understood that. I can help you find restaurant suggestions - "
    'just say something like "I want to eat" or "find me a restaurant". '
    "If you already made a request, I can't modify it, but you can start a new one!"
)
NOT_CONFIGURED_MESSAGE = (
    "I'm sorry, the restaurant suggestion service isn't configured yet. "
    "Please try again later."
)
SUBMISSION_FAILED_MESSAGE = (
    "I'm sorry, something went wrong while processing your request. "
    "Please try again in a moment."
)
INTERNAL_ERROR_MESSAGE = (
    "Oops, something went wrong on my end. Please try again in a moment."
)

MISSING_SLOT_PROMPTS = {
    SlotName.LOCATION: "What city or city area are you looking to dine in?",
    SlotName.CUISINE: "What cuisine would you like to try?",
    SlotName.PARTY_SIZE: "How many people are in your party?",
    SlotName.DINING_DATE: "What date would you like to dine?",
    SlotName.DINING_TIME: "What time would you like to dine?",
    SlotName.EMAIL: "What email address should I send the suggestions to?",
}


class IDialogController(Protocol):
    """Validates slots turn by turn and fulfills completed requests."""

    async def handle(
        self, turn: DialogTurn, now: datetime | None = None
    ) -> DialogResponse:
        """Decide the next dialog action. Never raises."""
        ...


def close(
    turn: DialogTurn, message: str, state: IntentState = IntentState.FULFILLED
) -> DialogResponse:
    return DialogResponse(
        action=DialogAction.CLOSE,
        intent_name=turn.intent_name,
        slots=dict(turn.slots),
        intent_state=state,
        message=message,
        session_attributes=dict(turn.session_attributes),
    )


def elicit_slot(turn: DialogTurn, slot: SlotName, message: str) -> DialogResponse:
    """Ask for ``slot`` again; its current value is cleared."""
    slots = dict(turn.slots)
    slots[slot.value] = None
    return DialogResponse(
        action=DialogAction.ELICIT_SLOT,
        intent_name=turn.intent_name,
        slots=slots,
        intent_state=IntentState.IN_PROGRESS,
        message=message,
        slot_to_elicit=slot.value,
        session_attributes=dict(turn.session_attributes),
    )


def delegate(turn: DialogTurn) -> DialogResponse:
    return DialogResponse(
        action=DialogAction.DELEGATE,
        intent_name=turn.intent_name,
        slots=dict(turn.slots),
        intent_state=IntentState.IN_PROGRESS,
        session_attributes=dict(turn.session_attributes),
    )


class DialogController:
    """Dialog code hook for the dining suggestions conversation."""

    def __init__(
        self,
        submitter: IRequestSubmitter,
        tracker: ITracker | None = None,
        clock: Callable[[], datetime] = current_time,
    ):
        self._submitter = submitter
        self._tracker = tracker
        self._clock = clock

    async def handle(
        self, turn: DialogTurn, now: datetime | None = None
    ) -> DialogResponse:
        """Decide the next dialog action.

        Internal failures are logged and turned into a closing apology, so the
        caller always gets a response.
        """
        logger.info(
            "Dialog turn: intent=%s phase=%s",
            turn.intent_name,
            turn.phase.value,
        )
        try:
            response = await self._dispatch(turn, now or self._clock())
        except Exception as e:
            logger.error("Unhandled error in dialog turn: %s", e, exc_info=True)
            response = close(turn, INTERNAL_ERROR_MESSAGE, IntentState.FAILED)

        if self._tracker:
            await self._tracker.track(
                event_type="dialog_turn",
                actor="dialog_controller",
                data={
                    "intent_name": turn.intent_name,
                    "phase": turn.phase.value,
                    "action": response.action.value,
                    "slot_to_elicit": response.slot_to_elicit,
                    "intent_state": response.intent_state.value,
                },
            )
        return response

    async def _dispatch(self, turn: DialogTurn, now: datetime) -> DialogResponse:
        if turn.intent_name == GREETING_INTENT:
            return close(turn, GREETING_MESSAGE)

        if turn.intent_name == THANK_YOU_INTENT:
            return close(turn, THANK_YOU_MESSAGE)

        if turn.intent_name == DINING_INTENT:
            if turn.phase is DialogPhase.MID_DIALOG:
                return self._validate(turn, now)
            if turn.phase is DialogPhase.REQUEST_COMPLETE:
                return await self._fulfill(turn, now)

        return close(turn, HELP_MESSAGE)

    def _validate(self, turn: DialogTurn, now: datetime) -> DialogResponse:
        failure = first_invalid_slot(turn.slots, now)
        if failure:
            slot, invalid = failure
            logger.info("Slot %s rejected, re-eliciting", slot.value)
            return elicit_slot(turn, slot, invalid.message)
        return delegate(turn)

    async def _fulfill(self, turn: DialogTurn, now: datetime) -> DialogResponse:
        # Slots may have gone stale since the last mid-dialog turn
        # (e.g. the chosen time has passed), so check once more.
        failure = first_invalid_slot(turn.slots, now)
        if failure:
            slot, invalid = failure
            return elicit_slot(turn, slot, invalid.message)

        results = validate_all(turn.slots, now)
        for slot in SLOT_ORDER:
            if slot not in results:
                return elicit_slot(turn, slot, MISSING_SLOT_PROMPTS[slot])

        values = {
            slot: result.value
            for slot, result in results.items()
            if isinstance(result, Valid)
        }
        request = DiningRequest(
            location=values[SlotName.LOCATION],
            cuisine=values[SlotName.CUISINE],
            party_size=values[SlotName.PARTY_SIZE],
            dining_date=values[SlotName.DINING_DATE],
            dining_time=values[SlotName.DINING_TIME],
            email=values[SlotName.EMAIL],
        )

        try:
            await self._submitter.submit(request)
        except ConfigurationError as e:
            logger.error("Submission not configured: %s", e)
            return close(turn, NOT_CONFIGURED_MESSAGE, IntentState.FAILED)
        except Exception as e:
            logger.error("Fulfillment error: %s", e, exc_info=True)
            return close(turn, SUBMISSION_FAILED_MESSAGE, IntentState.FAILED)

        return close(turn, confirmation_message(request))


def confirmation_message(request: DiningRequest) -> str:
    return (
        f"You're all set! Expect my {request.cuisine.capitalize()} restaurant "
        f"suggestions for {request.party_size} people on "
        f"{request.dining_date.isoformat()} around {request.dining_time} in your "
        f"inbox at {request.email} shortly. Have a great day!"
    )
