"""ChatSession: the upstream dialog manager for the chat API.

Keeps each user's ConversationState in Storage between turns, asks the NLU
engine what the user said, runs the DialogController and, when the controller
delegates, decides which slot to ask for next.
"""

from datetime import datetime
from typing import Callable, Protocol

from ..logging_config import get_logger
from ..models import (
    DINING_INTENT,
    FALLBACK_INTENT,
    ConversationState,
    DialogAction,
    DialogPhase,
    DialogTurn,
)
from ..models.dialog import empty_slots
from ..storage import IStorage
from ..tracker import ITracker
from ..validation import current_time
from .controller import MISSING_SLOT_PROMPTS, IDialogController
from .nlu import INluEngine, NluResult

logger = get_logger(__name__)

INTERPRETER_ERROR_MESSAGE = (
    "Sorry, I'm having trouble understanding right now. Please try again in a moment."
)


class IChatSession(Protocol):
    """Managing all chat conversations."""

    async def handle_message(self, user_id: str, text: str) -> str:
        """Process one user utterance and return the bot's reply."""
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...


def merge_turn(state: ConversationState, nlu: NluResult, text: str) -> ConversationState:
    """Fold one interpreted utterance into the stored state.

    While the dining intent is being elicited, an utterance the interpreter
    could not place is taken as the answer to the slot that was asked for,
    so the validator can accept or reject it.
    """
    continuing = state.intent_name == DINING_INTENT and nlu.intent_name in (
        DINING_INTENT,
        FALLBACK_INTENT,
    )
    if nlu.intent_name != DINING_INTENT and not continuing:
        return ConversationState(
            intent_name=nlu.intent_name,
            session_attributes=dict(state.session_attributes),
        )

    slots = dict(state.slots) if state.intent_name == DINING_INTENT else empty_slots()
    slots.update(nlu.slots)
    if continuing and state.slot_to_elicit and state.slot_to_elicit not in nlu.slots:
        slots[state.slot_to_elicit] = text.strip()

    return ConversationState(
        intent_name=DINING_INTENT,
        slots=slots,
        session_attributes=dict(state.session_attributes),
    )


class ChatSession:
    """Runs multi-turn conversations on top of the DialogController."""

    def __init__(
        self,
        nlu_engine: INluEngine,
        controller: IDialogController,
        storage: IStorage,
        tracker: ITracker,
        clock: Callable[[], datetime] = current_time,
    ):
        self._nlu = nlu_engine
        self._controller = controller
        self._storage = storage
        self._tracker = tracker
        self._clock = clock
        self._running = False

    async def start(self) -> None:
        logger.info("Starting ChatSession")
        self._running = True

    async def stop(self) -> None:
        logger.info("Stopping ChatSession")
        self._running = False

    async def handle_message(self, user_id: str, text: str) -> str:
        """Process one user utterance and return the bot's reply."""
        if not self._running:
            raise RuntimeError("ChatSession not started")

        logger.info(f"Message received from {user_id}: {text[:100]}")

        now = self._clock()
        state = await self._storage.get_conversation_state(user_id)
        if state is None:
            state = ConversationState()

        try:
            nlu = await self._nlu.interpret(text, state, now)
        except Exception as e:
            logger.error(f"NLU error for {user_id}: {e}", exc_info=True)
            return INTERPRETER_ERROR_MESSAGE

        state = merge_turn(state, nlu, text)
        response = await self._controller.handle(
            DialogTurn(
                intent_name=state.intent_name,
                phase=DialogPhase.MID_DIALOG,
                slots=state.slots,
                session_attributes=state.session_attributes,
            ),
            now,
        )

        if response.action is DialogAction.DELEGATE:
            state = response.to_state()
            missing = state.missing_slots()
            if missing:
                state.slot_to_elicit = missing[0].value
                await self._storage.save_conversation_state(user_id, state)
                reply = MISSING_SLOT_PROMPTS[missing[0]]
                await self._track(user_id, "delegate", state.slot_to_elicit)
                return reply

            response = await self._controller.handle(
                DialogTurn(
                    intent_name=state.intent_name,
                    phase=DialogPhase.REQUEST_COMPLETE,
                    slots=state.slots,
                    session_attributes=state.session_attributes,
                ),
                now,
            )

        if response.action is DialogAction.ELICIT_SLOT:
            await self._storage.save_conversation_state(user_id, response.to_state())
        else:
            await self._storage.delete_conversation_state(user_id)

        await self._track(user_id, response.action.value, response.slot_to_elicit)
        return response.message or ""

    async def _track(self, user_id: str, action: str, slot: str | None) -> None:
        await self._tracker.track(
            event_type="message_handled",
            actor="chat_session",
            data={"user_id": user_id, "action": action, "slot_to_elicit": slot},
        )
