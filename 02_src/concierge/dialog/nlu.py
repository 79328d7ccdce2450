"""Text interpretation: user utterance -> intent name + slot values."""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    DINING_INTENT,
    FALLBACK_INTENT,
    GREETING_INTENT,
    SLOT_ORDER,
    THANK_YOU_INTENT,
    ConversationState,
)

logger = get_logger(__name__)

KNOWN_INTENTS = (GREETING_INTENT, THANK_YOU_INTENT, DINING_INTENT, FALLBACK_INTENT)

SYSTEM_PROMPT = """You extract structured data for a restaurant suggestion chatbot.

Intents:
- GreetingIntent: the user says hello.
- ThankYouIntent: the user says thanks or goodbye.
- DiningSuggestionsIntent: the user wants restaurant suggestions, or is answering a question about their request.
- FallbackIntent: anything else.

Slots for DiningSuggestionsIntent (omit slots the user did not mention):
- location: the city or area exactly as the user said it
- cuisine: the cuisine exactly as the user said it
- party_size: number of people, digits only
- dining_date: YYYY-MM-DD, resolving relative dates against today's date
- dining_time: HH:MM 24-hour
- email: the email address

Reply with JSON only: {"intent": "<intent>", "slots": {"<slot>": "<value>"}}"""

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class NluResult:
    intent_name: str
    slots: dict[str, str] = field(default_factory=dict)


class INluEngine(Protocol):
    """External interpreter for free text."""

    async def interpret(
        self, text: str, state: ConversationState, now: datetime
    ) -> NluResult:
        ...


class LlmNluEngine:
    """Uses the LLM provider as a black-box intent and slot extractor."""

    def __init__(self, llm_provider: ILLMProvider, max_tokens: int = 256):
        self._llm = llm_provider
        self._max_tokens = max_tokens

    async def interpret(
        self, text: str, state: ConversationState, now: datetime
    ) -> NluResult:
        context = [f"Today is {now.strftime('%A')}, {now.date().isoformat()}."]
        if state.intent_name == DINING_INTENT and state.slot_to_elicit:
            context.append(
                f"The assistant just asked the user for: {state.slot_to_elicit}."
            )
        prompt = "\n".join(context) + f"\n\nUser: {text}"

        raw = await self._llm.complete(
            messages=[{"role": "user", "content": prompt}],
            system=SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
        )
        return parse_nlu_reply(raw)


def parse_nlu_reply(raw: str) -> NluResult:
    """Parse the model's JSON reply. Anything unusable becomes FallbackIntent."""
    match = _JSON_OBJECT.search(raw or "")
    if not match:
        logger.warning("NLU reply without JSON: %s", (raw or "")[:100])
        return NluResult(intent_name=FALLBACK_INTENT)

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        data = None
    if not isinstance(data, dict):
        logger.warning("NLU reply is not a JSON object: %s", raw[:100])
        return NluResult(intent_name=FALLBACK_INTENT)

    intent = data.get("intent")
    if intent not in KNOWN_INTENTS:
        intent = FALLBACK_INTENT

    raw_slots = data.get("slots")
    if not isinstance(raw_slots, dict):
        raw_slots = {}

    known_slots = {slot.value for slot in SLOT_ORDER}
    slots = {
        name: str(value).strip()
        for name, value in raw_slots.items()
        if name in known_slots and value not in (None, "")
    }
    return NluResult(intent_name=intent, slots=slots)
