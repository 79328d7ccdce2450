"""Tests for the LLM-backed interpreter."""

import pytest

from conftest import FIXED_NOW
from concierge.dialog import LlmNluEngine
from concierge.dialog.nlu import SYSTEM_PROMPT, parse_nlu_reply
from concierge.models import (
    DINING_INTENT,
    FALLBACK_INTENT,
    GREETING_INTENT,
    ConversationState,
)


class TestParseNluReply:
    """Tests for parse_nlu_reply()."""

    def test_intent_and_slots(self):
        result = parse_nlu_reply(
            '{"intent": "DiningSuggestionsIntent", "slots": {"cuisine": "Thai", "party_size": 4}}'
        )

        assert result.intent_name == DINING_INTENT
        assert result.slots == {"cuisine": "Thai", "party_size": "4"}

    def test_json_wrapped_in_prose(self):
        result = parse_nlu_reply('Sure! {"intent": "GreetingIntent", "slots": {}} Done.')

        assert result.intent_name == GREETING_INTENT

    def test_unknown_slots_and_empty_values_dropped(self):
        result = parse_nlu_reply(
            '{"intent": "DiningSuggestionsIntent",'
            ' "slots": {"budget": "$$", "email": "", "location": null, "cuisine": " thai "}}'
        )

        assert result.slots == {"cuisine": "thai"}

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "I don't know",
            "{not json}",
            '{"intent": "OrderPizza"}',
        ],
    )
    def test_unusable_reply_is_fallback(self, raw):
        assert parse_nlu_reply(raw).intent_name == FALLBACK_INTENT

    def test_non_object_slots_ignored(self):
        result = parse_nlu_reply('{"intent": "DiningSuggestionsIntent", "slots": ["thai"]}')

        assert result.intent_name == DINING_INTENT
        assert result.slots == {}


class TestLlmNluEngine:
    """Tests for LlmNluEngine.interpret()."""

    @pytest.mark.asyncio
    async def test_prompt_includes_date_and_pending_slot(self, mock_llm):
        """Test that the prompt carries today's date and the slot being asked for."""
        mock_llm.complete.return_value = (
            '{"intent": "DiningSuggestionsIntent", "slots": {"dining_date": "2030-05-16"}}'
        )
        engine = LlmNluEngine(mock_llm)
        state = ConversationState(intent_name=DINING_INTENT, slot_to_elicit="dining_date")

        result = await engine.interpret("tomorrow", state, FIXED_NOW)

        assert result.slots == {"dining_date": "2030-05-16"}
        kwargs = mock_llm.complete.call_args.kwargs
        assert kwargs["system"] == SYSTEM_PROMPT
        prompt = kwargs["messages"][0]["content"]
        assert "Wednesday, 2030-05-15" in prompt
        assert "asked the user for: dining_date" in prompt
        assert prompt.endswith("User: tomorrow")

    @pytest.mark.asyncio
    async def test_no_pending_slot_outside_dining(self, mock_llm):
        engine = LlmNluEngine(mock_llm)

        await engine.interpret("hello", ConversationState(), FIXED_NOW)

        prompt = mock_llm.complete.call_args.kwargs["messages"][0]["content"]
        assert "asked the user" not in prompt

    @pytest.mark.asyncio
    async def test_llm_errors_propagate(self, mock_llm):
        mock_llm.complete.side_effect = RuntimeError("LLM API error: overloaded")
        engine = LlmNluEngine(mock_llm)

        with pytest.raises(RuntimeError):
            await engine.interpret("hi", ConversationState(), FIXED_NOW)
