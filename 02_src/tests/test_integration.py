"""Integration tests for the Dining Concierge end-to-end flow."""

import json
from datetime import date, timedelta

import pytest
import pytest_asyncio

from concierge.app import Application
from concierge.config import Settings
from concierge.models import RestaurantDetail, WorkerStatus
from concierge.notify import LogNotifier


def nlu_reply(intent: str = "FallbackIntent", **slots) -> str:
    return json.dumps({"intent": intent, "slots": slots})


@pytest_asyncio.fixture
async def app(tmp_path, mock_llm):
    """Create and start a test application on a file database."""
    application = Application(
        settings=Settings(
            search_backend="sqlite",
            notifier_backend="log",
            worker_enabled=False,
        ),
        db_path=str(tmp_path / "concierge.db"),
        llm_provider=mock_llm,
    )
    await application.start()

    for i in range(6):
        await application.storage.save_restaurant(
            RestaurantDetail(
                business_id=f"thai-{i}",
                name=f"Thai Place {i}",
                address=f"{i} Bedford Ave",
                rating="4.0",
                review_count="50",
            ),
            "Thai",
        )
    await application.storage.save_restaurant(
        RestaurantDetail(business_id="it-1", name="Trattoria", address="1 Mulberry St"),
        "Italian",
    )

    yield application

    await application.stop()


@pytest.mark.asyncio
async def test_full_flow(app: Application, mock_llm):
    """Test end-to-end flow: chat -> queue -> worker -> email."""
    user_id = "test_user_001"
    dining_date = (date.today() + timedelta(days=2)).isoformat()
    mock_llm.complete.side_effect = [
        nlu_reply("GreetingIntent"),
        nlu_reply("DiningSuggestionsIntent", cuisine="Thai", location="Brooklyn"),
        nlu_reply(),
        nlu_reply("DiningSuggestionsIntent", dining_date=dining_date),
        nlu_reply(),
        nlu_reply(),
    ]

    replies = []
    for text in [
        "Hello",
        "Thai food in Brooklyn please",
        "2",
        "the day after tomorrow",
        "19:00",
        "diner@example.com",
    ]:
        replies.append(await app.chat_session.handle_message(user_id=user_id, text=text))

    assert replies[0].startswith("Hi there!")
    assert replies[1] == "How many people are in your party?"
    assert replies[2] == "What date would you like to dine?"
    assert replies[3] == "What time would you like to dine?"
    assert replies[4] == "What email address should I send the suggestions to?"
    assert replies[5].startswith("You're all set! Expect my Thai restaurant suggestions for 2 people")
    assert await app.work_queue.count() == 1

    result = await app.scheduler.tick()

    assert result.status is WorkerStatus.PROCESSED
    assert len(result.selected_ids) == 3
    assert all(i.startswith("thai-") for i in result.selected_ids)
    assert await app.work_queue.count() == 0

    notifier = app._notifier
    assert isinstance(notifier, LogNotifier)
    assert len(notifier.sent) == 1
    assert notifier.sent[0].recipient == "diner@example.com"
    assert "Thai Place" in notifier.sent[0].text_body

    events = await app.storage.get_trace_events(limit=100)
    event_types = {e.event_type for e in events}
    assert "message_handled" in event_types
    assert "dialog_turn" in event_types
    assert "request_submitted" in event_types
    assert "work_item_processed" in event_types

    preference = await app.storage.get_user_preference("diner@example.com")
    assert preference.location == "brooklyn"


@pytest.mark.asyncio
async def test_unmatched_cuisine_is_dropped(app: Application):
    """Test that a request with no matching restaurants leaves the queue."""
    await app.work_queue.enqueue(
        {
            "Location": "queens",
            "Cuisine": "mexican",
            "NumberOfPeople": "3",
            "DiningDate": (date.today() + timedelta(days=1)).isoformat(),
            "DiningTime": "12:00",
            "Email": "diner@example.com",
        }
    )

    result = await app.scheduler.tick()

    assert result.status is WorkerStatus.NO_CANDIDATES
    assert await app.work_queue.count() == 0
    assert len(app._notifier.sent) == 0


@pytest.mark.asyncio
async def test_state_survives_restart(tmp_path, mock_llm):
    """Test that an in-progress conversation is resumed after a restart."""
    db_path = str(tmp_path / "restart.db")
    settings = Settings(search_backend="sqlite", notifier_backend="log", worker_enabled=False)

    first = Application(settings=settings, db_path=db_path, llm_provider=mock_llm)
    await first.start()
    mock_llm.complete.return_value = nlu_reply("DiningSuggestionsIntent", cuisine="Italian")
    await first.chat_session.handle_message(user_id="u1", text="Italian food")
    await first.stop()

    second = Application(settings=settings, db_path=db_path, llm_provider=mock_llm)
    await second.start()
    try:
        state = await second.storage.get_conversation_state("u1")
        assert state.slots["cuisine"] == "Italian"
        assert state.slot_to_elicit == "location"
    finally:
        await second.stop()
