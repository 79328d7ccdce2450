"""SIM implementation - scripted dining conversations for manual runs."""

import asyncio
import random
from datetime import date, timedelta
from typing import Protocol

import httpx

from concierge.logging_config import get_logger
from concierge.tracker import ITracker

logger = get_logger(__name__)


class ISim(Protocol):
    """Drives the chat API with scripted conversations."""

    async def start(self) -> None:
        """Start scripted scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


def build_scenarios(today: date) -> dict[str, list[str]]:
    """Utterances per virtual user; some answers are deliberately invalid."""
    tomorrow = (today + timedelta(days=1)).isoformat()
    return {
        "sim_alice": [
            "Hello",
            "I'm looking for Italian food",
            "NYC",
            "2",
            tomorrow,
            "19:30",
            "alice@example.com",
        ],
        "sim_bob": [
            "Find me a restaurant",
            "Paris",
            "Brooklyn",
            "Korean",
            "Thai",
            "25",
            "4",
            tomorrow,
            "03:00",
            "20:00",
            "bob-at-example",
            "bob@example.com",
            "Thanks!",
        ],
    }


class Sim:
    """SIM with scripted conversations for testing."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracker: ITracker | None = None,
    ):
        self._api_url = api_url
        self._tracker = tracker
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None

    def set_tracker(self, tracker: ITracker) -> None:
        """Inject tracker for SIM trace events."""
        self._tracker = tracker

    async def start(self) -> None:
        """Start scripted scenario."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient()

        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        if self._client:
            await self._client.aclose()
            self._client = None

    async def _run_scenario(self) -> None:
        """Play each user's script; users take turns."""
        scenarios = build_scenarios(date.today())
        turn_count = sum(len(lines) for lines in scenarios.values())

        try:
            if self._tracker:
                await self._tracker.track(
                    "sim_started",
                    "sim",
                    {"user_count": len(scenarios), "turn_count": turn_count},
                )

            longest = max(len(lines) for lines in scenarios.values())
            for i in range(longest):
                if not self._running:
                    break

                for user_id, lines in scenarios.items():
                    if not self._running:
                        break
                    if i < len(lines):
                        await self._send_message(user_id, lines[i])
                        await asyncio.sleep(random.uniform(0.5, 1.5))

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            if self._tracker:
                await self._tracker.track(
                    "sim_completed",
                    "sim",
                    {"user_count": len(scenarios), "turn_count": turn_count},
                )

    async def _send_message(self, user_id: str, text: str) -> None:
        """Send one utterance via the chat API."""
        if not self._client:
            return

        try:
            response = await self._client.post(
                f"{self._api_url}/api/chatbot",
                json={
                    "messages": [
                        {
                            "type": "unstructured",
                            "unstructured": {"text": text, "user_id": user_id},
                        }
                    ]
                },
                timeout=30.0,
            )

            if response.status_code == 200:
                messages = response.json().get("messages", [])
                reply = messages[0]["unstructured"]["text"] if messages else "N/A"
                logger.info("SIM: %s -> %s", user_id, text)
                logger.info("SIM: Response: %s", reply)
            else:
                logger.error("SIM: Error sending message: %s", response.status_code)

        except Exception as e:
            logger.error("SIM: Failed to send message: %s", e)
