"""Chat and dialog code hook API routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...app import Application
from ...logging_config import get_logger
from ...models import DialogPhase, DialogTurn

logger = get_logger(__name__)

EMPTY_MESSAGE_TEXT = "I didn't receive a message. Could you try again?"
ERROR_TEXT = "Oops, something went wrong. Please try again."
DEFAULT_USER_ID = "default-user"


class UnstructuredMessage(BaseModel):
    """Plain-text chat message."""

    id: str | None = None
    text: str = ""
    user_id: str | None = None
    timestamp: str | None = None


class BotMessage(BaseModel):
    type: str = "unstructured"
    unstructured: UnstructuredMessage | None = None


class BotRequest(BaseModel):
    """Request model for the chat endpoint."""

    messages: list[BotMessage] = Field(default_factory=list)


class BotResponse(BaseModel):
    """Response model for the chat endpoint."""

    messages: list[BotMessage]


class DialogTurnRequest(BaseModel):
    """One dialog code hook invocation."""

    intent_name: str | None = None
    invocation_phase: DialogPhase
    slots: dict[str, str | None] = Field(default_factory=dict)
    session_attributes: dict[str, str] = Field(default_factory=dict)


class DialogTurnResponse(BaseModel):
    action: str
    intent_name: str | None
    intent_state: str
    slots: dict[str, str | None]
    slot_to_elicit: str | None = None
    message: str | None = None
    session_attributes: dict[str, str] = Field(default_factory=dict)


def bot_response(text: str) -> dict:
    return BotResponse(
        messages=[
            BotMessage(
                unstructured=UnstructuredMessage(
                    id="1",
                    text=text,
                    timestamp=datetime.now(timezone.utc).isoformat(),
                )
            )
        ]
    ).model_dump(exclude_none=True)


def create_chat_router(app: Application) -> APIRouter:
    """Create chat router."""
    router = APIRouter(prefix="/api", tags=["chat"])

    @router.post("/chatbot", response_model=BotResponse)
    async def chatbot(body: BotRequest, request: Request):
        """Send a user utterance to the chat session."""
        first = body.messages[0] if body.messages else None
        if first is None or first.unstructured is None or not first.unstructured.text.strip():
            return JSONResponse(status_code=400, content=bot_response(EMPTY_MESSAGE_TEXT))

        user_id = first.unstructured.user_id or (
            request.client.host if request.client else DEFAULT_USER_ID
        )
        try:
            reply = await app.chat_session.handle_message(
                user_id=user_id, text=first.unstructured.text
            )
        except Exception as e:
            logger.error("Error in chat endpoint: %s", e, exc_info=True)
            return JSONResponse(status_code=500, content=bot_response(ERROR_TEXT))

        return bot_response(reply)

    @router.post("/dialog/hook", response_model=DialogTurnResponse)
    async def dialog_hook(body: DialogTurnRequest) -> dict:
        """Run the dialog controller on an externally managed conversation."""
        response = await app.dialog_controller.handle(
            DialogTurn(
                intent_name=body.intent_name,
                phase=body.invocation_phase,
                slots=body.slots,
                session_attributes=body.session_attributes,
            )
        )
        return response.to_dict()

    return router
