"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import chat, control, observability


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        sim_instance = control.get_sim_instance()
        if sim_instance and hasattr(sim_instance, "set_tracker"):
            sim_instance.set_tracker(application.tracker)
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Dining Concierge API",
        description="Chat, dialog code hook and fulfillment control for the Dining Concierge",
        version="0.1.0",
        lifespan=lifespan,
    )

    # The chat front-end is served from a different origin
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["OPTIONS", "POST", "GET"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(chat.create_chat_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
