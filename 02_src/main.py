"""Main entry point for the Dining Concierge service."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from concierge.api import create_fastapi_app
from concierge.app import Application
from concierge.config import Settings
from concierge.logging_config import setup_logging
from sim import Sim


def main():
    """Run the API and the scheduled queue worker."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    settings = Settings.from_env()
    api_url = f"http://{settings.api_host}:{settings.api_port}"

    # Create SIM instance
    sim = Sim(api_url=api_url)

    # Set SIM instance for control router
    from concierge.api.routes import control
    control.set_sim_instance(sim)

    app = create_fastapi_app(Application(settings=settings))

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
