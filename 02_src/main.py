"""Main entry point for Blob Trace."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from blobtrace.api import create_fastapi_app
from blobtrace.logging_config import setup_logging
from sim import Sim


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))
    api_url = f"http://{api_host}:{api_port}"

    # Self-published events go to our own webhook unless configured otherwise
    os.environ.setdefault("EVENT_ENDPOINT", f"{api_url}/api/events")

    # Create SIM instance
    sim = Sim(api_url=api_url)

    # Set SIM instance for control router
    from blobtrace.api.routes import control
    control.set_sim_instance(sim)

    # Create FastAPI app
    app = create_fastapi_app()

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
