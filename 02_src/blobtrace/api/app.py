"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..app import Application
from .routes import blobs, control, events, observability


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
        if sim_instance:
            await sim_instance.stop()
        await application.stop()

    fastapi_app = FastAPI(
        title="Blob Trace API",
        description="Trace-context propagation across blob upload events",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.include_router(blobs.create_blobs_router(application))
    fastapi_app.include_router(events.create_events_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
