"""Event webhook routes."""

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from ...app import IApplication
from ...consumer import parse_cloud_events, preflight
from ...logging_config import get_logger

logger = get_logger(__name__)


class DeliveryResponse(BaseModel):
    """Response model for an event delivery."""

    processed: int
    linked: int


def create_events_router(app: IApplication) -> APIRouter:
    """Create events (webhook) router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.api_route("/events", methods=["OPTIONS", "POST"], response_model=None)
    async def receive_events(request: Request) -> Response | dict:
        """
        Webhook for CloudEvents delivery, including the preflight probe.

        A batch is not atomic: events before a failing one stay processed and
        the whole batch is answered with 500. On redelivery those events are
        recognized by id and not processed again.
        """
        probe = preflight(request.method)
        if probe is not None:
            logger.info("Answered webhook preflight probe")
            return Response(
                status_code=probe.status_code,
                headers=probe.headers,
                content=probe.body,
            )

        body = await request.body()
        try:
            events = parse_cloud_events(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        linked = 0
        for event in events:
            try:
                result = await app.processor.handle_event(event)
            except Exception as e:
                raise HTTPException(
                    status_code=500, detail=f"Processing of event {event.id} failed: {e}"
                )
            if result.linked_trace_id:
                linked += 1

        return {"processed": len(events), "linked": linked}

    return router
