"""Observability API routes."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ...app import IApplication


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


class OperationResponse(BaseModel):
    """Response model for a recorded operation."""

    name: str
    kind: str
    trace_id: str
    span_id: str
    parent_span_id: str | None
    status: str
    error: str | None
    start_time: datetime
    end_time: datetime | None
    duration_ms: float | None
    tags: list[tuple[str, str]]


def create_observability_router(app: IApplication) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        actor: str | None = Query(None, description="Filter by actor"),
    ) -> list[dict]:
        """Get trace events with optional filters."""
        try:
            after_dt = None
            if after:
                try:
                    after_dt = datetime.fromisoformat(after)
                except ValueError:
                    raise HTTPException(
                        status_code=400, detail="Invalid after timestamp format"
                    )

            event_types = [event_type] if event_type else None

            events = await app.storage.get_trace_events(
                after=after_dt,
                event_types=event_types,
                actor=actor,
                limit=limit,
            )

            return [
                {
                    "id": e.id,
                    "event_type": e.event_type,
                    "actor": e.actor,
                    "data": e.data,
                    "timestamp": e.timestamp.isoformat(),
                }
                for e in events
            ]

        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/operations", response_model=list[OperationResponse])
    async def get_operations(
        trace_id: str | None = Query(None, description="Filter by trace id"),
        name: str | None = Query(None, description="Filter by operation name"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[dict]:
        """Get recorded operations with their tags."""
        try:
            operations = await app.storage.get_operations(
                trace_id=trace_id, name=name, limit=limit
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "name": op.name,
                "kind": op.kind.value,
                "trace_id": op.trace_id,
                "span_id": op.span_id,
                "parent_span_id": op.parent_span_id,
                "status": op.status,
                "error": op.error,
                "start_time": op.start_time,
                "end_time": op.end_time,
                "duration_ms": op.duration_ms,
                "tags": op.tags,
            }
            for op in operations
        ]

    return router
