"""Blob upload API routes."""

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel

from ...app import Application
from ...errors import BlobNotFoundError, ChannelWriteFailure, MalformedTraceparent
from ...logging_config import get_logger
from ...models import BlobHandle, TraceContext
from ...propagation import context_from_traceparent

logger = get_logger(__name__)


class UploadResponse(BaseModel):
    """Response model for an upload."""

    container: str
    name: str
    url: str
    channel: str
    trace_id: str
    span_id: str


def _incoming_context(
    traceparent: str | None, tracestate: str | None
) -> TraceContext | None:
    """Continue the caller's trace when it sent a valid traceparent header."""
    if not traceparent:
        return None
    try:
        return context_from_traceparent(traceparent, tracestate)
    except MalformedTraceparent as e:
        logger.warning("Ignoring malformed traceparent header: %s", e.reason)
        return None


def create_blobs_router(app: Application) -> APIRouter:
    """Create blobs router."""
    router = APIRouter(prefix="/api", tags=["blobs"])

    @router.put("/blobs/{name:path}", response_model=UploadResponse)
    async def upload_blob(
        name: str,
        request: Request,
        content_type: str | None = Header(None),
        traceparent: str | None = Header(None),
        tracestate: str | None = Header(None),
    ) -> dict:
        """Upload a blob; the trace context travels on the configured channel."""
        content = await request.body()
        try:
            result = await app.uploader.upload(
                name=name,
                content=content,
                content_type=content_type or "application/octet-stream",
                parent=_incoming_context(traceparent, tracestate),
            )
        except ChannelWriteFailure as e:
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return {
            "container": result.handle.container,
            "name": result.handle.name,
            "url": result.handle.url,
            "channel": result.channel.value,
            "trace_id": result.trace_context.trace_id,
            "span_id": result.trace_context.span_id,
        }

    @router.get("/blobs/{name:path}/metadata", response_model=dict[str, str])
    async def get_blob_metadata(name: str) -> dict:
        """Get the metadata set of a blob."""
        handle = BlobHandle(
            container=app.container,
            name=name,
            account_url=app.storage.account_url,
        )
        try:
            return await app.storage.get_metadata(handle)
        except BlobNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
