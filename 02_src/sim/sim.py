"""SIM implementation - upload traffic for exercising trace propagation."""

import asyncio
import random
import uuid
from typing import Protocol

import httpx

from blobtrace.logging_config import get_logger
from blobtrace.models import TraceContext
from blobtrace.propagation import format_traceparent
from blobtrace.tracker import ITracker, generate_span_id, generate_trace_id

logger = get_logger(__name__)


class ISim(Protocol):
    """Generate upload traffic against the HTTP API."""

    async def start(self) -> None:
        """Start the upload scenario."""
        ...

    async def stop(self) -> None:
        """Stop the upload scenario."""
        ...


class Sim:
    """SIM with a fixed upload scenario."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracker: ITracker | None = None,
        rounds: int = 3,
    ):
        self._api_url = api_url
        self._tracker = tracker
        self._rounds = rounds
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None

    def set_tracker(self, tracker: ITracker) -> None:
        """Inject tracker for SIM trace events."""
        self._tracker = tracker

    async def start(self) -> None:
        """Start the upload scenario."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient()

        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop the upload scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def _run_scenario(self) -> None:
        """Upload a mix of documents; some calls arrive with a caller trace."""
        documents = [
            ("reports/q1.csv", "text/csv", b"region,revenue\nnorth,120\nsouth,95\n"),
            ("images/logo.svg", "image/svg+xml", b"<svg xmlns='http://www.w3.org/2000/svg'/>"),
            ("notes/readme.txt", "text/plain", "Upload traced end to end.\n".encode()),
        ]
        uploaded = 0

        try:
            if self._tracker:
                await self._tracker.track(
                    "sim_started",
                    "sim",
                    {"rounds": self._rounds, "document_count": len(documents)},
                )

            for round_idx in range(self._rounds):
                if not self._running:
                    break

                for name, content_type, content in documents:
                    if not self._running:
                        break

                    # About half of the uploads continue a caller-side trace
                    caller = None
                    if random.random() < 0.5:
                        caller = TraceContext(
                            trace_id=generate_trace_id(), span_id=generate_span_id()
                        )

                    blob_name = f"sim/{round_idx}/{uuid.uuid4().hex[:8]}-{name}"
                    if await self._upload(blob_name, content_type, content, caller):
                        uploaded += 1

                    await asyncio.sleep(random.uniform(0.5, 2))

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            if self._tracker:
                await self._tracker.track(
                    "sim_completed",
                    "sim",
                    {"rounds": self._rounds, "uploaded": uploaded},
                )

    async def _upload(
        self,
        name: str,
        content_type: str,
        content: bytes,
        caller: TraceContext | None,
    ) -> bool:
        """Upload a blob via HTTP API."""
        if not self._client:
            return False

        headers = {"Content-Type": content_type}
        if caller:
            headers["traceparent"] = format_traceparent(caller)

        try:
            response = await self._client.put(
                f"{self._api_url}/api/blobs/{name}",
                content=content,
                headers=headers,
                timeout=10.0,
            )
        except Exception as e:
            logger.error("SIM: Failed to upload %s: %s", name, e)
            return False

        if response.status_code != 200:
            logger.error("SIM: Upload of %s returned %s", name, response.status_code)
            return False

        data = response.json()
        logger.info("SIM: uploaded %s (trace %s)", name, data.get("trace_id"))
        return True
