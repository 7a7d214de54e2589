import asyncio
import json

from fastapi import Request
from fastapi.responses import StreamingResponse

KEEPALIVE_SECONDS = 15.0


def sse_event(payload: dict, event: str | None = None) -> str:
    lines = []
    if event:
        lines.append(f"event: {event}")
    lines.append(f"data: {json.dumps(payload)}")
    return "\n".join(lines) + "\n\n"


async def next_snapshot(queue: asyncio.Queue, timeout: float = KEEPALIVE_SECONDS) -> dict | None:
    """Wait for the next snapshot, skipping to the newest one already queued.

    Returns None on timeout so the caller can emit a keepalive.
    """
    try:
        payload = await asyncio.wait_for(queue.get(), timeout=timeout)
    except asyncio.TimeoutError:
        return None
    while not queue.empty():
        payload = queue.get_nowait()
    return payload


def event_stream(request: Request, generator) -> StreamingResponse:
    async def guarded():
        async for chunk in generator:
            if await request.is_disconnected():
                break
            yield chunk

    return StreamingResponse(
        guarded(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
