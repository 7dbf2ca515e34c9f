"""Danmaku engine — FastAPI app around the danmaku workflow.

Loads config on startup. Exposes /danmaku for a single JSON reply and
/danmaku/stream for SSE progress events followed by the result, plus
operational endpoints for health, config viewing, and hot-reload.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from danmaku.config import get_config, load_config, reload_config
from danmaku.errors import DanmakuError, InputTooLong
from danmaku.progress import ProgressStream
from danmaku.schemas import DanmakuRequest, DanmakuResponse, StreamChunk
from danmaku.workflow import DanmakuWorkflow

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the workflow from the loaded config on startup."""
    settings = get_config()
    app.state.workflow = DanmakuWorkflow.from_settings(settings)
    logger.info(
        f"Danmaku engine started (origins={settings.allowed_origins}, "
        f"auth={'enabled' if settings.api_key else 'disabled'}, "
        f"image={settings.image.backend}, tts={settings.tts.backend})"
    )
    yield
    logger.info("Danmaku engine shutting down")


# Load config early so we can read allowed_origins for CORS middleware.
_boot_config = load_config()

app = FastAPI(title="Danmaku Engine", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_boot_config.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


async def verify_api_key(request: Request) -> None:
    """Validate X-API-Key header against the configured key.
    If no api_key is set in config, auth is disabled (dev mode).
    """
    config = get_config()
    if not config.api_key:
        return

    key = request.headers.get("X-API-Key")
    if key != config.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def get_workflow(request: Request) -> DanmakuWorkflow:
    return request.app.state.workflow


# Streamed invocations outlive a disconnected client; hold them until done.
_running: set[asyncio.Task] = set()


def _finished(task: asyncio.Task) -> None:
    _running.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.warning(f"Streamed danmaku ended with error: {task.exception()}")


def _http_status(error: DanmakuError) -> int:
    return 413 if isinstance(error, InputTooLong) else 502


# ---------------------------------------------------------------------------
# Danmaku endpoints
# ---------------------------------------------------------------------------


@app.post("/danmaku", response_model=DanmakuResponse, dependencies=[Depends(verify_api_key)])
async def process_danmaku(
    request: DanmakuRequest,
    workflow: DanmakuWorkflow = Depends(get_workflow),
):
    """Process one danmaku and return the reply in a single response."""
    try:
        result = await workflow.process_danmaku(request.content)
    except DanmakuError as e:
        raise HTTPException(
            status_code=_http_status(e),
            detail={"code": e.code, "message": str(e)},
        )
    return DanmakuResponse.from_result(result)


@app.post("/danmaku/stream", dependencies=[Depends(verify_api_key)])
async def stream_danmaku(
    request: DanmakuRequest,
    workflow: DanmakuWorkflow = Depends(get_workflow),
):
    """Process one danmaku, streaming progress as Server-Sent Events (SSE).

    The invocation runs in its own task; if the client goes away the
    stream is closed and the task still runs to completion.
    """
    progress = ProgressStream()

    async def run():
        try:
            return await workflow.process_danmaku(request.content, progress)
        finally:
            progress.finish()

    task = asyncio.create_task(run())
    _running.add(task)
    task.add_done_callback(_finished)

    async def stream():
        try:
            async for event in progress.events():
                chunk = StreamChunk(type="progress", **event.model_dump())
                yield f"data: {chunk.model_dump_json()}\n\n"

            try:
                result = await task
                chunk = StreamChunk(type="result", result=DanmakuResponse.from_result(result))
            except DanmakuError as e:
                chunk = StreamChunk(type="error", code=e.code, message=str(e))
            except Exception as e:
                logger.error(f"Danmaku stream failed: {e}", exc_info=True)
                chunk = StreamChunk(type="error", code=DanmakuError.code, message=str(e))
            yield f"data: {chunk.model_dump_json()}\n\n"
            yield f"data: {StreamChunk(type='done').model_dump_json()}\n\n"
        finally:
            progress.close()

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ---------------------------------------------------------------------------
# Operational endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
async def health():
    """Liveness check."""
    config = get_config()
    return {
        "status": "healthy",
        "max_danmaku_length": config.processing.max_danmaku_length,
        "image_backend": config.image.backend,
        "tts_backend": config.tts.backend,
    }


@app.get("/config")
async def get_current_config():
    """Return current config as JSON, secrets redacted."""
    return get_config().redacted()


@app.post("/reload", dependencies=[Depends(verify_api_key)])
async def reload(request: Request):
    """Hot-reload config.yaml and rebuild the workflow without a restart.

    Calls already in flight keep the workflow they started with.
    """
    try:
        new_config = reload_config()
        request.app.state.workflow = DanmakuWorkflow.from_settings(new_config)
        return {
            "status": "reloaded",
            "image_backend": new_config.image.backend,
            "tts_backend": new_config.tts.backend,
        }
    except Exception as e:
        logger.error(f"Reload failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Reload failed: {e}")
