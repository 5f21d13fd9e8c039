"""FastAPI app, CORS, and route registration."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging in the worker process (so queue/router INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from boxscan.api.state import AppState, get_state
from boxscan.config import BOXSCAN_WEB_ORIGIN

# Import routes after state to avoid circular imports
from boxscan.api.routes import capture, notices, queue, scan

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = get_state()
    state.camera_source.start_polling(asyncio.get_running_loop())

    yield

    state.camera_source.stop_polling()
    state.composer.deactivate()
    if state.upload_queue.backlog:
        logger.warning("Shutting down with %d capture(s) not uploaded", state.upload_queue.backlog)
    await state.upload_queue.stop()


app = FastAPI(
    title="BoxScan API",
    description="Local API for the inventory scanner overlay and Power Mode capture",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[BOXSCAN_WEB_ORIGIN] if BOXSCAN_WEB_ORIGIN else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scan.router, prefix="/api/scan", tags=["scan"])
app.include_router(capture.router, prefix="/api/capture", tags=["capture"])
app.include_router(queue.router, prefix="/api/queue", tags=["queue"])
app.include_router(notices.router, prefix="/api/notices", tags=["notices"])
