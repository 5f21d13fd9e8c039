"""Camera decode loop: grabs frames, decodes QR/barcodes and feeds the scan router."""
import asyncio
import concurrent.futures
import logging
import threading
import time
from typing import Awaitable, Callable, List, Optional

from boxscan.config import CAMERA_ENABLED, CAMERA_INDEX, CAMERA_POLL_INTERVAL_SEC, SIMULATE_HARDWARE
from boxscan.models.scan import DecodeEvent

logger = logging.getLogger(__name__)

# Optional: OpenCV for frame capture and pyzbar for symbol decoding
_CAMERA_AVAILABLE = False
try:
    import cv2
    from pyzbar import pyzbar
    _CAMERA_AVAILABLE = True
except ImportError:
    pass

DecodeHandler = Callable[[DecodeEvent], Awaitable[str]]


class CameraDecodeSource:
    """Polls a camera in a background thread and hands decoded payloads to the event loop.

    Events are submitted to the loop in decode order; the handler runs on the
    loop, never on the camera thread.
    """

    def __init__(
        self,
        on_event: DecodeHandler,
        camera_index: int = CAMERA_INDEX,
        simulate: bool = SIMULATE_HARDWARE or not CAMERA_ENABLED or not _CAMERA_AVAILABLE,
    ) -> None:
        self._on_event = on_event
        self._camera_index = camera_index
        self._simulate = simulate
        self._capture = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._poll_thread: Optional[threading.Thread] = None
        self._stop_poll = threading.Event()

    @property
    def simulated(self) -> bool:
        return self._simulate

    def decode_once(self) -> List[str]:
        """One frame; returns decoded payloads (empty if nothing in view)."""
        if self._simulate or self._capture is None:
            return []
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return []
        try:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
            symbols = pyzbar.decode(gray)
        except cv2.error as e:
            logger.debug("Camera: decode failed: %s", e)
            return []
        payloads = []
        for symbol in symbols:
            try:
                payloads.append(symbol.data.decode("utf-8"))
            except UnicodeDecodeError:
                continue
        return payloads

    def submit(self, payload: str, observed_at: Optional[float] = None) -> None:
        """Hand one payload to the loop (also used to inject payloads when simulating)."""
        if self._loop is None:
            raise RuntimeError("Camera source is not started")
        event = DecodeEvent(payload=payload, observed_at=observed_at if observed_at is not None else time.monotonic())
        future = asyncio.run_coroutine_threadsafe(self._on_event(event), self._loop)
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future: concurrent.futures.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Camera: decode handler failed", exc_info=exc)

    def start_polling(self, loop: asyncio.AbstractEventLoop, interval_sec: float = CAMERA_POLL_INTERVAL_SEC) -> None:
        """Start background poll loop."""
        self._loop = loop
        if self._simulate:
            logger.info("Camera: simulated (no frames polled)")
            return
        self._capture = cv2.VideoCapture(self._camera_index)
        if not self._capture.isOpened():
            logger.warning("Camera %d could not be opened; decode source idle", self._camera_index)
            self._capture.release()
            self._capture = None
            return
        self._stop_poll.clear()

        def _poll_loop() -> None:
            while not self._stop_poll.is_set():
                for payload in self.decode_once():
                    self.submit(payload)
                self._stop_poll.wait(interval_sec)

        self._poll_thread = threading.Thread(target=_poll_loop, daemon=True)
        self._poll_thread.start()
        logger.info("Camera %d: polling every %.2fs", self._camera_index, interval_sec)

    def stop_polling(self) -> None:
        """Stop background poll loop."""
        self._stop_poll.set()
        if self._poll_thread:
            self._poll_thread.join(timeout=2.0)
            self._poll_thread = None
        if self._capture is not None:
            self._capture.release()
            self._capture = None
