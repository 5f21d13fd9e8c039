"""Background worker draining capture bundles to the inventory service in creation order."""
import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, List, Optional

from boxscan.config import UPLOAD_RETRY_DELAY_SEC
from boxscan.core.errors import RETRYABLE_ERRORS, ScanPipelineError
from boxscan.core.interfaces import CaptureUploader
from boxscan.core.notifications import Notifier
from boxscan.models.capture import CaptureBundle
from boxscan.models.upload import UploadQueueEntry

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class UploadQueueWorker:
    """Single logical worker over a FIFO queue.

    The head entry is retried (flat delay) until it uploads or fails with a
    non-retryable error; only then is the next entry attempted. The worker
    task exists only while the queue is non-empty and is re-armed by enqueue().
    """

    def __init__(
        self,
        uploader: CaptureUploader,
        retry_delay_sec: float = UPLOAD_RETRY_DELAY_SEC,
        notifier: Optional[Notifier] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._uploader = uploader
        self._retry_delay_sec = retry_delay_sec
        self._notifier = notifier
        self._sleep = sleep
        self._clock = clock
        self._queue: Deque[UploadQueueEntry] = deque()
        self._task: Optional[asyncio.Task] = None
        self.uploaded = 0
        self.abandoned = 0

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def backlog(self) -> int:
        return len(self._queue)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def enqueue(self, bundle: CaptureBundle) -> UploadQueueEntry:
        """Append a bundle and make sure the worker is running. Needs a running event loop."""
        entry = UploadQueueEntry(bundle=bundle, attempt=0, next_retry_at=self._clock())
        self._queue.append(entry)
        logger.info("Upload queue: enqueued bundle (%d photos), backlog %d", len(bundle.photo_refs), len(self._queue))
        self._arm()
        return entry

    def snapshot(self) -> List[UploadQueueEntry]:
        return list(self._queue)

    async def join(self) -> None:
        """Wait until the queue has been drained."""
        while self.is_running:
            await asyncio.shield(self._task)

    async def stop(self) -> None:
        """Cancel the worker; queued entries stay queued."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _arm(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._queue:
            entry = self._queue[0]
            entry.attempt += 1
            try:
                await self._uploader.upload_capture(entry.bundle)
            except RETRYABLE_ERRORS as e:
                entry.next_retry_at = self._clock() + self._retry_delay_sec
                logger.warning(
                    "Upload attempt %d failed (%s); retrying in %.0fs, backlog %d",
                    entry.attempt,
                    e,
                    self._retry_delay_sec,
                    len(self._queue),
                )
                await self._sleep(self._retry_delay_sec)
                continue
            except ScanPipelineError as e:
                self._queue.popleft()
                self.abandoned += 1
                if self._notifier is not None:
                    self._notifier.error(f"Capture upload rejected: {e}")
                else:
                    logger.error("Capture upload rejected: %s", e)
                continue
            except Exception:
                # Unclassified failure: keep the entry at the head and retry like a network error
                entry.next_retry_at = self._clock() + self._retry_delay_sec
                logger.exception("Upload attempt %d failed unexpectedly", entry.attempt)
                await self._sleep(self._retry_delay_sec)
                continue
            self._queue.popleft()
            self.uploaded += 1
            logger.info("Upload queue: bundle uploaded after %d attempt(s), backlog %d", entry.attempt, len(self._queue))
