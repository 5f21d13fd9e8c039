"""Power Mode: voice note + photos + metadata draft -> queued capture bundle."""
import asyncio
import logging
import time
from typing import Any, Callable, Optional

from boxscan.config import RECORDING_MAX_SEC
from boxscan.core.errors import CaptureStateError, PhotoUnavailableError, RecordingError
from boxscan.core.interfaces import InventoryService, Recorder
from boxscan.core.notifications import Notifier
from boxscan.core.photo_pool import PhotoPool
from boxscan.core.upload_queue import UploadQueueWorker
from boxscan.models.capture import CaptureBundle, CaptureDraft, PhotoRef

logger = logging.getLogger(__name__)


class CaptureBundleComposer:
    """Composes one bundle at a time and hands it to the upload queue.

    Power Mode is active while a draft exists. end_segment() queues the bundle
    and starts an empty draft right away; uploading never blocks composing.
    """

    def __init__(
        self,
        recorder: Recorder,
        pool: PhotoPool,
        queue: UploadQueueWorker,
        service: Optional[InventoryService] = None,
        notifier: Optional[Notifier] = None,
        max_recording_sec: float = RECORDING_MAX_SEC,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._recorder = recorder
        self._pool = pool
        self._queue = queue
        self._service = service
        self._notifier = notifier
        self._max_recording_sec = max_recording_sec
        self._clock = clock
        self._draft: Optional[CaptureDraft] = None
        self._recording_started_at: Optional[float] = None
        self._stopping = False
        self._limit_handle: Optional[asyncio.TimerHandle] = None
        self.limit_reached = False

    @property
    def active(self) -> bool:
        return self._draft is not None

    @property
    def recording(self) -> bool:
        return self._recording_started_at is not None

    @property
    def draft(self) -> Optional[CaptureDraft]:
        return self._draft

    def recording_elapsed(self) -> float:
        if self._recording_started_at is None:
            return 0.0
        return max(0.0, self._clock() - self._recording_started_at)

    async def begin_segment(self) -> CaptureDraft:
        """Start recording; creates the draft on first use. RecordingError leaves nothing behind."""
        if self.recording:
            raise CaptureStateError("Already recording")
        if self._stopping:
            raise CaptureStateError("Previous segment is still stopping")
        created = self._draft is None
        if created:
            self._draft = CaptureDraft()
        try:
            await self._recorder.start()
        except RecordingError:
            if created:
                self._draft = None
            raise
        self._recording_started_at = self._clock()
        self.limit_reached = False
        self._limit_handle = asyncio.get_running_loop().call_later(
            self._max_recording_sec, self._on_recording_limit
        )
        logger.info("Power Mode: segment started")
        return self._draft

    def attach_photo(self, photo_id: str) -> PhotoRef:
        """Attach an available photo to the draft (removes it from the pool)."""
        draft = self._require_draft()
        ref = self._pool.take(photo_id)
        draft.photos.append(ref)
        return ref

    def detach_photo(self, photo_id: str) -> bool:
        draft = self._require_draft()
        for i, ref in enumerate(draft.photos):
            if ref.photo_id == photo_id:
                draft.photos.pop(i)
                return self._pool.release(photo_id)
        return False

    def update_metadata(self, **fields: Any) -> CaptureDraft:
        """Set draft fields (name, description, quantity, container, ...); None removes a field."""
        draft = self._require_draft()
        for key, value in fields.items():
            if value is None:
                draft.metadata.pop(key, None)
            else:
                draft.metadata[key] = value
        return draft

    async def end_segment(self) -> CaptureBundle:
        """Stop recording, queue the bundle and reset the draft for the next unit."""
        draft = self._require_draft()
        if not self.recording:
            raise CaptureStateError("Not recording")
        self._cancel_limit_timer()
        self._recording_started_at = None
        # Fresh draft before the first await so the next unit can be composed during stop()
        self._draft = CaptureDraft()
        self._stopping = True
        try:
            audio = await self._recorder.stop()
        except Exception:
            # No bundle was built; its photos go back to the pool
            for ref in draft.photos:
                self._pool.release(ref.photo_id)
            raise
        finally:
            self._stopping = False
        bundle = CaptureBundle.from_draft(draft, audio_blob=audio, created_at=self._clock())
        for ref in bundle.photo_refs:
            self._pool.forget(ref.photo_id)
        self._queue.enqueue(bundle)
        logger.info(
            "Power Mode: bundle queued (%d bytes audio, %d photos)",
            len(bundle.audio_blob),
            len(bundle.photo_refs),
        )
        return bundle

    async def next_item(self) -> CaptureBundle:
        """End the current segment and immediately start recording the next one."""
        bundle = await self.end_segment()
        await self.begin_segment()
        return bundle

    def discard(self) -> int:
        """Drop the draft; attached photos go back to the pool. Returns how many were returned."""
        draft = self._require_draft()
        if self.recording:
            self._cancel_limit_timer()
            self._recording_started_at = None
            self._recorder.cancel()
        returned = sum(1 for ref in draft.photos if self._pool.release(ref.photo_id))
        self._draft = CaptureDraft()
        logger.info("Power Mode: draft discarded, %d photo(s) returned", returned)
        return returned

    def deactivate(self) -> None:
        """Leave Power Mode; an unfinished draft is discarded."""
        if self._draft is None:
            return
        self.discard()
        self._draft = None

    async def assign_photo_to_item(self, photo_id: str, item_id: str) -> None:
        """Bind an available photo to a saved item; it leaves the pool on success."""
        if self._service is None:
            raise CaptureStateError("No inventory service configured")
        if not self._pool.is_available(photo_id):
            raise PhotoUnavailableError(f"Photo {photo_id} is not available")
        await self._service.assign_photo(photo_id, item_id)
        self._pool.forget(photo_id)
        logger.info("Photo %s assigned to %s", photo_id, item_id)

    def _require_draft(self) -> CaptureDraft:
        if self._draft is None:
            raise CaptureStateError("Power Mode is not active")
        return self._draft

    def _on_recording_limit(self) -> None:
        self._limit_handle = None
        if not self.recording:
            return
        self.limit_reached = True
        minutes = self._max_recording_sec / 60
        message = f"Recording reached {minutes:g} min; end the segment to keep it"
        if self._notifier is not None:
            self._notifier.warning(message)
        else:
            logger.warning(message)

    def _cancel_limit_timer(self) -> None:
        if self._limit_handle is not None:
            self._limit_handle.cancel()
            self._limit_handle = None
