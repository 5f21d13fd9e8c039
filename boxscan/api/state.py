"""Shared application state (injected into routes)."""
from typing import Optional

from boxscan.core.camera_source import CameraDecodeSource
from boxscan.core.capture_composer import CaptureBundleComposer
from boxscan.core.decode_cooldown import DecodeCooldownFilter
from boxscan.core.feedback import PolledScanFeedback
from boxscan.core.interfaces import CaptureUploader, InventoryService, Recorder
from boxscan.core.inventory_client import InventoryClient
from boxscan.core.notifications import Notifier
from boxscan.core.photo_pool import PhotoPool
from boxscan.core.place_in import PlaceInChain
from boxscan.core.recorder import SoundDeviceRecorder
from boxscan.core.scan_router import NavigationLog, ScanModeRouter, ViewHandler
from boxscan.core.upload_queue import UploadQueueWorker


class AppState:
    """One scanning session plus the Power Mode composer and its upload queue."""

    def __init__(
        self,
        service: Optional[InventoryService] = None,
        uploader: Optional[CaptureUploader] = None,
        recorder: Optional[Recorder] = None,
    ) -> None:
        client = service or InventoryClient()
        self.service = client
        self.notifier = Notifier()
        self.feedback = PolledScanFeedback()
        self.navigation = NavigationLog()
        self.place_in = PlaceInChain(client, notifier=self.notifier)
        self.router = ScanModeRouter(
            view_handler=ViewHandler(client, notifier=self.notifier),
            place_in_chain=self.place_in,
            navigator=self.navigation,
            feedback=self.feedback,
            cooldown=DecodeCooldownFilter(),
            notifier=self.notifier,
        )
        self.photo_pool = PhotoPool()
        self.upload_queue = UploadQueueWorker(uploader or client, notifier=self.notifier)
        self.composer = CaptureBundleComposer(
            recorder=recorder or SoundDeviceRecorder(),
            pool=self.photo_pool,
            queue=self.upload_queue,
            service=client,
            notifier=self.notifier,
        )
        self._camera_source: Optional[CameraDecodeSource] = None

    @property
    def camera_source(self) -> CameraDecodeSource:
        if self._camera_source is None:
            self._camera_source = CameraDecodeSource(on_event=self.router.on_event)
        return self._camera_source


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState()
    return _state
