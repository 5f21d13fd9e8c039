"""Core services: decode cooldown, scan routing, place-in chain, capture and upload queue."""
from boxscan.core.capture_composer import CaptureBundleComposer
from boxscan.core.decode_cooldown import DecodeCooldownFilter
from boxscan.core.place_in import PlaceInChain
from boxscan.core.scan_router import ScanModeRouter
from boxscan.core.upload_queue import UploadQueueWorker

__all__ = [
    "CaptureBundleComposer",
    "DecodeCooldownFilter",
    "PlaceInChain",
    "ScanModeRouter",
    "UploadQueueWorker",
]
