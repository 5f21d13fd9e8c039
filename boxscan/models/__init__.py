"""Data models for scanning, capture bundles and the upload queue."""
from boxscan.models.capture import CaptureBundle, CaptureDraft, PhotoRef
from boxscan.models.scan import (
    CooldownEntry,
    DecodeEvent,
    ItemRef,
    NavigationIntent,
    PlacementChainState,
    ScanMode,
)
from boxscan.models.upload import UploadQueueEntry

__all__ = [
    "CaptureBundle",
    "CaptureDraft",
    "CooldownEntry",
    "DecodeEvent",
    "ItemRef",
    "NavigationIntent",
    "PhotoRef",
    "PlacementChainState",
    "ScanMode",
    "UploadQueueEntry",
]
