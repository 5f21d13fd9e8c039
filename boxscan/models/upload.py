"""Upload queue entry state."""
from dataclasses import dataclass

from boxscan.models.capture import CaptureBundle


@dataclass
class UploadQueueEntry:
    """Queued bundle; attempt and next_retry_at are updated after each failed try."""
    bundle: CaptureBundle
    attempt: int = 0
    next_retry_at: float = 0.0
