"""Error taxonomy for scanning, placement and capture upload."""


class ScanPipelineError(Exception):
    """Base class for errors raised by the scan and capture pipeline."""


class NotFoundError(ScanPipelineError):
    """Lookup miss. Expected; drives the create-vs-view branch."""


class ValidationError(ScanPipelineError):
    """The inventory service rejected a write. Never retried."""


class TransientNetworkError(ScanPipelineError):
    """Unreachable service, timeout or aborted connection. Safe to retry."""


class ServiceError(ScanPipelineError):
    """Any other non-retryable failure reported by the inventory service."""


class RecordingError(ScanPipelineError):
    """Microphone unavailable or permission denied."""


class PhotoUnavailableError(ScanPipelineError):
    """Photo is not in the available pool (unknown or already attached)."""


class CaptureStateError(ScanPipelineError):
    """Capture operation not valid in the current composer state."""


class StaleResultDiscard(ScanPipelineError):
    """A response arrived after the session that requested it ended. Dropped silently."""


RETRYABLE_ERRORS = (TransientNetworkError,)
