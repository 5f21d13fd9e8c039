"""Flash + beep fired once per accepted decode."""
import logging
import time
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

BEEP_FREQUENCY_HZ = 800
BEEP_DURATION_SEC = 0.1
FLASH_DURATION_SEC = 0.2


class ScanFeedback(Protocol):
    def flash(self) -> None: ...

    def beep(self) -> None: ...


class PolledScanFeedback:
    """Feedback for a UI that polls: each trigger bumps a sequence the overlay watches.

    The overlay flashes for FLASH_DURATION_SEC and plays a BEEP_FREQUENCY_HZ tone
    whenever it sees the sequence change.
    """

    def __init__(self) -> None:
        self.flash_seq = 0
        self.beep_seq = 0
        self._last_at: Optional[float] = None

    def flash(self) -> None:
        self.flash_seq += 1
        self._last_at = time.monotonic()

    def beep(self) -> None:
        self.beep_seq += 1
        logger.debug("Scan feedback #%d", self.beep_seq)

    def is_flashing(self) -> bool:
        return self._last_at is not None and (time.monotonic() - self._last_at) < FLASH_DURATION_SEC

    def to_dict(self) -> dict:
        return {
            "flash_seq": self.flash_seq,
            "beep_seq": self.beep_seq,
            "flashing": self.is_flashing(),
            "beep_hz": BEEP_FREQUENCY_HZ,
            "beep_sec": BEEP_DURATION_SEC,
        }
