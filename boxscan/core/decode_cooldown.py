"""Per-payload cooldown so a code held in frame is dispatched once, not on every decode."""
import time
from typing import Dict, Optional

from boxscan.config import COOLDOWN_GRACE_SEC, COOLDOWN_SEC
from boxscan.models.scan import CooldownEntry


class DecodeCooldownFilter:
    """Accepts a payload, then ignores it until its cooldown expires.

    Expired entries are swept on every call, so memory stays bounded by the
    number of distinct codes seen in the last cooldown + grace window.
    """

    def __init__(self, cooldown_sec: float = COOLDOWN_SEC, grace_sec: float = COOLDOWN_GRACE_SEC) -> None:
        self._cooldown_sec = cooldown_sec
        self._grace_sec = grace_sec
        self._entries: Dict[str, CooldownEntry] = {}

    def should_dispatch(self, payload: str, now: Optional[float] = None) -> bool:
        """True if payload is not cooling down; records a new cooldown when it is accepted."""
        if now is None:
            now = time.monotonic()
        self._sweep(now)
        entry = self._entries.get(payload)
        if entry is not None and now < entry.expires_at:
            return False
        self._entries[payload] = CooldownEntry(payload=payload, expires_at=now + self._cooldown_sec)
        return True

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        stale = [p for p, e in self._entries.items() if now > e.expires_at + self._grace_sec]
        for payload in stale:
            del self._entries[payload]
