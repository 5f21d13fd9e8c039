"""Scan mode routing: cooldown, feedback, then View or Place-In handling."""
import asyncio
import itertools
import logging
import time
from collections import deque
from typing import Deque, List, Optional, Tuple, Union

from boxscan.config import SCANNER_INACTIVITY_SEC
from boxscan.core.decode_cooldown import DecodeCooldownFilter
from boxscan.core.errors import NotFoundError, ScanPipelineError
from boxscan.core.feedback import ScanFeedback
from boxscan.core.interfaces import ItemLookup, Navigator
from boxscan.core.label_codes import extract_item_id
from boxscan.core.notifications import Notice, Notifier
from boxscan.core.place_in import PlaceInChain
from boxscan.models.scan import DecodeEvent, NavigationIntent, ScanMode

logger = logging.getLogger(__name__)

# Outcomes of on_decoded besides the place-in ones
COOLDOWN = "cooldown"
IGNORED = "ignored"
NAVIGATE = "navigate"
FAILED = "failed"
STALE = "stale"

DETAIL = "detail"
CREATE = "create"


class ViewHandler:
    """Resolve a label to 'open detail' or 'create with this id'."""

    def __init__(self, lookup: ItemLookup, notifier: Optional[Notifier] = None) -> None:
        self._lookup = lookup
        self._notifier = notifier

    async def resolve(self, payload: str) -> Optional[Tuple[str, str]]:
        """Return (kind, item_id), or None if the code is not ours or the lookup failed."""
        item_id = extract_item_id(payload)
        if item_id is None:
            logger.debug("View: ignoring foreign code %r", payload)
            return None
        try:
            await self._lookup.get_item(item_id)
        except NotFoundError:
            # Pre-printed label scanned before its record exists
            logger.info("View: %s not found, offering create", item_id)
            return (CREATE, item_id)
        except ScanPipelineError as e:
            if self._notifier is not None:
                self._notifier.error(f"Lookup failed: {e}")
            return None
        return (DETAIL, item_id)


class NavigationLog:
    """Navigation intents for the UI to pick up, newest last."""

    def __init__(self, maxlen: int = 20) -> None:
        self._intents: Deque[NavigationIntent] = deque(maxlen=maxlen)

    def navigate(self, intent: NavigationIntent) -> None:
        logger.info("Navigate to %s %s", intent.kind, intent.item_id)
        self._intents.append(intent)

    def latest(self) -> Optional[NavigationIntent]:
        return self._intents[-1] if self._intents else None

    def since(self, seq: int = 0) -> List[NavigationIntent]:
        return [i for i in self._intents if i.seq > seq]


class ScanModeRouter:
    """Owns the scan mode for one scanning session and dispatches accepted decodes.

    Dispatch is serialized: a decode arriving while an earlier lookup is in
    flight waits its turn. Switching modes bumps a generation counter so that
    results for the previous mode are dropped instead of applied.
    """

    def __init__(
        self,
        view_handler: ViewHandler,
        place_in_chain: PlaceInChain,
        navigator: Navigator,
        feedback: ScanFeedback,
        cooldown: Optional[DecodeCooldownFilter] = None,
        notifier: Optional[Notifier] = None,
        inactivity_sec: float = SCANNER_INACTIVITY_SEC,
        mode: ScanMode = ScanMode.VIEW,
    ) -> None:
        self._view = view_handler
        self._place_in = place_in_chain
        self._navigator = navigator
        self._feedback = feedback
        self._cooldown = cooldown or DecodeCooldownFilter()
        self._notifier = notifier
        self._inactivity_sec = inactivity_sec
        self._mode = mode
        self._generation = 0
        self._nav_seq = itertools.count(1)
        self._lock = asyncio.Lock()
        self._last_accepted_at: Optional[float] = None
        self._started_at = time.monotonic()
        self.notice: Optional[Notice] = None
        if notifier is not None:
            notifier.subscribe(self._on_notice)

    @property
    def mode(self) -> ScanMode:
        return self._mode

    def set_mode(self, mode: Union[ScanMode, str]) -> None:
        """Switch mode; clears the place-in chain and the single-shot notice."""
        mode = ScanMode(mode)
        if mode == self._mode:
            return
        logger.info("Scan mode %s -> %s", self._mode.value, mode.value)
        self._mode = mode
        self._generation += 1
        self._place_in.reset()
        self.notice = None

    async def on_event(self, event: DecodeEvent) -> str:
        return await self.on_decoded(event.payload, event.observed_at)

    async def on_decoded(self, payload: str, observed_at: Optional[float] = None) -> str:
        now = time.monotonic() if observed_at is None else observed_at
        if not self._cooldown.should_dispatch(payload, now):
            return COOLDOWN
        self._last_accepted_at = now
        self._feedback.flash()
        self._feedback.beep()

        mode, generation = self._mode, self._generation
        async with self._lock:
            if generation != self._generation:
                logger.debug("Dropping %r decoded before mode switch", payload)
                return STALE
            try:
                if mode == ScanMode.VIEW:
                    return await self._dispatch_view(payload, generation)
                return await self._dispatch_place_in(payload)
            except Exception as e:
                logger.exception("Scan handling failed for %r", payload)
                if self._notifier is not None:
                    self._notifier.error(f"Scan failed: {e}")
                return FAILED

    async def _dispatch_view(self, payload: str, generation: int) -> str:
        resolved = await self._view.resolve(payload)
        if generation != self._generation:
            return STALE
        if resolved is None:
            return IGNORED
        kind, item_id = resolved
        self._navigator.navigate(NavigationIntent(kind=kind, item_id=item_id, seq=next(self._nav_seq)))
        return NAVIGATE

    async def _dispatch_place_in(self, payload: str) -> str:
        item_id = extract_item_id(payload)
        if item_id is None:
            logger.debug("Place-in: ignoring foreign code %r", payload)
            return IGNORED
        return await self._place_in.handle(item_id)

    def is_inactive(self, now: Optional[float] = None) -> bool:
        """True when no decode was accepted for the inactivity window."""
        if now is None:
            now = time.monotonic()
        last = self._last_accepted_at if self._last_accepted_at is not None else self._started_at
        return (now - last) >= self._inactivity_sec

    def _on_notice(self, notice: Notice) -> None:
        self.notice = notice

    def status(self) -> dict:
        item = self._place_in.current_item
        return {
            "mode": self._mode.value,
            "holding": (
                {"id": item.id, "name": item.name, "is_container": item.is_container}
                if item is not None
                else None
            ),
            "notice": (
                {"level": self.notice.level, "message": self.notice.message}
                if self.notice is not None
                else None
            ),
            "inactive": self.is_inactive(),
            "cooldown_entries": len(self._cooldown),
        }
