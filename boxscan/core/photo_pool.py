"""Pool of captured photos not yet bound to a bundle or item."""
import logging
import time
from typing import Callable, Dict, List, Optional, Set

from boxscan.core.errors import PhotoUnavailableError
from boxscan.models.capture import PhotoRef

logger = logging.getLogger(__name__)

# Pool change events passed to subscribers
ADDED = "added"
TAKEN = "taken"
RELEASED = "released"
FORGOTTEN = "forgotten"

PoolListener = Callable[[str, PhotoRef], None]


class PhotoPool:
    """Available (pending) photos plus the ones currently attached to a draft.

    Only the capture composer mutates the pool. Anything else showing photos
    (e.g. a gallery) subscribes and reacts to change events.
    """

    def __init__(self) -> None:
        self._available: Dict[str, PhotoRef] = {}
        self._attached: Dict[str, PhotoRef] = {}
        self._listeners: List[PoolListener] = []
        self.revision = 0

    def subscribe(self, listener: PoolListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: PoolListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def available(self) -> List[PhotoRef]:
        return list(self._available.values())

    def attached_ids(self) -> Set[str]:
        return set(self._attached)

    def is_available(self, photo_id: str) -> bool:
        return photo_id in self._available

    def add(self, photo_id: str, captured_at: Optional[float] = None) -> PhotoRef:
        """Register a freshly captured photo as available."""
        existing = self._available.get(photo_id) or self._attached.get(photo_id)
        if existing is not None:
            return existing
        ref = PhotoRef(photo_id=photo_id, captured_at=captured_at if captured_at is not None else time.time())
        self._available[photo_id] = ref
        self._changed(ADDED, ref)
        return ref

    def take(self, photo_id: str) -> PhotoRef:
        """Move an available photo to the attached set."""
        ref = self._available.pop(photo_id, None)
        if ref is None:
            raise PhotoUnavailableError(f"Photo {photo_id} is not available")
        self._attached[photo_id] = ref
        self._changed(TAKEN, ref)
        return ref

    def release(self, photo_id: str) -> bool:
        """Return an attached photo to the available set; False if it was not attached."""
        ref = self._attached.pop(photo_id, None)
        if ref is None:
            return False
        self._available[photo_id] = ref
        self._changed(RELEASED, ref)
        return True

    def forget(self, photo_id: str) -> bool:
        """Drop a photo for good (bound to a queued bundle or a saved item)."""
        ref = self._attached.pop(photo_id, None) or self._available.pop(photo_id, None)
        if ref is None:
            return False
        self._changed(FORGOTTEN, ref)
        return True

    def _changed(self, event: str, ref: PhotoRef) -> None:
        self.revision += 1
        logger.debug("Photo pool %s %s (rev %d)", event, ref.photo_id, self.revision)
        for listener in list(self._listeners):
            listener(event, ref)
