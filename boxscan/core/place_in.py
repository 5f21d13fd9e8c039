"""Place-In mode: scan an item, then a container, and the item is stored there.

After a successful store the container becomes the held item, so scanning
item -> box -> shelf -> room nests each level into the next without any
confirmation step.
"""
import logging
from typing import Optional, Tuple

from boxscan.core.errors import NotFoundError, ScanPipelineError, StaleResultDiscard
from boxscan.core.interfaces import InventoryService
from boxscan.core.notifications import ERROR, INFO, Notifier
from boxscan.models.scan import ItemRef, PlacementChainState

logger = logging.getLogger(__name__)

# Outcomes of one handled scan
HELD = "held"
STORED = "stored"
UNCHANGED = "unchanged"
NOT_FOUND = "not_found"
FAILED = "failed"
STALE = "stale"


class PlaceInChain:
    """Empty / Holding(item) state machine; one instance per scanning session."""

    def __init__(self, service: InventoryService, notifier: Optional[Notifier] = None) -> None:
        self._service = service
        self._notifier = notifier
        self._state = PlacementChainState()
        self._epoch = 0
        self.last_placement: Optional[Tuple[ItemRef, ItemRef]] = None

    @property
    def current_item(self) -> Optional[ItemRef]:
        return self._state.current_item

    @property
    def is_holding(self) -> bool:
        return self._state.is_holding

    def reset(self) -> None:
        """Back to Empty; results of lookups still in flight will be dropped."""
        self._state.current_item = None
        self._epoch += 1

    async def handle(self, item_id: str) -> str:
        epoch = self._epoch
        try:
            return await self._handle(item_id, epoch)
        except StaleResultDiscard:
            logger.debug("Place-in: dropped stale result for %s", item_id)
            return STALE

    async def _handle(self, item_id: str, epoch: int) -> str:
        try:
            record = await self._service.get_item(item_id)
        except NotFoundError:
            self._ensure_current(epoch)
            self._notify(INFO, f"Unknown label {item_id}")
            return NOT_FOUND
        except ScanPipelineError as e:
            self._ensure_current(epoch)
            self._notify(ERROR, f"Lookup failed: {e}")
            return FAILED
        self._ensure_current(epoch)

        holding = self._state.current_item
        if holding is None:
            self._hold(record)
            return HELD
        if record.id == holding.id:
            # Same label again: replace with the fresh record, never store into itself
            self._hold(record)
            return UNCHANGED
        if not record.is_container:
            self._hold(record)
            return HELD

        try:
            await self._service.store_item(holding.id, record.id)
        except ScanPipelineError as e:
            self._ensure_current(epoch)
            self._notify(ERROR, f"Could not store {holding.name or holding.id} in {record.name or record.id}: {e}")
            return FAILED
        if epoch != self._epoch:
            logger.info("Place-in: stored %s in %s after session ended", holding.id, record.id)
            raise StaleResultDiscard(item_id)
        self.last_placement = (holding, record)
        logger.info("Place-in: stored %s in %s", holding.id, record.id)
        self._notify(INFO, f"Stored {holding.name or holding.id} in {record.name or record.id}")
        self._hold(record)
        return STORED

    def _hold(self, item: ItemRef) -> None:
        self._state.current_item = item

    def _ensure_current(self, epoch: int) -> None:
        if epoch != self._epoch:
            raise StaleResultDiscard(f"epoch {epoch} != {self._epoch}")

    def _notify(self, level: str, message: str) -> None:
        if self._notifier is not None:
            self._notifier.publish(level, message)
