"""Protocol interfaces for the remote service and device collaborators."""
from typing import Optional, Protocol

from boxscan.models.capture import CaptureBundle
from boxscan.models.scan import ItemRef, NavigationIntent


class ItemLookup(Protocol):
    async def get_item(self, item_id: str) -> ItemRef: ...


class InventoryService(ItemLookup, Protocol):
    async def store_item(self, item_id: str, container_id: str) -> None: ...

    async def assign_photo(self, photo_id: str, item_id: str) -> None: ...


class CaptureUploader(Protocol):
    async def upload_capture(self, bundle: CaptureBundle) -> Optional[dict]: ...


class Recorder(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> bytes: ...

    def cancel(self) -> None: ...


class Navigator(Protocol):
    def navigate(self, intent: NavigationIntent) -> None: ...
