"""Inventory service client via requests; blocking calls run off the event loop."""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from boxscan.config import HTTP_TIMEOUT_SEC, INVENTORY_TOKEN, INVENTORY_URL
from boxscan.core.errors import (
    NotFoundError,
    ServiceError,
    TransientNetworkError,
    ValidationError,
)
from boxscan.models.capture import CaptureBundle
from boxscan.models.scan import ItemRef

logger = logging.getLogger(__name__)

_CONTAINER_TYPES = ("CONTAINER", "LOCATION")
_TRANSIENT_STATUS = (408, 429, 502, 503, 504)


def item_from_record(data: Dict[str, Any]) -> ItemRef:
    """Build an ItemRef from an item record (id may be 'id' or 'uuid')."""
    item_id = data.get("id") or data.get("uuid")
    if not item_id:
        raise ServiceError("Item record without id")
    is_container = bool(data.get("isContainer")) or (
        str(data.get("type") or "").upper() in _CONTAINER_TYPES
    )
    return ItemRef(id=str(item_id), name=str(data.get("name") or ""), is_container=is_container)


def raise_for_status(resp: requests.Response, what: str) -> None:
    """Map an HTTP response onto the error taxonomy; return quietly on 2xx."""
    code = resp.status_code
    if 200 <= code < 300:
        return
    detail = f"{what}: HTTP {code}"
    if code == 404:
        raise NotFoundError(detail)
    if code in _TRANSIENT_STATUS:
        raise TransientNetworkError(detail)
    if 400 <= code < 500:
        raise ValidationError(f"{detail} {_short_body(resp)}".rstrip())
    raise ServiceError(detail)


def _short_body(resp: requests.Response) -> str:
    try:
        return (resp.text or "")[:200]
    except Exception:
        return ""


class InventoryClient:
    """Talks to the remote inventory service (items, store, captures, gallery)."""

    def __init__(
        self,
        base_url: str = INVENTORY_URL,
        token: str = INVENTORY_TOKEN,
        timeout: float = HTTP_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    # Async API (used by the router, place-in chain and upload queue)

    async def get_item(self, item_id: str) -> ItemRef:
        return await asyncio.to_thread(self.get_item_sync, item_id)

    async def store_item(self, item_id: str, container_id: str) -> None:
        await asyncio.to_thread(self.store_item_sync, item_id, container_id)

    async def upload_capture(self, bundle: CaptureBundle) -> Optional[dict]:
        return await asyncio.to_thread(self.upload_capture_sync, bundle)

    async def assign_photo(self, photo_id: str, item_id: str) -> None:
        await asyncio.to_thread(self.assign_photo_sync, photo_id, item_id)

    # Blocking implementations

    def get_item_sync(self, item_id: str) -> ItemRef:
        resp = self._request("GET", f"/items/{item_id}")
        raise_for_status(resp, f"GET item {item_id}")
        return item_from_record(self._json(resp))

    def store_item_sync(self, item_id: str, container_id: str) -> None:
        resp = self._request("POST", f"/items/{item_id}/store/{container_id}")
        raise_for_status(resp, f"store {item_id} in {container_id}")

    def upload_capture_sync(self, bundle: CaptureBundle) -> Optional[dict]:
        created = datetime.fromtimestamp(bundle.created_at, tz=timezone.utc)
        stamp = created.strftime("%Y%m%d-%H%M%S")
        files = {"audio": (f"capture-{stamp}.wav", bundle.audio_blob, "audio/wav")}
        data = {
            "metadata": json.dumps(dict(bundle.metadata), ensure_ascii=False),
            "photos": json.dumps(bundle.photo_ids()),
            "createdAt": created.isoformat(),
        }
        resp = self._request("POST", "/captures", files=files, data=data)
        raise_for_status(resp, "upload capture")
        try:
            return resp.json()
        except ValueError:
            return None

    def assign_photo_sync(self, photo_id: str, item_id: str) -> None:
        resp = self._request("POST", f"/gallery/image/{photo_id}/assign/{item_id}")
        raise_for_status(resp, f"assign photo {photo_id} to {item_id}")

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (
            requests.ConnectionError,
            requests.Timeout,
            requests.exceptions.ChunkedEncodingError,
        ) as e:
            raise TransientNetworkError(f"{method} {path}: {e}") from e
        except requests.RequestException as e:
            raise ServiceError(f"{method} {path}: {e}") from e

    @staticmethod
    def _json(resp: requests.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError("Invalid JSON from inventory service") from e
        if not isinstance(data, dict):
            raise ServiceError("Unexpected item record shape")
        return data
