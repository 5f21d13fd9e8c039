"""Extract inventory item ids from decoded label payloads."""
import re
from typing import Optional

from boxscan.config import LABEL_HOST

# Printed labels encode <host>/<uuid>?c=<short code>. The host must start the
# payload or follow "/" or "."; the id is the hex run after it, whatever follows.
_LABEL_URL_REGEX = re.compile(
    r"(?:^|[/.])" + re.escape(LABEL_HOST) + r"/([a-f0-9-]+)",
    re.IGNORECASE,
)
_UUID_REGEX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def extract_item_id(payload: str) -> Optional[str]:
    """Return the item id embedded in a label URL or a bare UUID, else None (not our code)."""
    text = (payload or "").strip()
    if not text:
        return None
    match = _LABEL_URL_REGEX.search(text)
    if match:
        return match.group(1)
    if _UUID_REGEX.match(text):
        return text
    return None
