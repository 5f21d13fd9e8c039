"""Decode events, scan mode, item references and navigation intents."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ScanMode(str, Enum):
    VIEW = "view"
    PLACE_IN = "place-in"


@dataclass(frozen=True)
class DecodeEvent:
    """One decoded symbol from the camera; observed_at is monotonic seconds."""
    payload: str
    observed_at: float


@dataclass
class CooldownEntry:
    payload: str
    expires_at: float


@dataclass(frozen=True)
class ItemRef:
    """Inventory record as far as scanning cares about it."""
    id: str
    name: str
    is_container: bool = False


@dataclass
class PlacementChainState:
    """In-memory Place-In state: the item waiting to be put somewhere."""
    current_item: Optional[ItemRef] = None

    @property
    def is_holding(self) -> bool:
        return self.current_item is not None


@dataclass(frozen=True)
class NavigationIntent:
    kind: str  # "detail" | "create"
    item_id: str
    seq: int = 0
