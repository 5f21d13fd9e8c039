"""Power Mode capture: photo references, drafts and upload-ready bundles."""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class PhotoRef:
    """Reference to an already-captured image (opaque id)."""
    photo_id: str
    captured_at: float = 0.0


@dataclass
class CaptureDraft:
    """Editable draft for the next bundle: metadata fields plus attached photos."""
    metadata: Dict[str, Any] = field(default_factory=dict)
    photos: List[PhotoRef] = field(default_factory=list)

    def photo_ids(self) -> List[str]:
        return [p.photo_id for p in self.photos]


@dataclass(frozen=True)
class CaptureBundle:
    """One voice note plus zero or more photos; immutable once queued."""
    created_at: float
    audio_blob: bytes
    photo_refs: Tuple[PhotoRef, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_draft(cls, draft: CaptureDraft, audio_blob: bytes, created_at: float) -> "CaptureBundle":
        return cls(
            created_at=created_at,
            audio_blob=audio_blob,
            photo_refs=tuple(draft.photos),
            metadata=MappingProxyType(dict(draft.metadata)),
        )

    def photo_ids(self) -> List[str]:
        return [p.photo_id for p in self.photo_refs]
