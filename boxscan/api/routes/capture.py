"""Power Mode capture: recording segments, draft metadata and photo pool."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from boxscan.api.state import AppState, get_state
from boxscan.core.errors import (
    CaptureStateError,
    NotFoundError,
    PhotoUnavailableError,
    RecordingError,
    ScanPipelineError,
    TransientNetworkError,
    ValidationError,
)
from boxscan.models.capture import CaptureBundle, CaptureDraft, PhotoRef

router = APIRouter()


class DraftBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = None
    container: Optional[str] = None
    extra: Dict[str, Any] = {}


class PhotoBody(BaseModel):
    photo_id: str
    captured_at: Optional[float] = None


def _photo_to_dict(ref: PhotoRef) -> dict:
    return {"photo_id": ref.photo_id, "captured_at": ref.captured_at}


def _draft_to_dict(state: AppState, draft: Optional[CaptureDraft]) -> dict:
    composer = state.composer
    return {
        "active": composer.active,
        "recording": composer.recording,
        "recording_elapsed_sec": round(composer.recording_elapsed(), 1),
        "limit_reached": composer.limit_reached,
        "metadata": dict(draft.metadata) if draft else {},
        "photos": [_photo_to_dict(p) for p in draft.photos] if draft else [],
    }


def _bundle_to_dict(bundle: CaptureBundle) -> dict:
    return {
        "created_at": bundle.created_at,
        "audio_bytes": len(bundle.audio_blob),
        "photos": bundle.photo_ids(),
        "metadata": dict(bundle.metadata),
    }


def _http_error(e: ScanPipelineError) -> HTTPException:
    if isinstance(e, (CaptureStateError, PhotoUnavailableError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (RecordingError, TransientNetworkError)):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


@router.get("/draft")
def get_draft(state: AppState = Depends(get_state)):
    return _draft_to_dict(state, state.composer.draft)


@router.patch("/draft")
async def update_draft(body: DraftBody, state: AppState = Depends(get_state)):
    """Edit draft fields; fields left out are unchanged."""
    fields = body.model_dump(exclude={"extra"}, exclude_unset=True)
    fields.update(body.extra)
    try:
        draft = state.composer.update_metadata(**fields)
    except ScanPipelineError as e:
        raise _http_error(e)
    return _draft_to_dict(state, draft)


@router.post("/begin")
async def begin_segment(state: AppState = Depends(get_state)):
    """Enter Power Mode (if needed) and start recording a voice note."""
    try:
        draft = await state.composer.begin_segment()
    except ScanPipelineError as e:
        raise _http_error(e)
    return _draft_to_dict(state, draft)


@router.post("/end")
async def end_segment(state: AppState = Depends(get_state)):
    """Stop recording and queue the bundle for upload."""
    try:
        bundle = await state.composer.end_segment()
    except ScanPipelineError as e:
        raise _http_error(e)
    return {"bundle": _bundle_to_dict(bundle), "upload_backlog": state.upload_queue.backlog}


@router.post("/next")
async def next_item(state: AppState = Depends(get_state)):
    """Queue the current bundle and start recording the next item."""
    try:
        bundle = await state.composer.next_item()
    except ScanPipelineError as e:
        raise _http_error(e)
    return {"bundle": _bundle_to_dict(bundle), "upload_backlog": state.upload_queue.backlog}


@router.post("/discard")
async def discard_draft(state: AppState = Depends(get_state)):
    """Throw the draft away; attached photos return to the pool."""
    try:
        returned = state.composer.discard()
    except ScanPipelineError as e:
        raise _http_error(e)
    return {"returned_photos": returned}


@router.post("/exit")
async def exit_power_mode(state: AppState = Depends(get_state)):
    state.composer.deactivate()
    return {"active": False}


@router.get("/photos")
def list_photos(state: AppState = Depends(get_state)):
    """Available (unattached) photos and the pool revision for change polling."""
    return {
        "revision": state.photo_pool.revision,
        "photos": [_photo_to_dict(p) for p in state.photo_pool.available()],
    }


@router.post("/photos")
async def add_photo(body: PhotoBody, state: AppState = Depends(get_state)):
    """Register a freshly captured photo as available."""
    ref = state.photo_pool.add(body.photo_id, body.captured_at)
    return _photo_to_dict(ref)


@router.post("/photos/{photo_id}/attach")
async def attach_photo(photo_id: str, state: AppState = Depends(get_state)):
    try:
        state.composer.attach_photo(photo_id)
    except ScanPipelineError as e:
        raise _http_error(e)
    return _draft_to_dict(state, state.composer.draft)


@router.post("/photos/{photo_id}/detach")
async def detach_photo(photo_id: str, state: AppState = Depends(get_state)):
    try:
        if not state.composer.detach_photo(photo_id):
            raise HTTPException(status_code=404, detail="Photo not attached")
    except ScanPipelineError as e:
        raise _http_error(e)
    return _draft_to_dict(state, state.composer.draft)


@router.post("/photos/{photo_id}/assign/{item_id}")
async def assign_photo(photo_id: str, item_id: str, state: AppState = Depends(get_state)):
    """Bind an available photo to a saved item."""
    try:
        await state.composer.assign_photo_to_item(photo_id, item_id)
    except ScanPipelineError as e:
        raise _http_error(e)
    return {"ok": True, "photo_id": photo_id, "item_id": item_id}
