"""Scanner overlay: mode, decoded payloads, status and navigation intents."""
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from boxscan.api.state import AppState, get_state
from boxscan.core.scan_router import NAVIGATE
from boxscan.models.scan import NavigationIntent, ScanMode

router = APIRouter()


class ModeBody(BaseModel):
    mode: ScanMode


class DecodeBody(BaseModel):
    payload: str


def _intent_to_dict(intent: NavigationIntent) -> dict:
    return {"seq": intent.seq, "kind": intent.kind, "item_id": intent.item_id}


@router.get("/status")
def get_status(state: AppState = Depends(get_state)):
    """Mode, Place-In holding, last notice, feedback counters and upload backlog."""
    status = state.router.status()
    status["feedback"] = state.feedback.to_dict()
    status["upload_backlog"] = state.upload_queue.backlog
    return status


@router.put("/mode")
async def set_mode(body: ModeBody, state: AppState = Depends(get_state)):
    """Switch between view and place-in; clears any Place-In chain."""
    state.router.set_mode(body.mode)
    return {"mode": state.router.mode.value}


@router.post("/decode")
async def decode(body: DecodeBody, state: AppState = Depends(get_state)):
    """One decoded payload from the overlay's symbol reader."""
    if not body.payload:
        raise HTTPException(status_code=400, detail="Empty payload")
    outcome = await state.router.on_decoded(body.payload, time.monotonic())
    # No await between navigate() and the return, so latest() is this decode's intent
    produced = state.navigation.latest() if outcome == NAVIGATE else None
    return {
        "outcome": outcome,
        "mode": state.router.mode.value,
        "navigation": _intent_to_dict(produced) if produced else None,
    }


@router.post("/simulate")
def simulate_decode(
    payload: Optional[str] = None,
    state: AppState = Depends(get_state),
):
    """For development: push a payload through the camera source."""
    if not payload:
        raise HTTPException(status_code=400, detail="Provide payload")
    try:
        state.camera_source.submit(payload)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True, "payload": payload}


@router.get("/navigation")
def get_navigation(since: int = 0, state: AppState = Depends(get_state)):
    """Navigation intents newer than `since` (detail or create)."""
    return [_intent_to_dict(i) for i in state.navigation.since(since)]
