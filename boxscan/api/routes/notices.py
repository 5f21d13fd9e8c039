"""Transient notices (toasts) for the UI."""
from fastapi import APIRouter, Depends

from boxscan.api.state import AppState, get_state

router = APIRouter()


@router.get("/")
def list_notices(since: int = 0, state: AppState = Depends(get_state)):
    """Notices newer than `since`, oldest first."""
    return [
        {"seq": n.seq, "level": n.level, "message": n.message, "created_at": n.created_at}
        for n in state.notifier.since(since)
    ]
