"""Upload queue backlog for the capture progress indicator."""
from fastapi import APIRouter, Depends

from boxscan.api.state import AppState, get_state

router = APIRouter()


@router.get("/")
def get_queue(state: AppState = Depends(get_state)):
    """Backlog count, per-entry attempts and totals; head entry is the one being uploaded."""
    worker = state.upload_queue
    return {
        "backlog": worker.backlog,
        "running": worker.is_running,
        "uploaded": worker.uploaded,
        "abandoned": worker.abandoned,
        "entries": [
            {
                "created_at": e.bundle.created_at,
                "photos": len(e.bundle.photo_refs),
                "attempt": e.attempt,
                "next_retry_at": e.next_retry_at,
            }
            for e in worker.snapshot()
        ],
    }
