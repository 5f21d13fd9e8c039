"""Transient user-facing notices (toasts) published by the pipeline."""
import itertools
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
ERROR = "error"

_LOG_LEVELS = {INFO: logging.INFO, WARNING: logging.WARNING, ERROR: logging.ERROR}


@dataclass(frozen=True)
class Notice:
    seq: int
    level: str
    message: str
    created_at: float


class Notifier:
    """Keeps the most recent notices for the UI to poll, newest last."""

    def __init__(self, maxlen: int = 50) -> None:
        self._notices: Deque[Notice] = deque(maxlen=maxlen)
        self._seq = itertools.count(1)
        self._listeners: List[Callable[[Notice], None]] = []

    def publish(self, level: str, message: str) -> Notice:
        notice = Notice(seq=next(self._seq), level=level, message=message, created_at=time.time())
        self._notices.append(notice)
        logger.log(_LOG_LEVELS.get(level, logging.INFO), "%s", message)
        for listener in list(self._listeners):
            listener(notice)
        return notice

    def info(self, message: str) -> Notice:
        return self.publish(INFO, message)

    def warning(self, message: str) -> Notice:
        return self.publish(WARNING, message)

    def error(self, message: str) -> Notice:
        return self.publish(ERROR, message)

    def subscribe(self, listener: Callable[[Notice], None]) -> None:
        self._listeners.append(listener)

    def since(self, seq: int = 0) -> List[Notice]:
        return [n for n in self._notices if n.seq > seq]

    def latest(self) -> Optional[Notice]:
        return self._notices[-1] if self._notices else None
