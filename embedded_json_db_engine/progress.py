from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], None]


class Progress:
    """
    Thin wrapper over the user's on_progress callback.
    Events are dicts: {"phase": "delete.start", "pct": 0, "msg": ""}.
    """
    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self._cb = callback

    def emit(self, phase: str, pct: int = 0, msg: str = "") -> None:
        if self._cb is None:
            return
        evt = {"phase": phase, "pct": max(0, min(100, int(pct))), "msg": msg}
        try:
            self._cb(evt)
        except Exception:
            logger.exception("on_progress callback failed for phase %s", phase)

    def step(self, phase: str, done: int, total: int) -> None:
        # Report at most ~20 intermediate steps per batch
        if self._cb is None or total <= 0:
            return
        every = max(1, total // 20)
        if done % every == 0 or done == total:
            self.emit(phase, done * 100 // total, f"{done}/{total}")
