from __future__ import annotations
from typing import Any, Callable, Dict, Optional

ProgressCallback = Callable[[Dict[str, Any]], None]


class Progress:
    """
    Thin wrapper around an optional on_progress callback.
    Events are dicts: {"phase": "open.load_meta", "pct": 50, "msg": "..."}.
    """
    def __init__(self, cb: Optional[ProgressCallback] = None) -> None:
        self.cb = cb

    def emit(self, phase: str, pct: int = 100, msg: str = "", **extra: Any) -> None:
        if self.cb is None:
            return
        evt: Dict[str, Any] = {"phase": phase, "pct": int(pct)}
        if msg:
            evt["msg"] = msg
        evt.update(extra)
        self.cb(evt)
