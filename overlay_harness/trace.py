"""JSONL trace of harness waits and synthesized interactions."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional


class HarnessTrace:
    """Writes one JSON object per completed wait or interaction."""

    def __init__(self, path: Path, *, run_id: str = "") -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        self.run_id = run_id
        self._step = 0
        self._events_file = path.open("a", encoding="utf-8")

    @property
    def step_count(self) -> int:
        return self._step

    def log_event(
        self,
        *,
        operation: str,
        subject: str,
        outcome: str,
        attempts: int = 0,
        elapsed_ms: Optional[float] = None,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        self._step += 1
        payload = {
            "ts": time.time(),
            "run_id": self.run_id,
            "step": self._step,
            "operation": operation,
            "subject": subject,
            "outcome": outcome,
            "attempts": attempts,
            "elapsed_ms": elapsed_ms,
            "error": error,
            "metadata": metadata or {},
        }
        self._events_file.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        self._events_file.flush()
        return self._step

    def close(self) -> None:
        if not self._events_file.closed:
            self._events_file.close()

    def __enter__(self) -> "HarnessTrace":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open_trace(path: Optional[Path], *, run_id: str = "") -> Optional[HarnessTrace]:
    if path is None:
        return None
    return HarnessTrace(path, run_id=run_id)
