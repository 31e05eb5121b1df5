"""Structured JSONL event logging for automation runs."""
import json
import logging
import os
import time

log = logging.getLogger(__name__)


class TaskEventLogger:
    """Writes one JSON line per event to a per-run JSONL file.

    All logging is best-effort: methods never raise exceptions. Safe to
    share between cluster worker threads (each event is a single write
    of one line). Supports context-manager protocol for automatic close.
    """

    def __init__(self, run_id: str, label: str = "run", log_dir: str = "data/logs/task_events"):
        self._run_id = run_id
        self._label = label
        self._f = None
        self.path = ""
        try:
            os.makedirs(log_dir, exist_ok=True)
            safe_label = label.replace("/", "_").replace("\\", "_")
            self.path = os.path.join(log_dir, f"{safe_label}_{run_id}.jsonl")
            self._f = open(self.path, "a", encoding="utf-8")
        except Exception as e:
            log.warning(f"TaskEventLogger: failed to open log file: {e}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _write(self, event: dict):
        if self._f is None:
            return
        try:
            event["ts"] = time.time()
            event["run_id"] = self._run_id
            event["label"] = self._label
            self._f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
            self._f.flush()
        except Exception as e:
            log.warning(f"TaskEventLogger: write failed: {e}")

    def log_task_start(self, task_id: str, worker: int, attempt: int, data_summary: str = ""):
        self._write({
            "event": "task_start",
            "task_id": task_id,
            "worker": worker,
            "attempt": attempt,
            "data": data_summary,
        })

    def log_task_result(self, task_id: str, worker: int, attempt: int, status: str,
                        duration: float, error_kind: str | None = None,
                        error: str | None = None, health_score: float | None = None):
        """Log the outcome of one task attempt.

        ``status`` is one of ``ok``, ``retry`` (failed, will run again) or
        ``failed`` (failed for good).
        """
        self._write({
            "event": "task_result",
            "task_id": task_id,
            "worker": worker,
            "attempt": attempt,
            "status": status,
            "duration": duration,
            "error_kind": error_kind,
            "error": error,
            "health_score": health_score,
        })

    def log_browser_recycled(self, worker: int, reason: str, tasks_served: int):
        self._write({
            "event": "browser_recycled",
            "worker": worker,
            "reason": reason,
            "tasks_served": tasks_served,
        })

    def log_run_end(self, stats: dict, duration: float, status: str = "ok"):
        self._write({
            "event": "run_end",
            "stats": stats,
            "duration": duration,
            "status": status,
        })

    def close(self):
        if self._f is not None:
            try:
                self._f.flush()
                self._f.close()
            except Exception:
                pass
            self._f = None
