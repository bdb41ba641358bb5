"""
Trace logging for recipe publishes.

Appends one JSON line per publish call so runs can be audited and replayed.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any

from ..core.config import get_settings
from ..schemas.publish import PublishResult

logger = logging.getLogger(__name__)


class PublishTraceLogger:
    """Append-only JSONL logger for publish outcomes."""

    def __init__(self, log_path: Path | None = None):
        self.log_path = log_path or get_settings().trace_log_path
        self._lock = Lock()

    def log_publish(
        self,
        request_id: str,
        recipe_name: str | None,
        result: PublishResult,
        metadata: dict | None = None,
    ) -> None:
        """Persist a single publish trace as a JSON line."""

        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "recipe_name": recipe_name,
            "success": result.success,
            "state": result.state.value,
            "error_kind": result.error_kind,
            "error": result.error,
            "post_id": result.content_id,
            "taxonomies": {
                a.taxonomy: {"outcome": a.outcome, "term_ids": a.resolved_term_ids}
                for a in result.taxonomy_assignments
            },
            "metadata": metadata or {},
        }

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            serialized = json.dumps(entry, ensure_ascii=False)
            with self._lock:
                with self.log_path.open("a", encoding="utf-8") as log_file:
                    log_file.write(serialized + "\n")
        except OSError as exc:
            logger.warning(f"Failed to persist publish trace: {exc}")


_TRACE_LOGGER: PublishTraceLogger | None = None


def get_trace_logger() -> PublishTraceLogger:
    """Return a singleton PublishTraceLogger instance."""
    global _TRACE_LOGGER
    if _TRACE_LOGGER is None:
        _TRACE_LOGGER = PublishTraceLogger()
    return _TRACE_LOGGER


def set_trace_logger(logger_instance: PublishTraceLogger | None) -> None:
    """Override the global trace logger (primarily for tests)."""
    global _TRACE_LOGGER
    _TRACE_LOGGER = logger_instance
