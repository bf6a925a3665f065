"""JSON log line helper.

Hierarchy operations log one JSON object per line so any collector can
index them by ``event`` without a custom formatter.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from orgtree.core.request_context import get_request_id


def log_json(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit ``event`` with ``fields`` as a single JSON log line."""
    if not logger.isEnabledFor(level):
        return

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "event": event,
    }
    request_id = get_request_id()
    if request_id:
        payload["request_id"] = request_id

    payload.update({key: value for key, value in fields.items() if value is not None})
    logger.log(level, json.dumps(payload, default=str))


def configure_logging(level: str = "INFO") -> None:
    """Install a plain message formatter on the root logger (JSON lines pass through)."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(level.upper())
