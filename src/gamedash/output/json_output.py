"""JSON envelopes for piped CLI output.

Every document carries ``ok``, ``command`` and an ISO-8601 UTC
``timestamp``; successes add ``data`` and failures add
``error: {code, message, ...}``.  Streaming commands (``console``,
``watch``) emit one compact envelope per line so consumers can read
them incrementally.
"""

from __future__ import annotations

import dataclasses
import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


def to_jsonable(obj: Any) -> Any:
    """Reduce models, dataclasses and enums to plain JSON values.

    Pydantic models are dumped by alias without ``None`` fields, which
    keeps TPS windows under their wire names (``1m``, ``5m``, ``15m``).
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(by_alias=True, exclude_none=True)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {key: to_jsonable(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    return obj


def _dump(ok: bool, command: str, body: dict[str, Any], *, compact: bool) -> str:
    document = {"ok": ok, "command": command, **body}
    document["timestamp"] = datetime.now(UTC).isoformat()
    return json.dumps(document, indent=None if compact else 2, default=str)


def format_json_response(*, data: Any, command: str) -> str:
    return _dump(True, command, {"data": to_jsonable(data)}, compact=False)


def format_json_line(*, data: Any, command: str) -> str:
    """Single-line success envelope for streamed items."""
    return _dump(True, command, {"data": to_jsonable(data)}, compact=True)


def format_json_error(*, code: str, message: str, command: str, **extra: Any) -> str:
    """Error envelope; *extra* keys are merged into the ``error`` object."""
    error = {"code": code, "message": message, **extra}
    return _dump(False, command, {"error": error}, compact=False)
