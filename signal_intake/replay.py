"""Replay recorded messages from a JSON-lines file."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator

from .models import InboundMessage, to_datetime


class ReplayFileSource:
    """Message source reading one JSON object per line.

    Each line holds ``id`` and ``text`` plus optional ``timestamp`` (epoch
    seconds or ISO-8601) and ``channel_id``. Blank lines are ignored.
    """

    def __init__(self, path: Path, logger: logging.Logger | None = None) -> None:
        self._path = path
        self._log = logger or logging.getLogger(__name__)

    def iter_messages(self, stop_event: threading.Event) -> Iterator[InboundMessage]:
        with self._path.open("r", encoding="utf-8") as handle:
            for line_no, raw_line in enumerate(handle, start=1):
                if stop_event.is_set():
                    return
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise ValueError(f"{self._path}:{line_no}: invalid JSON: {exc}") from exc
                if not isinstance(payload, dict):
                    raise ValueError(f"{self._path}:{line_no}: expected a JSON object")
                yield self._to_message(payload, line_no)
        self._log.info("Replay of %s finished", self._path)

    def _to_message(self, payload: Dict[str, Any], line_no: int) -> InboundMessage:
        try:
            message_id = int(payload.get("id", line_no))
            channel_raw = payload.get("channel_id")
            channel_id = int(channel_raw) if channel_raw is not None else None
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{self._path}:{line_no}: invalid id: {exc}") from exc
        return InboundMessage(
            message_id=message_id,
            text=str(payload.get("text", "")),
            timestamp=_parse_timestamp(payload.get("timestamp"), self._path, line_no),
            channel_id=channel_id,
        )


def _parse_timestamp(value: Any, path: Path, line_no: int) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if isinstance(value, (int, float)):
        return to_datetime(float(value))
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"{path}:{line_no}: invalid timestamp {value!r}") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment
