from __future__ import annotations

import http.client
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import ProxyHandler, Request, build_opener

from .models import InboundMessage, to_datetime


@dataclass(frozen=True)
class TelegramConfig:
    """Configuration for consuming updates from the Telegram Bot API."""

    bot_token: str
    allowed_chat_ids: Tuple[int, ...] = ()
    poll_timeout_seconds: int = 10
    max_update_batch: int = 100
    proxy: str | None = None
    retry_delay: float = 2.0

    def __post_init__(self) -> None:
        if not self.bot_token.strip():
            raise ValueError("Telegram bot token must not be empty")
        if self.poll_timeout_seconds <= 0:
            raise ValueError("Telegram poll_timeout_seconds must be positive")
        if self.max_update_batch < 0:
            raise ValueError("Telegram max_update_batch must be non-negative")
        if self.retry_delay < 0:
            raise ValueError("Telegram retry_delay must be non-negative")
        object.__setattr__(self, "allowed_chat_ids", tuple(self.allowed_chat_ids))

    def as_proxy_dict(self) -> Dict[str, str] | None:
        if not self.proxy:
            return None
        proxy = self.proxy.strip()
        if not proxy:
            return None
        return {"http": proxy, "https": proxy}


class TelegramListener:
    """Long-polling consumer of ``getUpdates`` yielding normalized messages."""

    def __init__(
        self, config: TelegramConfig, logger: logging.Logger | None = None
    ) -> None:
        self._config = config
        self._log = logger or logging.getLogger(__name__)
        self._get_updates_url = (
            f"https://api.telegram.org/bot{self._config.bot_token}/getUpdates"
        )
        self._allowed_chats = frozenset(config.allowed_chat_ids)
        # Long polls hold the connection open for the poll timeout.
        self._http_timeout = config.poll_timeout_seconds + 5
        handlers = []
        proxy_dict = config.as_proxy_dict()
        if proxy_dict:
            handlers.append(ProxyHandler(proxy_dict))
        self._opener = build_opener(*handlers)

    def fetch_updates(self, offset: int) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "timeout": self._config.poll_timeout_seconds,
            "allowed_updates": json.dumps(["message", "channel_post"]),
        }
        if offset > 0:
            params["offset"] = offset
        if self._config.max_update_batch > 0:
            params["limit"] = self._config.max_update_batch

        request = Request(f"{self._get_updates_url}?{urlencode(params)}")
        try:
            with self._opener.open(request, timeout=self._http_timeout) as response:
                body = response.read()
        except HTTPError as exc:
            raise RuntimeError(f"Telegram getUpdates status {exc.code}") from exc
        except URLError as exc:
            raise RuntimeError(
                f"Telegram connection error: {exc.reason or exc}"
            ) from exc
        except (OSError, http.client.HTTPException) as exc:
            # Read timeouts and dropped connections escape URLError wrapping.
            raise RuntimeError(f"Telegram connection error: {exc!r}") from exc

        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise RuntimeError(f"Decode Telegram response: {exc}") from exc
        if not isinstance(payload, dict):
            raise RuntimeError("Decode Telegram response: expected a JSON object")
        if not payload.get("ok"):
            description = payload.get("description", "unknown error")
            raise RuntimeError(f"Telegram getUpdates not ok: {description}")
        result = payload.get("result") or []
        if not isinstance(result, list):
            raise RuntimeError("Decode Telegram response: result is not a list")
        return [item for item in result if isinstance(item, dict)]

    def iter_messages(self, stop_event: threading.Event) -> Iterator[InboundMessage]:
        """Yield messages until ``stop_event`` is set."""
        offset = 0
        self._log.info(
            "Telegram listener started (poll timeout %ss, %s allowed chat(s))",
            self._config.poll_timeout_seconds,
            len(self._allowed_chats) or "all",
        )
        while not stop_event.is_set():
            try:
                updates = self.fetch_updates(offset)
            except RuntimeError as exc:
                if stop_event.is_set():
                    break
                self._log.error("Telegram fetch failed: %s", exc)
                stop_event.wait(self._config.retry_delay)
                continue

            for update in updates:
                update_id = update.get("update_id")
                if isinstance(update_id, int):
                    offset = update_id + 1
                message = self.extract_message(update)
                if message is None:
                    continue
                if self._allowed_chats and message.channel_id not in self._allowed_chats:
                    self._log.debug("Skipping message from chat %s", message.channel_id)
                    continue
                yield message
        self._log.info("Telegram listener stopped")

    @staticmethod
    def extract_message(update: Dict[str, Any]) -> Optional[InboundMessage]:
        """Normalize a raw update; channel posts win over direct messages."""
        source = update.get("channel_post") or update.get("message")
        if not isinstance(source, dict):
            return None
        chat = source.get("chat")
        if not isinstance(chat, dict):
            return None
        text = source.get("text") or ""
        if not text:
            return None
        try:
            chat_id: Optional[int] = int(chat["id"])
        except (KeyError, TypeError, ValueError):
            chat_id = None
        return InboundMessage(
            message_id=int(source.get("message_id", 0) or 0),
            text=text,
            timestamp=to_datetime(float(source.get("date", 0) or 0)),
            channel_id=chat_id,
        )
