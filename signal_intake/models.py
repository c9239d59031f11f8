from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple


def to_datetime(seconds: float) -> datetime:
    """Convert seconds since epoch to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """Normalized chat message handed over by a transport."""

    message_id: int
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    channel_id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ParsedSignal:
    """Trading instruction extracted from an inbound message."""

    symbol: str  # canonical exchange symbol, e.g. TWIFUSDT
    pair_code: str  # pair field from the link, e.g. TWIF_USDT
    message: InboundMessage


@dataclass(frozen=True)
class TemplateRule:
    """Message template a signal has to match before it is traded."""

    required_tokens: Tuple[str, ...] = ()
    link_host: str = "www.mexc.com"
    link_path_prefix: str = "/exchange/"
    pair_separator: str = "_"

    def __post_init__(self) -> None:
        # Accept lists from callers but keep the rule hashable.
        object.__setattr__(self, "required_tokens", tuple(self.required_tokens))
        for token in self.required_tokens:
            if not token:
                raise ValueError("required_tokens must not contain empty values")
