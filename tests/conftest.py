from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from live_trading.exchange import Executor, OrderAck, OrderRequest
from signal_intake.models import InboundMessage, ParsedSignal

SIGNAL_TEXT = (
    "MEGA PUMP SIGNAL\n"
    "Coin: TWIF\n"
    "Buy here: https://www.mexc.com/exchange/TWIF_USDT\n"
    "Targets: 5% 10% 20%"
)


class FakeClock:
    """Settable clock for time-dependent components."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingExecutor(Executor):
    """Executor double that records requests and optionally raises."""

    def __init__(self, error: Exception | None = None) -> None:
        self.requests: List[OrderRequest] = []
        self.error = error
        self.closed = False

    @property
    def name(self) -> str:
        return "recording"

    def submit(self, request: OrderRequest) -> OrderAck:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return OrderAck(
            order_id=f"order-{len(self.requests)}",
            submitted_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_message() -> Callable[..., InboundMessage]:
    def _make(text: str = SIGNAL_TEXT, message_id: int = 1, channel_id: int | None = -100) -> InboundMessage:
        return InboundMessage(
            message_id=message_id,
            text=text,
            timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            channel_id=channel_id,
        )

    return _make


@pytest.fixture
def make_signal(make_message: Callable[..., InboundMessage]) -> Callable[[str], ParsedSignal]:
    def _make(symbol: str = "TWIFUSDT") -> ParsedSignal:
        return ParsedSignal(symbol=symbol, pair_code=symbol, message=make_message())

    return _make
