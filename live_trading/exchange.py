"""Exchange interface for live trading."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Mapping, Optional


class OrderSide(Enum):
    """Order direction."""

    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    """Order type."""

    MARKET = "MARKET"
    LIMIT = "LIMIT"


class MarketType(Enum):
    """Exchange market the executor trades on."""

    SPOT = "spot"
    FUTURES = "futures"


@dataclass(frozen=True)
class ExchangeConfig:
    """Configuration for exchange client."""

    api_key: str
    api_secret: str
    testnet: bool = True
    market_type: MarketType = MarketType.SPOT
    timeout: float = 5.0
    recv_window_ms: int = 5000
    proxies: Optional[Dict[str, str]] = None
    base_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.api_key.strip() or not self.api_secret.strip():
            raise ValueError("api key/secret required for live trading")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.recv_window_ms <= 0:
            raise ValueError("recv_window_ms must be positive")


@dataclass(frozen=True)
class OrderRequest:
    """Order to place on the exchange.

    Market orders are sized by ``notional`` (quote currency) unless
    ``quantity`` is given. Limit orders need both ``quantity`` and ``price``.
    """

    symbol: str
    notional: float
    side: OrderSide = OrderSide.BUY
    order_type: OrderType = OrderType.MARKET
    slippage_bps: int = 0
    metadata: Mapping[str, str] = field(default_factory=dict)
    quantity: Optional[float] = None
    price: Optional[float] = None


@dataclass(frozen=True)
class OrderAck:
    """Exchange acknowledgement of a placed order."""

    order_id: str
    submitted_at: datetime


class SubmissionError(RuntimeError):
    """Order could not be placed."""

    retryable = False


class InvalidOrder(SubmissionError):
    """Order was rejected locally before reaching the exchange."""


class TransportError(SubmissionError):
    """Network failure or timeout while talking to the exchange.

    The order may or may not have reached the exchange; callers must not
    resubmit blindly.
    """

    retryable = True


class OrderRejected(SubmissionError):
    """Exchange refused the order."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int | str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class AuthenticationError(OrderRejected):
    """Exchange refused the API key or signature."""


class Executor(ABC):
    """Order submission capability, selected once at startup."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs."""

    @abstractmethod
    def submit(self, request: OrderRequest) -> OrderAck:
        """Place an order.

        Raises:
            SubmissionError: If the order was not accepted
        """

    def close(self) -> None:
        """Release network resources."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DryRunExecutor(Executor):
    """Logs orders without sending anything to the exchange."""

    ORDER_ID = "dry-run"

    def __init__(
        self,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._log = logger or logging.getLogger(__name__)
        self._clock = clock

    @property
    def name(self) -> str:
        return "dry-run"

    def submit(self, request: OrderRequest) -> OrderAck:
        self._log.info(
            "DRY RUN - Would submit %s %s order: symbol=%s notional=%s",
            request.side.value,
            request.order_type.value,
            request.symbol,
            request.notional,
        )
        if not (math.isfinite(request.notional) and request.notional > 0):
            raise InvalidOrder(f"invalid notional {request.notional}")
        return OrderAck(order_id=self.ORDER_ID, submitted_at=self._clock())
