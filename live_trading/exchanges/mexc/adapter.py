"""MEXC exchange adapter implementing the shared Executor interface."""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional

from ...exchange import (
    Executor,
    ExchangeConfig,
    InvalidOrder,
    MarketType,
    OrderAck,
    OrderRequest,
    OrderType,
    SubmissionError,
)
from .client import MexcClient
from .utils import format_decimal, to_datetime


class MexcExchange(Executor):
    """MEXC spot order executor."""

    def __init__(
        self,
        config: ExchangeConfig,
        logger: Optional[logging.Logger] = None,
        client: Optional[MexcClient] = None,
    ) -> None:
        self._config = config
        self._log = logger or logging.getLogger(__name__)
        self._client = client or MexcClient(config, self._log)

    @property
    def name(self) -> str:
        return "mexc-rest"

    def submit(self, request: OrderRequest) -> OrderAck:
        if self._config.market_type != MarketType.SPOT:
            raise SubmissionError(
                f"market {self._config.market_type.value} not yet supported"
            )
        params = self.build_order_params(request)
        self._log.info(
            "MEXC: submitting %s %s order symbol=%s params=%s",
            request.side.value,
            request.order_type.value,
            params["symbol"],
            {k: v for k, v in params.items() if k not in ("symbol", "side", "type")},
        )
        payload = self._client.place_order(params)
        ack = OrderAck(
            order_id=str(payload.order_id),
            submitted_at=to_datetime(int(payload.transact_time or 0)),
        )
        self._log.info(
            "MEXC: order accepted order_id=%s transact_time=%s",
            ack.order_id,
            ack.submitted_at.isoformat(),
        )
        return ack

    @staticmethod
    def build_order_params(request: OrderRequest) -> Dict[str, str]:
        """Order fields before timestamp, recvWindow and signature are added."""
        symbol = request.symbol.strip().upper()
        if not symbol:
            raise InvalidOrder("symbol must not be empty")
        params: Dict[str, str] = {
            "symbol": symbol,
            "side": request.side.value,
            "type": request.order_type.value,
        }
        if request.order_type == OrderType.MARKET:
            if request.quantity is not None:
                if not _is_positive(request.quantity):
                    raise InvalidOrder(f"invalid quantity {request.quantity}")
                params["quantity"] = format_decimal(request.quantity)
            else:
                # quoteOrderQty targets the notional size.
                if not _is_positive(request.notional):
                    raise InvalidOrder(f"invalid notional {request.notional}")
                params["quoteOrderQty"] = format_decimal(request.notional)
        else:
            if request.price is None or request.quantity is None:
                raise InvalidOrder("limit orders require price and quantity")
            if not (_is_positive(request.price) and _is_positive(request.quantity)):
                raise InvalidOrder(
                    f"invalid limit order price={request.price} quantity={request.quantity}"
                )
            params["price"] = format_decimal(request.price)
            params["quantity"] = format_decimal(request.quantity)
        return params

    def close(self) -> None:
        self._client.close()


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0
