"""Per-message pipeline: parse, size, gate, submit, record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from signal_intake.models import InboundMessage, ParsedSignal
from signal_intake.parser import ParseError, TemplateParser

from .exchange import Executor, OrderAck, OrderRequest, OrderSide, OrderType, SubmissionError
from .models import SymbolOverride, TradingConfig
from .risk import Decision, RiskGate


class OutcomeStatus(Enum):
    PARSE_FAILED = "parse_failed"
    DENIED = "denied"
    SUBMISSION_FAILED = "submission_failed"
    EXECUTED = "executed"


@dataclass(frozen=True)
class TradeOutcome:
    """What happened to one inbound message."""

    status: OutcomeStatus
    message: InboundMessage
    signal: Optional[ParsedSignal] = None
    decision: Optional[Decision] = None
    ack: Optional[OrderAck] = None
    error: Optional[Exception] = None

    @property
    def reason(self) -> Optional[str]:
        if self.decision is not None and not self.decision.allow:
            return self.decision.reason
        if isinstance(self.error, ParseError):
            return self.error.code
        if self.error is not None:
            return str(self.error)
        return None


class SignalTrader:
    """Ties signal parsing, risk evaluation and order execution together.

    Holds no locks itself; concurrent ``handle`` calls rely on the risk
    gate's internal synchronization.
    """

    def __init__(
        self,
        parser: TemplateParser,
        risk_gate: RiskGate,
        executor: Executor,
        trading: TradingConfig,
        overrides: Optional[Mapping[str, SymbolOverride]] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._parser = parser
        self._risk = risk_gate
        self._executor = executor
        self._trading = trading
        self._overrides = dict(overrides or {})
        self._log = logger or logging.getLogger(__name__)
        self._order_type = (
            OrderType.LIMIT if trading.order_type == "limit" else OrderType.MARKET
        )

    @property
    def executor(self) -> Executor:
        return self._executor

    def handle(self, message: InboundMessage) -> TradeOutcome:
        try:
            signal = self._parser.parse(message)
        except ParseError as exc:
            self._log.info("Message %s ignored: %s", message.message_id, exc)
            return TradeOutcome(OutcomeStatus.PARSE_FAILED, message, error=exc)

        notional = self.resolve_notional(signal.symbol)
        decision = self._risk.try_reserve(signal, notional)
        if not decision.allow:
            self._log.info(
                "Signal skipped by risk: symbol=%s reason=%s",
                signal.symbol,
                decision.reason,
            )
            return TradeOutcome(
                OutcomeStatus.DENIED, message, signal=signal, decision=decision
            )

        request = self._build_request(signal, decision)
        try:
            ack = self._executor.submit(request)
        except SubmissionError as exc:
            self._risk.release(decision)
            self._log.warning(
                "Order submission failed: message=%s symbol=%s notional=%s executor=%s error=%s",
                message.message_id,
                signal.symbol,
                decision.notional,
                self._executor.name,
                exc,
            )
            return TradeOutcome(
                OutcomeStatus.SUBMISSION_FAILED,
                message,
                signal=signal,
                decision=decision,
                error=exc,
            )
        except Exception:
            self._risk.release(decision)
            raise

        self._risk.confirm(decision)
        self._log.info(
            "Order submitted: order_id=%s executor=%s symbol=%s notional=%s",
            ack.order_id,
            self._executor.name,
            request.symbol,
            request.notional,
        )
        return TradeOutcome(
            OutcomeStatus.EXECUTED, message, signal=signal, decision=decision, ack=ack
        )

    def resolve_notional(self, symbol: str) -> float:
        """Override default first, then the override cap, then the global cap."""
        size = self._trading.default_base_notional
        override = self._overrides.get(symbol)
        if override is not None:
            if override.default_base_notional > 0:
                size = override.default_base_notional
            if override.max_notional > 0 and size > override.max_notional:
                size = override.max_notional
        if size > self._trading.max_notional:
            size = self._trading.max_notional
        return size

    def _build_request(self, signal: ParsedSignal, decision: Decision) -> OrderRequest:
        metadata = {"source_message_id": str(signal.message.message_id)}
        if signal.message.channel_id is not None:
            metadata["channel_id"] = str(signal.message.channel_id)
        return OrderRequest(
            symbol=signal.symbol,
            notional=decision.notional,
            side=OrderSide.BUY,
            order_type=self._order_type,
            slippage_bps=self._trading.slippage_bps,
            metadata=metadata,
        )
