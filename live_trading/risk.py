"""Risk gate: per-symbol cooldowns and daily trade caps."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from signal_intake.models import ParsedSignal

from .models import RiskConfig

REASON_NON_POSITIVE_NOTIONAL = "non_positive_notional"
REASON_COOLDOWN_ACTIVE = "cooldown_active"
REASON_DAILY_TRADE_LIMIT = "daily_trade_limit"
REASON_EXECUTION_PENDING = "execution_pending"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Decision:
    """Outcome of a risk evaluation."""

    allow: bool
    reason: Optional[str] = None
    notional: float = 0.0
    reservation_id: Optional[int] = None

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allow=False, reason=reason)


@dataclass(frozen=True)
class RiskSnapshot:
    """Copy of the gate state at one point in time."""

    day_anchor: Optional[datetime]
    daily_trades: int
    pending: Tuple[str, ...]
    failed_submissions: int
    last_execution: Dict[str, datetime]


@dataclass(frozen=True)
class _Reservation:
    symbol: str
    notional: float


class RiskGate:
    """Thread-safe admission control for parsed signals.

    ``evaluate`` and ``record_execution`` are the plain check/record pair.
    ``try_reserve`` followed by ``confirm`` or ``release`` does the same work
    without the window in which two concurrent evaluations for one symbol
    could both be allowed.

    The day boundary is reconciled lazily: the first call that sees a later
    UTC date than the anchor clears counters and cooldowns.
    """

    def __init__(
        self,
        config: RiskConfig,
        clock: Callable[[], datetime] = _utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)
        self._cooldown = timedelta(seconds=config.cooldown_seconds)

        self._lock = threading.Lock()
        self._last_trade: Dict[str, datetime] = {}
        self._daily_trades = 0
        self._day_anchor: Optional[datetime] = None
        self._reservations: Dict[int, _Reservation] = {}
        self._reservation_ids = itertools.count(1)
        self._failed_submissions = 0

    def evaluate(self, signal: ParsedSignal, desired_notional: float) -> Decision:
        if desired_notional <= 0:
            return Decision.deny(REASON_NON_POSITIVE_NOTIONAL)
        with self._lock:
            now = self._now()
            self._reset_day(now)
            return self._check(signal.symbol, desired_notional, now)

    def record_execution(self, signal: ParsedSignal, executed_notional: float) -> None:
        with self._lock:
            now = self._now()
            self._reset_day(now)
            self._record(signal.symbol, executed_notional, now)

    def try_reserve(self, signal: ParsedSignal, desired_notional: float) -> Decision:
        """Evaluate and, when allowed, hold a slot until confirmed or released."""
        if desired_notional <= 0:
            return Decision.deny(REASON_NON_POSITIVE_NOTIONAL)
        with self._lock:
            now = self._now()
            self._reset_day(now)
            decision = self._check(signal.symbol, desired_notional, now)
            if not decision.allow:
                return decision
            reservation_id = next(self._reservation_ids)
            self._reservations[reservation_id] = _Reservation(
                symbol=signal.symbol, notional=desired_notional
            )
            return Decision(
                allow=True, notional=desired_notional, reservation_id=reservation_id
            )

    def confirm(self, decision: Decision, executed_notional: Optional[float] = None) -> None:
        """Turn a reservation into a recorded execution."""
        with self._lock:
            reservation = self._pop_reservation(decision)
            now = self._now()
            self._reset_day(now)
            notional = reservation.notional if executed_notional is None else executed_notional
            self._record(reservation.symbol, notional, now)

    def release(self, decision: Decision) -> None:
        """Drop a reservation whose order was not placed."""
        with self._lock:
            reservation = self._pop_reservation(decision)
            self._failed_submissions += 1
            self._log.debug(
                "risk released reservation symbol=%s failed_submissions=%s",
                reservation.symbol,
                self._failed_submissions,
            )

    def snapshot(self) -> RiskSnapshot:
        with self._lock:
            return RiskSnapshot(
                day_anchor=self._day_anchor,
                daily_trades=self._daily_trades,
                pending=tuple(r.symbol for r in self._reservations.values()),
                failed_submissions=self._failed_submissions,
                last_execution=dict(self._last_trade),
            )

    # ------------------------------------------------------------------ #
    # Internals (lock held)
    # ------------------------------------------------------------------ #

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)

    def _check(self, symbol: str, notional: float, now: datetime) -> Decision:
        if self._config.cooldown_seconds > 0:
            last = self._last_trade.get(symbol)
            if last is not None and now - last < self._cooldown:
                return Decision.deny(REASON_COOLDOWN_ACTIVE)
        if any(r.symbol == symbol for r in self._reservations.values()):
            return Decision.deny(REASON_EXECUTION_PENDING)
        if self._config.max_daily_trades > 0:
            if self._daily_trades + len(self._reservations) >= self._config.max_daily_trades:
                return Decision.deny(REASON_DAILY_TRADE_LIMIT)
        return Decision(allow=True, notional=notional)

    def _record(self, symbol: str, notional: float, now: datetime) -> None:
        self._last_trade[symbol] = now
        self._daily_trades += 1
        self._log.debug(
            "risk recorded execution symbol=%s notional=%s daily_trades=%s",
            symbol,
            notional,
            self._daily_trades,
        )

    def _pop_reservation(self, decision: Decision) -> _Reservation:
        if decision.reservation_id is None:
            raise KeyError("decision carries no reservation")
        return self._reservations.pop(decision.reservation_id)

    def _reset_day(self, now: datetime) -> None:
        current_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        if self._day_anchor is None:
            self._day_anchor = current_day
            return
        if current_day > self._day_anchor:
            self._log.info(
                "risk day rollover %s -> %s (daily_trades=%s reset)",
                self._day_anchor.date().isoformat(),
                current_day.date().isoformat(),
                self._daily_trades,
            )
            self._day_anchor = current_day
            self._daily_trades = 0
            self._last_trade = {}
