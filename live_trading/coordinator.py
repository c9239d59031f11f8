"""Wires a message source to the signal trader through a bounded queue."""

from __future__ import annotations

import logging
import queue
import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Iterator, Optional, Protocol

from signal_intake.models import InboundMessage
from signal_intake.parser import TemplateParser

from .exchange import DryRunExecutor, ExchangeConfig, Executor, MarketType
from .exchanges.mexc import MexcExchange
from .engine import SignalTrader, TradeOutcome
from .models import ConfigurationError, SignalTraderConfig
from .risk import RiskGate

_END = object()


class MessageSource(Protocol):
    def iter_messages(self, stop_event: threading.Event) -> Iterator[InboundMessage]:
        ...


def build_executor(
    config: SignalTraderConfig, logger: logging.Logger | None = None
) -> Executor:
    """Pick the dry-run or the live executor once, at startup."""
    log = logger or logging.getLogger(__name__)
    if config.dry_run:
        return DryRunExecutor(log.getChild("dry_run"))

    api_key = config.api_key.resolve()
    api_secret = config.api_secret.resolve()
    if not api_key or not api_secret:
        raise ConfigurationError("API_KEY and API_SECRET are required for live trading")
    exchange_config = ExchangeConfig(
        api_key=api_key,
        api_secret=api_secret,
        testnet=config.testnet,
        market_type=MarketType(config.market_type),
        timeout=config.exchange_timeout_seconds,
        proxies=config.proxy_dict(),
        base_url=config.exchange_base_url,
    )
    return MexcExchange(exchange_config, log.getChild("mexc"))


def build_trader(
    config: SignalTraderConfig,
    executor: Executor,
    logger: logging.Logger | None = None,
) -> SignalTrader:
    log = logger or logging.getLogger(__name__)
    return SignalTrader(
        parser=TemplateParser(config.template),
        risk_gate=RiskGate(config.risk, logger=log.getChild("risk")),
        executor=executor,
        trading=config.trading,
        overrides=config.overrides,
        logger=log.getChild("engine"),
    )


class SignalTradingCoordinator:
    """Drains a message source into the trader.

    With one worker messages are handled inline, in arrival order. With more
    workers each message becomes a pool task and at most ``queue_size`` are in
    flight at once.
    """

    def __init__(
        self,
        trader: SignalTrader,
        source: MessageSource,
        *,
        workers: int = 1,
        queue_size: int = 64,
        logger: logging.Logger | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        self._trader = trader
        self._source = source
        self._workers = workers
        self._log = logger or logging.getLogger(__name__)
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=queue_size)
        self._in_flight = threading.BoundedSemaphore(queue_size)
        self._stop_event = threading.Event()
        self._stats: Counter[str] = Counter()
        self._stats_lock = threading.Lock()
        self._source_error: Optional[BaseException] = None

    def run(self) -> None:
        """Consume until the source is exhausted or :meth:`stop` is called."""
        self._log.info(
            "Signal trading coordinator started (executor=%s, workers=%s)",
            self._trader.executor.name,
            self._workers,
        )
        producer = threading.Thread(
            target=self._produce, name="signal-source", daemon=True
        )
        producer.start()
        try:
            with ThreadPoolExecutor(
                max_workers=self._workers, thread_name_prefix="signal-worker"
            ) as pool:
                while True:
                    item = self._queue.get()
                    if item is _END:
                        break
                    if self._workers == 1:
                        self._handle(item)  # type: ignore[arg-type]
                        continue
                    self._in_flight.acquire()
                    future = pool.submit(self._handle, item)  # type: ignore[arg-type]
                    future.add_done_callback(self._release_slot)
        except KeyboardInterrupt:
            self._log.info("Received interrupt signal")
        finally:
            self._stop_event.set()
            producer.join(timeout=1.0)
            self._log.info("Signal trading coordinator stopped: %s", self.stats())
        if self._source_error is not None:
            raise RuntimeError("message source failed") from self._source_error

    def stop(self) -> None:
        self._stop_event.set()

    def stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return dict(self._stats)

    def _produce(self) -> None:
        try:
            for message in self._source.iter_messages(self._stop_event):
                if self._stop_event.is_set():
                    break
                self._queue.put(message)
        except Exception as exc:
            self._log.exception("Message source failed")
            self._source_error = exc
        finally:
            self._queue.put(_END)

    def _handle(self, message: InboundMessage) -> Optional[TradeOutcome]:
        try:
            outcome = self._trader.handle(message)
        except Exception:
            self._log.exception("Failed to handle message %s", message.message_id)
            self._count("error")
            return None
        self._count(outcome.status.value)
        return outcome

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def _release_slot(self, _future: Future) -> None:
        self._in_flight.release()
