from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from live_trading.exchange import (
    AuthenticationError,
    DryRunExecutor,
    ExchangeConfig,
    InvalidOrder,
    OrderRejected,
    OrderRequest,
    SubmissionError,
    TransportError,
)


def test_dry_run_acknowledges_without_network(caplog) -> None:
    moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    executor = DryRunExecutor(clock=lambda: moment)

    with caplog.at_level(logging.INFO):
        ack = executor.submit(OrderRequest(symbol="TWIFUSDT", notional=25))

    assert executor.name == "dry-run"
    assert ack.order_id == "dry-run"
    assert ack.submitted_at == moment
    assert "DRY RUN" in caplog.text
    assert "TWIFUSDT" in caplog.text


def test_dry_run_rejects_non_positive_notional() -> None:
    with pytest.raises(InvalidOrder):
        DryRunExecutor().submit(OrderRequest(symbol="TWIFUSDT", notional=0))


def test_submission_error_hierarchy() -> None:
    assert issubclass(AuthenticationError, OrderRejected)
    assert issubclass(OrderRejected, SubmissionError)
    assert TransportError("x").retryable
    assert not OrderRejected("x").retryable
    assert not InvalidOrder("x").retryable


@pytest.mark.parametrize(
    "kwargs",
    [
        {"api_key": "", "api_secret": "s"},
        {"api_key": "k", "api_secret": "  "},
        {"api_key": "k", "api_secret": "s", "timeout": 0},
        {"api_key": "k", "api_secret": "s", "recv_window_ms": 0},
    ],
)
def test_exchange_config_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        ExchangeConfig(**kwargs)


@pytest.mark.parametrize("notional", [float("nan"), float("inf")])
def test_dry_run_rejects_non_finite_notional(notional: float) -> None:
    with pytest.raises(InvalidOrder):
        DryRunExecutor().submit(OrderRequest(symbol="TWIFUSDT", notional=notional))
