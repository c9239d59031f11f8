"""Live trading module: risk gate, order submission and the signal pipeline."""

from .config import load_config
from .engine import OutcomeStatus, SignalTrader, TradeOutcome
from .exchange import (
    AuthenticationError,
    DryRunExecutor,
    ExchangeConfig,
    Executor,
    InvalidOrder,
    MarketType,
    OrderAck,
    OrderRejected,
    OrderRequest,
    OrderSide,
    OrderType,
    SubmissionError,
    TransportError,
)
from .models import (
    ConfigurationError,
    RiskConfig,
    SecretRef,
    SignalTraderConfig,
    SymbolOverride,
    TelegramSettings,
    TradingConfig,
)
from .risk import Decision, RiskGate, RiskSnapshot

__all__ = [
    "load_config",
    "OutcomeStatus",
    "SignalTrader",
    "TradeOutcome",
    "AuthenticationError",
    "DryRunExecutor",
    "ExchangeConfig",
    "Executor",
    "InvalidOrder",
    "MarketType",
    "OrderAck",
    "OrderRejected",
    "OrderRequest",
    "OrderSide",
    "OrderType",
    "SubmissionError",
    "TransportError",
    "ConfigurationError",
    "RiskConfig",
    "SecretRef",
    "SignalTraderConfig",
    "SymbolOverride",
    "TelegramSettings",
    "TradingConfig",
    "Decision",
    "RiskGate",
    "RiskSnapshot",
]
