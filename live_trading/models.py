"""Configuration models for the signal trader."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Literal, Optional, Tuple

from signal_intake.models import TemplateRule

ALLOWED_EXCHANGES = ("mexc",)
ALLOWED_ENVIRONMENTS = ("testnet", "live")
ALLOWED_MARKET_TYPES = ("spot", "futures")
ALLOWED_ORDER_TYPES = ("market", "limit")


class ConfigurationError(ValueError):
    """Invalid or missing settings; fatal at startup."""


@dataclass(frozen=True)
class SecretRef:
    """Pointer to secret material: ``env:NAME``, ``file:PATH`` or a literal value."""

    value: str = ""

    def resolve(self) -> str:
        raw = self.value.strip()
        if raw.startswith("env:"):
            key = raw[len("env:"):]
            if not key:
                raise ConfigurationError("empty env key in secret reference")
            resolved = os.environ.get(key)
            if resolved is None:
                raise ConfigurationError(f"env var {key} not set")
            return resolved.strip()
        if raw.startswith("file:"):
            path = Path(raw[len("file:"):])
            try:
                return path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                raise ConfigurationError(f"read secret file {path}: {exc}") from exc
        return raw

    def is_set(self) -> bool:
        return bool(self.value.strip())

    def __repr__(self) -> str:
        # Literal secrets must never end up in logs.
        if self.value.startswith(("env:", "file:")):
            return f"SecretRef({self.value!r})"
        return "SecretRef('***')" if self.value else "SecretRef('')"


@dataclass(frozen=True)
class SymbolOverride:
    """Per-symbol notional settings; zero means unset."""

    default_base_notional: float = 0.0
    max_notional: float = 0.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.default_base_notional) and math.isfinite(self.max_notional)):
            raise ConfigurationError("symbol override notionals must be finite")
        if self.default_base_notional < 0 or self.max_notional < 0:
            raise ConfigurationError("symbol override notionals must be non-negative")


@dataclass(frozen=True)
class TradingConfig:
    """Order sizing and order shape."""

    default_base_notional: float = 10.0
    max_notional: float = 50.0
    order_type: Literal["market", "limit"] = "market"
    slippage_bps: int = 0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.default_base_notional) and math.isfinite(self.max_notional)):
            raise ConfigurationError("default_base_notional and max_notional must be finite")
        if self.default_base_notional <= 0:
            raise ConfigurationError("default_base_notional must be positive")
        if self.max_notional < self.default_base_notional:
            raise ConfigurationError("max_notional must be >= default_base_notional")
        if self.order_type not in ALLOWED_ORDER_TYPES:
            raise ConfigurationError("order_type must be one of: market, limit")
        if self.slippage_bps < 0:
            raise ConfigurationError("slippage_bps must be >= 0")


@dataclass(frozen=True)
class RiskConfig:
    """Risk thresholds; zero disables a check."""

    cooldown_seconds: int = 0
    max_daily_trades: int = 0

    def __post_init__(self) -> None:
        if self.cooldown_seconds < 0:
            raise ConfigurationError("cooldown_seconds must be >= 0")
        if self.max_daily_trades < 0:
            raise ConfigurationError("max_daily_trades must be >= 0")


@dataclass(frozen=True)
class TelegramSettings:
    enabled: bool = False
    bot_token: SecretRef = field(default_factory=SecretRef)
    allowed_chat_ids: Tuple[int, ...] = ()
    poll_timeout_seconds: int = 10
    max_update_batch: int = 100

    def __post_init__(self) -> None:
        if not self.enabled:
            return
        if self.poll_timeout_seconds <= 0:
            raise ConfigurationError(
                "telegram poll_timeout_seconds must be > 0 when enabled"
            )
        if self.max_update_batch < 0:
            raise ConfigurationError("telegram max_update_batch must be >= 0")
        if not self.bot_token.is_set():
            raise ConfigurationError("telegram bot_token must be provided when enabled")


@dataclass(frozen=True)
class SignalTraderConfig:
    """Full runtime configuration."""

    exchange: str = "mexc"
    environment: Literal["testnet", "live"] = "testnet"
    market_type: Literal["spot", "futures"] = "spot"
    api_key: SecretRef = field(default_factory=SecretRef)
    api_secret: SecretRef = field(default_factory=SecretRef)
    exchange_base_url: Optional[str] = None
    exchange_timeout_seconds: float = 5.0
    proxy: Optional[str] = None

    trading: TradingConfig = field(default_factory=TradingConfig)
    overrides: Dict[str, SymbolOverride] = field(default_factory=dict)
    template: TemplateRule = field(default_factory=TemplateRule)
    risk: RiskConfig = field(default_factory=RiskConfig)
    telegram: TelegramSettings = field(default_factory=TelegramSettings)

    dry_run: bool = True
    workers: int = 1
    queue_size: int = 64
    log_level: str = "INFO"
    config_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.exchange not in ALLOWED_EXCHANGES:
            raise ConfigurationError(f"unsupported exchange {self.exchange!r}")
        if self.environment not in ALLOWED_ENVIRONMENTS:
            raise ConfigurationError(
                f"environment must be testnet or live, got {self.environment!r}"
            )
        if self.market_type not in ALLOWED_MARKET_TYPES:
            raise ConfigurationError(
                f"market_type must be spot or futures, got {self.market_type!r}"
            )
        if self.exchange_timeout_seconds <= 0:
            raise ConfigurationError("exchange_timeout_seconds must be positive")
        if not self.template.link_host or not self.template.link_path_prefix:
            raise ConfigurationError("parser link_host and link_path_prefix required")
        if not self.template.pair_separator:
            raise ConfigurationError("parser pair_separator required")
        if self.workers < 1:
            raise ConfigurationError("workers must be >= 1")
        if self.queue_size < 1:
            raise ConfigurationError("queue_size must be >= 1")

    @property
    def testnet(self) -> bool:
        return self.environment == "testnet"

    def proxy_dict(self) -> Optional[Dict[str, str]]:
        if not self.proxy:
            return None
        return {"http": self.proxy, "https": self.proxy}
