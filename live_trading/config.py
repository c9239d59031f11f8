"""Load :class:`SignalTraderConfig` from a ``.env`` file and the environment."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Tuple, TypeVar

from signal_intake.models import TemplateRule

from .models import (
    ConfigurationError,
    RiskConfig,
    SecretRef,
    SignalTraderConfig,
    SymbolOverride,
    TelegramSettings,
    TradingConfig,
)

T = TypeVar("T")

TOKEN_SEPARATOR = "|"


def load_config(
    env_file: Path | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SignalTraderConfig:
    """Build the runtime configuration.

    Environment variables override values from ``env_file``.

    Raises:
        ConfigurationError: If the file is missing or a value is invalid
    """
    if env_file is not None and not env_file.is_file():
        raise ConfigurationError(f"config file not found: {env_file}")
    file_values = _load_env_file(env_file)
    env = os.environ if environ is None else environ

    def get(name: str, default: str = "") -> str:
        value = env.get(name)
        if value is None:
            value = file_values.get(name, default)
        return value.strip()

    try:
        trading = TradingConfig(
            default_base_notional=_typed(get, "DEFAULT_BASE_NOTIONAL", "10", float),
            max_notional=_typed(get, "MAX_NOTIONAL", "50", float),
            order_type=get("ORDER_TYPE", "market").lower(),  # type: ignore[arg-type]
            slippage_bps=_typed(get, "SLIPPAGE_BPS", "0", int),
        )
        template = TemplateRule(
            required_tokens=_split_tokens(get("PARSER_REQUIRED_TOKENS")),
            link_host=get("PARSER_LINK_HOST", "www.mexc.com"),
            link_path_prefix=get("PARSER_LINK_PATH_PREFIX", "/exchange/"),
            pair_separator=get("PARSER_PAIR_SEPARATOR", "_"),
        )
        risk = RiskConfig(
            cooldown_seconds=_typed(get, "RISK_COOLDOWN_SECONDS", "0", int),
            max_daily_trades=_typed(get, "RISK_MAX_DAILY_TRADES", "0", int),
        )
        telegram = TelegramSettings(
            enabled=_parse_bool(get("TELEGRAM_ENABLED", "false")),
            bot_token=SecretRef(get("TELEGRAM_BOT_TOKEN")),
            allowed_chat_ids=_parse_chat_ids(get("TELEGRAM_ALLOWED_CHAT_IDS")),
            poll_timeout_seconds=_typed(get, "TELEGRAM_POLL_TIMEOUT_SECONDS", "10", int),
            max_update_batch=_typed(get, "TELEGRAM_MAX_UPDATE_BATCH", "100", int),
        )
        return SignalTraderConfig(
            exchange=get("EXCHANGE", "mexc").lower(),
            environment=get("ENVIRONMENT", "testnet").lower(),  # type: ignore[arg-type]
            market_type=get("MARKET_TYPE", "spot").lower(),  # type: ignore[arg-type]
            api_key=SecretRef(get("API_KEY")),
            api_secret=SecretRef(get("API_SECRET")),
            exchange_base_url=get("EXCHANGE_BASE_URL") or None,
            exchange_timeout_seconds=_typed(get, "EXCHANGE_TIMEOUT_SECONDS", "5", float),
            proxy=get("PROXY") or None,
            trading=trading,
            overrides=parse_overrides(get("TARGET_OVERRIDES")),
            template=template,
            risk=risk,
            telegram=telegram,
            dry_run=_parse_bool(get("DRY_RUN", "true")),
            workers=_typed(get, "WORKERS", "1", int),
            queue_size=_typed(get, "QUEUE_SIZE", "64", int),
            log_level=get("LOG_LEVEL", "INFO").upper(),
            config_path=env_file,
        )
    except ConfigurationError:
        raise
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def parse_overrides(raw: str) -> Dict[str, SymbolOverride]:
    """Parse ``SYMBOL:default:max`` entries separated by commas."""
    overrides: Dict[str, SymbolOverride] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = [part.strip() for part in entry.split(":")]
        if len(parts) > 3 or not parts[0]:
            raise ConfigurationError(
                f"TARGET_OVERRIDES entry {entry!r} must look like SYMBOL:default:max"
            )
        parts += [""] * (3 - len(parts))
        symbol, default_raw, max_raw = parts
        try:
            overrides[symbol.upper()] = SymbolOverride(
                default_base_notional=float(default_raw) if default_raw else 0.0,
                max_notional=float(max_raw) if max_raw else 0.0,
            )
        except ValueError as exc:
            raise ConfigurationError(f"TARGET_OVERRIDES entry {entry!r}: {exc}") from exc
    return overrides


def _typed(get: Callable[[str, str], str], name: str, default: str, cast: Callable[[str], T]) -> T:
    raw = get(name, default) or default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} has invalid value {raw!r}") from exc
    if isinstance(value, float) and not math.isfinite(value):
        raise ConfigurationError(f"{name} must be a finite number, got {raw!r}")
    return value


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _split_tokens(raw: str) -> Tuple[str, ...]:
    return tuple(token.strip() for token in raw.split(TOKEN_SEPARATOR) if token.strip())


def _parse_chat_ids(raw: str) -> Tuple[int, ...]:
    ids = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            ids.append(int(token))
        except ValueError as exc:
            raise ConfigurationError(
                f"TELEGRAM_ALLOWED_CHAT_IDS has invalid chat id {token!r}"
            ) from exc
    return tuple(ids)


def _load_env_file(path: Path | None) -> Dict[str, str]:
    if path is None or not path.exists() or not path.is_file():
        return {}

    values: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            values[key] = value
    return values
