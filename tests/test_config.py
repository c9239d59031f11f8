from __future__ import annotations

from pathlib import Path

import pytest

from live_trading.config import load_config, parse_overrides
from live_trading.models import (
    ConfigurationError,
    RiskConfig,
    SecretRef,
    SignalTraderConfig,
    SymbolOverride,
    TelegramSettings,
    TradingConfig,
)

ENV_FILE = """
# signal trader
EXCHANGE=mexc
ENVIRONMENT=live
API_KEY=env:TEST_MEXC_KEY
API_SECRET="literal-secret"
DEFAULT_BASE_NOTIONAL=20
MAX_NOTIONAL=100
ORDER_TYPE=MARKET
SLIPPAGE_BPS=25
TARGET_OVERRIDES=TWIFUSDT:30:40, mogusdt::15
PARSER_REQUIRED_TOKENS=MEGA PUMP SIGNAL| Targets
RISK_COOLDOWN_SECONDS=300
RISK_MAX_DAILY_TRADES=5
export TELEGRAM_ENABLED=yes
TELEGRAM_BOT_TOKEN=file:/run/secrets/bot
TELEGRAM_ALLOWED_CHAT_IDS=-1001, 42
DRY_RUN=false
WORKERS=4
"""


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    path = tmp_path / "signal_trader.env"
    path.write_text(ENV_FILE, encoding="utf-8")
    return path


def test_load_config_from_file(env_file: Path) -> None:
    config = load_config(env_file, environ={})

    assert config.environment == "live"
    assert not config.testnet
    assert config.api_key == SecretRef("env:TEST_MEXC_KEY")
    assert config.api_secret.resolve() == "literal-secret"
    assert config.trading == TradingConfig(
        default_base_notional=20, max_notional=100, order_type="market", slippage_bps=25
    )
    assert config.overrides == {
        "TWIFUSDT": SymbolOverride(default_base_notional=30, max_notional=40),
        "MOGUSDT": SymbolOverride(max_notional=15),
    }
    assert config.template.required_tokens == ("MEGA PUMP SIGNAL", "Targets")
    assert config.template.link_host == "www.mexc.com"
    assert config.risk == RiskConfig(cooldown_seconds=300, max_daily_trades=5)
    assert config.telegram.enabled
    assert config.telegram.allowed_chat_ids == (-1001, 42)
    assert not config.dry_run
    assert config.workers == 4
    assert config.queue_size == 64
    assert config.config_path == env_file


def test_environment_overrides_file(env_file: Path) -> None:
    config = load_config(
        env_file,
        environ={"ENVIRONMENT": "testnet", "DRY_RUN": "1", "MAX_NOTIONAL": "60"},
    )

    assert config.testnet
    assert config.dry_run
    assert config.trading.max_notional == 60


def test_defaults_without_file() -> None:
    config = load_config(None, environ={})

    assert config == SignalTraderConfig()
    assert config.dry_run
    assert config.trading.default_base_notional == 10
    assert config.trading.max_notional == 50


def test_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "absent.env", environ={})


@pytest.mark.parametrize(
    "environ",
    [
        {"ENVIRONMENT": "staging"},
        {"EXCHANGE": "binance"},
        {"MARKET_TYPE": "options"},
        {"ORDER_TYPE": "stop"},
        {"DEFAULT_BASE_NOTIONAL": "0"},
        {"DEFAULT_BASE_NOTIONAL": "80", "MAX_NOTIONAL": "50"},
        {"RISK_COOLDOWN_SECONDS": "-1"},
        {"WORKERS": "0"},
        {"WORKERS": "many"},
        {"PARSER_PAIR_SEPARATOR": " "},
        {"TELEGRAM_ENABLED": "true"},
        {"TELEGRAM_ALLOWED_CHAT_IDS": "abc"},
        {"TARGET_OVERRIDES": "TWIFUSDT:x"},
        {"TARGET_OVERRIDES": "TWIFUSDT:1:2:3"},
        {"DEFAULT_BASE_NOTIONAL": "nan", "MAX_NOTIONAL": "nan"},
        {"DEFAULT_BASE_NOTIONAL": "10", "MAX_NOTIONAL": "inf"},
        {"EXCHANGE_TIMEOUT_SECONDS": "inf"},
        {"TARGET_OVERRIDES": "TWIFUSDT:nan:"},
        {"TARGET_OVERRIDES": "TWIFUSDT::inf"},
    ],
)
def test_invalid_values_raise_configuration_error(environ) -> None:
    with pytest.raises(ConfigurationError):
        load_config(None, environ=environ)


def test_parse_overrides_skips_blank_entries() -> None:
    assert parse_overrides(" , ,") == {}
    assert parse_overrides("pepeusdt:5") == {"PEPEUSDT": SymbolOverride(default_base_notional=5)}


def test_secret_ref_resolution(tmp_path: Path, monkeypatch) -> None:
    secret_file = tmp_path / "secret.txt"
    secret_file.write_text("from-file\n", encoding="utf-8")
    monkeypatch.setenv("TEST_MEXC_KEY", " from-env ")

    assert SecretRef("env:TEST_MEXC_KEY").resolve() == "from-env"
    assert SecretRef(f"file:{secret_file}").resolve() == "from-file"
    assert SecretRef("plain").resolve() == "plain"
    assert SecretRef("").resolve() == ""


def test_secret_ref_failures(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("TEST_MEXC_MISSING", raising=False)

    with pytest.raises(ConfigurationError):
        SecretRef("env:TEST_MEXC_MISSING").resolve()
    with pytest.raises(ConfigurationError):
        SecretRef("env:").resolve()
    with pytest.raises(ConfigurationError):
        SecretRef(f"file:{tmp_path / 'nope'}").resolve()


def test_secret_ref_repr_masks_literals() -> None:
    assert "hunter2" not in repr(SecretRef("hunter2"))
    assert repr(SecretRef("env:KEY")) == "SecretRef('env:KEY')"


def test_telegram_settings_disabled_skips_validation() -> None:
    settings = TelegramSettings(enabled=False, poll_timeout_seconds=0)

    assert not settings.enabled


def test_proxy_dict() -> None:
    assert SignalTraderConfig().proxy_dict() is None
    assert SignalTraderConfig(proxy="http://p:1").proxy_dict() == {
        "http": "http://p:1",
        "https": "http://p:1",
    }


def test_non_finite_notional_names_the_key() -> None:
    with pytest.raises(ConfigurationError, match="DEFAULT_BASE_NOTIONAL"):
        load_config(None, environ={"DEFAULT_BASE_NOTIONAL": "nan", "MAX_NOTIONAL": "nan"})
    with pytest.raises(ConfigurationError, match="TARGET_OVERRIDES"):
        load_config(None, environ={"TARGET_OVERRIDES": "TWIFUSDT:nan:"})


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_config_models_reject_non_finite_notionals(value: float) -> None:
    with pytest.raises(ConfigurationError):
        TradingConfig(default_base_notional=value, max_notional=value)
    with pytest.raises(ConfigurationError):
        TradingConfig(default_base_notional=10, max_notional=value)
    with pytest.raises(ConfigurationError):
        SymbolOverride(default_base_notional=value)
