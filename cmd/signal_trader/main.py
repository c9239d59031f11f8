from __future__ import annotations

import argparse
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from live_trading.config import load_config
from live_trading.coordinator import (
    MessageSource,
    SignalTradingCoordinator,
    build_executor,
    build_trader,
)
from live_trading.models import ConfigurationError, SignalTraderConfig
from signal_intake import ReplayFileSource, TelegramConfig, TelegramListener


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Trade templated Telegram pump signals on MEXC spot.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=Path("./configs/signal_trader.env"),
        help="Path to the .env config file (environment variables take precedence).",
    )
    parser.add_argument(
        "--replay-file",
        type=Path,
        help="Read messages from a JSON-lines file instead of Telegram.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Log orders without sending them.")
    parser.add_argument("--workers", type=int, help="Concurrent message handlers (overrides WORKERS).")
    parser.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL).")
    return parser


def build_source(
    args: argparse.Namespace, config: SignalTraderConfig, logger: logging.Logger
) -> MessageSource:
    if args.replay_file:
        return ReplayFileSource(args.replay_file, logger.getChild("replay"))
    if not config.telegram.enabled:
        raise ConfigurationError("TELEGRAM_ENABLED is false and no --replay-file was given")
    telegram_config = TelegramConfig(
        bot_token=config.telegram.bot_token.resolve(),
        allowed_chat_ids=config.telegram.allowed_chat_ids,
        poll_timeout_seconds=config.telegram.poll_timeout_seconds,
        max_update_batch=config.telegram.max_update_batch,
        proxy=config.proxy,
    )
    return TelegramListener(telegram_config, logger.getChild("telegram"))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config_file)
    except ConfigurationError as exc:
        print(f"load config: {exc}", file=sys.stderr)
        return 1

    log_level = (args.log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger("signal_trader")
    dry_run = args.dry_run or config.dry_run
    logger.info(
        "Configuration loaded path=%s environment=%s market_type=%s dry_run=%s",
        config.config_path,
        config.environment,
        config.market_type,
        dry_run,
    )

    try:
        if dry_run and not config.dry_run:
            config = replace(config, dry_run=True)
        executor = build_executor(config, logger)
        source = build_source(args, config, logger)
    except (ConfigurationError, ValueError) as exc:
        logger.error("Startup failed: %s", exc)
        return 1

    trader = build_trader(config, executor, logger)
    try:
        coordinator = SignalTradingCoordinator(
            trader,
            source,
            workers=args.workers if args.workers is not None else config.workers,
            queue_size=config.queue_size,
            logger=logger.getChild("coordinator"),
        )
    except ValueError as exc:
        executor.close()
        logger.error("Startup failed: %s", exc)
        return 1

    def _shutdown(signum: int, _frame: object) -> None:
        logger.info("Received signal %s, shutting down", signum)
        coordinator.stop()

    signal.signal(signal.SIGTERM, _shutdown)

    try:
        coordinator.run()
    except RuntimeError as exc:
        logger.error("Signal trader stopped: %s: %s", exc, exc.__cause__)
        return 1
    finally:
        executor.close()
    logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
