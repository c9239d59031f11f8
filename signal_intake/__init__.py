"""Signal intake package: transports and the message template parser."""

from .models import InboundMessage, ParsedSignal, TemplateRule
from .parser import (
    EmptyMessage,
    InvalidSeparatorConfig,
    LinkMissing,
    MissingTemplateToken,
    ParseError,
    SeparatorNotFound,
    SymbolUnresolvable,
    TemplateParser,
)
from .replay import ReplayFileSource
from .telegram_client import TelegramConfig, TelegramListener

__all__ = [
    "InboundMessage",
    "ParsedSignal",
    "TemplateRule",
    "TemplateParser",
    "ParseError",
    "EmptyMessage",
    "MissingTemplateToken",
    "LinkMissing",
    "SymbolUnresolvable",
    "InvalidSeparatorConfig",
    "SeparatorNotFound",
    "ReplayFileSource",
    "TelegramConfig",
    "TelegramListener",
]
