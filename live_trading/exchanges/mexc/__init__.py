"""MEXC exchange package."""

from .adapter import MexcExchange
from .client import MexcClient

__all__ = ["MexcExchange", "MexcClient"]
