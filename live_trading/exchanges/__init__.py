"""Exchange implementations."""

from .mexc import MexcExchange

__all__ = ["MexcExchange"]
