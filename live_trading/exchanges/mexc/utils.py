"""Shared helpers for MEXC exchange integration."""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping
from urllib.parse import urlencode


def canonical_query(params: Mapping[str, str]) -> str:
    """Sort params by key and form-encode them; this is the exact string that gets signed."""
    return urlencode(sorted(params.items(), key=lambda kv: kv[0]))


def hmac_sha256_hex(secret: str, payload: str) -> str:
    return hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def format_decimal(value: float) -> str:
    """Shortest round-trip representation of ``value`` without exponent notation."""
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def to_datetime(milliseconds: int) -> datetime:
    """Convert milliseconds since epoch to an aware UTC datetime."""
    return datetime.fromtimestamp(milliseconds / 1000, tz=timezone.utc)
