"""Low-level MEXC REST client."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Mapping, Optional

import requests
from pydantic import ValidationError  # type: ignore[import-not-found]

from ...exchange import (
    AuthenticationError,
    ExchangeConfig,
    OrderRejected,
    SubmissionError,
    TransportError,
)
from .models import MexcError, OrderResponse
from .utils import canonical_query, hmac_sha256_hex


class MexcClient:
    """Low-level MEXC spot REST client (HMAC-SHA256 over the sorted query)."""

    MAINNET_BASE_URL = "https://api.mexc.com"
    TESTNET_BASE_URL = "https://testnet.mexc.com"
    ORDER_PATH = "/api/v3/order"
    API_KEY_HEADER = "X-MEXC-APIKEY"

    def __init__(
        self,
        config: ExchangeConfig,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._log = logger or logging.getLogger(__name__)
        base_url = config.base_url or (
            self.TESTNET_BASE_URL if config.testnet else self.MAINNET_BASE_URL
        )
        self._base_url = base_url.rstrip("/")
        self._api_key = config.api_key
        self._secret = config.api_secret
        self._timeout = config.timeout
        self._recv_window_ms = config.recv_window_ms
        self._clock = clock

        self._session = session or requests.Session()
        # Do not inherit env proxies by default; honor explicit config instead.
        self._session.trust_env = False
        if config.proxies:
            self._session.proxies = config.proxies
            self._log.debug("MEXC: Using proxies %s", config.proxies)

        self._log.info(
            "MEXC: initialized base_url=%s testnet=%s",
            self._base_url,
            config.testnet,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def timestamp_ms(self) -> str:
        return str(int(self._clock() * 1000))

    def sign(self, payload: str) -> str:
        return hmac_sha256_hex(self._secret, payload)

    def signed_body(self, params: Mapping[str, str]) -> str:
        """Add timestamp and recvWindow, then return ``canonical&signature=hex``."""
        full: Dict[str, str] = dict(params)
        full["timestamp"] = self.timestamp_ms()
        full["recvWindow"] = str(self._recv_window_ms)
        query = canonical_query(full)
        return f"{query}&signature={self.sign(query)}"

    def place_order(self, params: Mapping[str, str]) -> OrderResponse:
        """POST /api/v3/order and interpret the response.

        Raises:
            TransportError: On connection failure or timeout
            OrderRejected: If the exchange refused the order
            SubmissionError: If a 200 response cannot be decoded
        """
        body = self.signed_body(params)
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            self.API_KEY_HEADER: self._api_key,
        }
        try:
            resp = self._session.post(
                f"{self._base_url}{self.ORDER_PATH}",
                data=body,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise TransportError(f"MEXC order request timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportError(f"MEXC order request failed: {exc}") from exc

        if resp.status_code != 200:
            raise self._rejection(resp)

        try:
            payload = OrderResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise SubmissionError(f"decode order response: {exc}") from exc

        if not payload.is_success():
            raise OrderRejected(
                f"order error: {payload.msg} ({payload.code})",
                code=payload.code,
                status_code=resp.status_code,
            )
        if not payload.order_id or payload.transact_time is None:
            raise SubmissionError(
                "malformed order response: orderId and transactTime are required"
            )
        return payload

    @staticmethod
    def _rejection(resp: requests.Response) -> OrderRejected:
        error_cls = (
            AuthenticationError if resp.status_code in (401, 403) else OrderRejected
        )
        try:
            api_err = MexcError.model_validate(resp.json())
        except (ValueError, ValidationError):
            return error_cls(
                f"order rejected status {resp.status_code}",
                status_code=resp.status_code,
            )
        return error_cls(
            f"order rejected: {api_err.msg} ({api_err.code})",
            code=api_err.code,
            status_code=resp.status_code,
        )

    def close(self) -> None:
        self._session.close()
