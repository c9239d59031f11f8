"""Response payloads of the MEXC spot order endpoint."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator  # type: ignore[import-not-found]

# Embedded codes the exchange uses for success inside a 200 response.
SUCCESS_CODES = frozenset({"0", "200", "ok"})


class MexcError(BaseModel):
    """Error body returned with non-200 responses."""

    model_config = ConfigDict(extra="ignore")

    code: Optional[int | str] = None
    msg: str = ""


class OrderResponse(BaseModel):
    """Body of a transport-successful order placement."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    symbol: str = ""
    order_id: Optional[str] = Field(default=None, alias="orderId")
    client_order_id: Optional[str] = Field(default=None, alias="clientOrderId")
    transact_time: Optional[int] = Field(default=None, alias="transactTime")
    code: Optional[int | str] = None
    msg: str = ""

    @field_validator("order_id", "client_order_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def is_success(self) -> bool:
        if self.code is None:
            return True
        return str(self.code).strip().lower() in SUCCESS_CODES
