"""Request bodies for buy/send/deposit.

Fields are optional on purpose: business validation (minimums, missing
values) is answered with a 400 and a readable message by the routes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BuyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    symbol: Optional[str] = None
    amount_usd: Optional[float] = Field(None, alias="amountUSD")
    user_id: Optional[str] = Field(None, alias="userId")


class SendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    symbol: Optional[str] = None
    amount: Optional[float] = None
    to_address: Optional[str] = Field(None, alias="toAddress")
    user_id: Optional[str] = Field(None, alias="userId")


class DepositRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    amount: Optional[float] = None
    currency: Optional[str] = None
    payment_method: str = Field("card", alias="paymentMethod")
    user_id: Optional[str] = Field(None, alias="userId")
