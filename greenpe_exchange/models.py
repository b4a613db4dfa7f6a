"""
Data models for the GreenPe exchange
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderStatus(str, Enum):
    """Status of a sell order"""
    OPEN = "open"
    MATCHED = "matched"


class ExchangeModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class Account(ExchangeModel):
    """Onboarded account. Replaced, never edited, on re-onboarding."""
    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., description="Deterministic energy id, e.g. asha@greenpe")
    display_name: str = Field(..., description="Name given at onboarding")
    identity_hash: Optional[str] = Field(None, description="Placeholder identity hash, not real KYC")
    tax_id: Optional[str] = Field(None, description="Optional tax identifier")


class AccountBalance(ExchangeModel):
    """One ledger row. Every amount is normalised after each mutation."""
    model_config = ConfigDict(validate_assignment=True)

    account_id: str
    energy_total_kwh: float = Field(default=0.0, ge=0)
    last_reading_kwh: float = Field(default=0.0, ge=0)
    credit_balance: float = Field(default=0.0, ge=0)
    carbon_offset_kg: float = Field(default=0.0, ge=0)
    cash_balance: float = Field(default=0.0, ge=0)


class MeterReading(ExchangeModel):
    """A single tick of the meter feed"""
    model_config = ConfigDict(frozen=True)

    kwh: float = Field(..., ge=0, description="Energy generated in this tick")
    taken_at: datetime


class Order(ExchangeModel):
    """Sell order. The credit amount is already reserved from the seller."""
    order_id: str
    seller_account_id: str
    credit_amount: float = Field(..., gt=0)
    price_per_credit: float = Field(..., gt=0)
    created_at: datetime
    status: OrderStatus = Field(default=OrderStatus.OPEN)


class Trade(ExchangeModel):
    """Matched order. Only ``settled`` changes after creation."""
    trade_id: str
    order_id: str
    buyer_account_id: str
    seller_account_id: str
    credit_amount: float = Field(..., gt=0)
    price_per_credit: float = Field(..., gt=0)
    total_price: float = Field(..., ge=0)
    payment_ref: str
    created_at: datetime
    settled: bool = False


class ComplianceInfo(ExchangeModel):
    model_config = ConfigDict(frozen=True)

    flag: bool = True
    issued_at: datetime


class Certificate(ExchangeModel):
    """Green impact certificate: a frozen snapshot of the ledger totals"""
    model_config = ConfigDict(frozen=True)

    certificate_id: str
    issuer: str
    total_credits: float = Field(..., ge=0)
    total_carbon_offset_kg: float = Field(..., ge=0)
    generator_account_id: str
    identity_hash: Optional[str] = None
    tax_id: str = "NA"
    compliance: ComplianceInfo
