"""
Core data models for position building.

This module defines the Pydantic models for normalized brokerage transactions and the
parsed option details attached to them.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

OPENING_CODES = {"STO", "BTO"}
CLOSING_CODES = {"STC", "BTC", "OEXP", "OASGN"}
OPTION_CODES = OPENING_CODES | CLOSING_CODES
STOCK_CODES = {"BUY", "SELL"}
KNOWN_TRANS_CODES = OPTION_CODES | STOCK_CODES | {
    "INT",
    "CDIV",
    "GOLD",
    "SLIP",
    "ACATI",
    "ABIP",
    "MINT",
    "ACH",
}

_OPTION_TYPE_ALIASES = {"C": "Call", "CALL": "Call", "P": "Put", "PUT": "Put"}


class MalformedTransactionError(ValueError):
    """Raised when an option transaction lacks the fields needed to identify its contract."""


class ParsedOption(BaseModel):
    """Option details parsed from a transaction description by the ingestion layer."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., description="Underlying symbol (e.g., 'TSLA')")
    expiration: Optional[date] = Field(None, description="Contract expiration date")
    strike: Optional[Decimal] = Field(None, description="Strike price")
    option_type: Optional[str] = Field(None, description="'Call' or 'Put'")
    is_option: bool = Field(False, description="Whether the record is an option trade")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v):
        return v.strip().upper()

    @field_validator("option_type")
    @classmethod
    def validate_option_type(cls, v):
        if v is None:
            return v
        normalized = _OPTION_TYPE_ALIASES.get(v.strip().upper())
        if normalized is None:
            raise ValueError('option_type must be "Call" or "Put"')
        return normalized


class Transaction(BaseModel):
    """A single normalized brokerage transaction."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier assigned at ingestion")
    activity_date: datetime = Field(..., description="When the transaction occurred")
    instrument: str = Field(..., description="Instrument symbol as reported by the broker")
    description: str = Field("", description="Broker description of the transaction")
    trans_code: str = Field(..., description="Broker transaction code (STO, BTC, ...)")
    quantity: int = Field(..., description="Number of contracts or shares")
    price: Decimal = Field(Decimal("0"), description="Price per contract or share")
    amount: Decimal = Field(Decimal("0"), description="Signed cash impact (credit > 0)")
    option: ParsedOption

    @field_validator("activity_date", mode="before")
    @classmethod
    def coerce_activity_date(cls, v):
        if isinstance(v, datetime):
            return v
        if isinstance(v, date):
            return datetime(v.year, v.month, v.day)
        if isinstance(v, str) and "/" in v:
            return datetime.strptime(v.strip(), "%m/%d/%Y")
        return v

    @field_validator("activity_date")
    @classmethod
    def normalize_timezone(cls, v):
        # Aware timestamps are stored as naive UTC.
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("trans_code")
    @classmethod
    def validate_trans_code(cls, v):
        code = v.strip().upper()
        if code not in KNOWN_TRANS_CODES:
            raise ValueError(f"Unknown transaction code: {v}")
        return code

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v < 0:
            raise ValueError("quantity must be non-negative")
        return v

    @property
    def symbol(self) -> str:
        return self.option.symbol or self.instrument.strip().upper()

    @property
    def is_option(self) -> bool:
        return self.option.is_option and self.trans_code in OPTION_CODES

    @property
    def is_opening(self) -> bool:
        return self.trans_code in OPENING_CODES

    @property
    def is_closing(self) -> bool:
        return self.trans_code in CLOSING_CODES

    @property
    def trade_day(self) -> date:
        return self.activity_date.date()
