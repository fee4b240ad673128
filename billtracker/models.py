from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Any, Optional
from enum import Enum
import math
import uuid

from . import config


class BillStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    PENDING = "Pending"


class BillType(str, Enum):
    ENERGY = "Energy"
    BROADBAND = "Broadband"
    MORTGAGE = "Mortgage"
    STREAMING = "Streaming"
    OTHER = "Other"


def parse_amount(raw: Any, strict: bool = False) -> float:
    """Turn raw amount input into a non-negative finite float.

    Unusable input (non-numeric, NaN, infinite, too large for a float,
    negative) becomes 0.0,
    or raises ValueError when ``strict`` is set.
    """
    value = None
    if not isinstance(raw, bool):
        try:
            value = float(raw)
        except (TypeError, ValueError, OverflowError):
            value = None
    if value is None or not math.isfinite(value) or value < 0:
        if strict:
            raise ValueError(f"invalid amount: {raw!r}")
        return 0.0
    return value


def parse_status(raw: Any) -> BillStatus:
    """Accept a status name (any case) or a legacy paid/unpaid boolean."""
    if isinstance(raw, BillStatus):
        return raw
    if isinstance(raw, bool):
        return BillStatus.PAID if raw else BillStatus.UNPAID
    if isinstance(raw, str):
        wanted = raw.strip().lower()
        for status in BillStatus:
            if status.value.lower() == wanted:
                return status
    raise ValueError(f"unknown status: {raw!r}")


def normalise_currency(raw: Any) -> str:
    code = str(raw or config.DEFAULT_CURRENCY).strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"currency must be a 3-letter code, got {raw!r}")
    return code


def _blank_to_none(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


class Amount(BaseModel):
    value: float = 0.0
    currency: str = Field(default_factory=lambda: config.DEFAULT_CURRENCY)

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, v):
        return parse_amount(v)

    @field_validator("currency", mode="before")
    @classmethod
    def _currency(cls, v):
        return normalise_currency(v)


class Bill(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: str = BillType.OTHER.value
    name: Optional[str] = None
    payment_method: str = Field(
        default="",
        validation_alias=AliasChoices("payment_method", "paymentMethod", "method", "acc"),
        serialization_alias="paymentMethod",
    )
    amount: Amount = Field(default_factory=Amount)
    status: BillStatus = BillStatus.UNPAID

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, v):
        # older records used numeric ids; null or blank ids get a fresh one
        text = _blank_to_none(v)
        return text or uuid.uuid4().hex

    @field_validator("type", mode="before")
    @classmethod
    def _type_text(cls, v):
        if isinstance(v, BillType):
            return v.value
        return _blank_to_none(v) or BillType.OTHER.value

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return _blank_to_none(v)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _payment_method(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("amount", mode="before")
    @classmethod
    def _bare_amount(cls, v):
        # bare numbers predate the {value, currency} shape
        if v is None or isinstance(v, (int, float, str)):
            return {"value": v}
        return v

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return parse_status(v)

    @property
    def display_name(self) -> str:
        return self.name or self.type


class BillIn(BaseModel):
    """A bill as submitted from the add-bill form."""

    type: BillType
    name: Optional[str] = None
    name_streaming: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("name_streaming", "name-streaming")
    )
    name_other: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("name_other", "name-other")
    )
    payment_method: str = Field(
        default="", validation_alias=AliasChoices("payment_method", "paymentMethod")
    )
    amount: float = 0.0
    currency: str = Field(default_factory=lambda: config.DEFAULT_CURRENCY)
    status: BillStatus = BillStatus.UNPAID

    @field_validator("name", "name_streaming", "name_other", mode="before")
    @classmethod
    def _names(cls, v):
        return _blank_to_none(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return parse_amount(v, strict=config.STRICT_AMOUNTS)

    @field_validator("currency", mode="before")
    @classmethod
    def _currency(cls, v):
        return normalise_currency(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return parse_status(v)

    def resolved_name(self) -> Optional[str]:
        return self.name or self.name_streaming or self.name_other

    def to_bill(self) -> Bill:
        return Bill(
            type=self.type.value,
            name=self.resolved_name(),
            payment_method=self.payment_method,
            amount=Amount(value=self.amount, currency=self.currency),
            status=self.status,
        )


class BillEdit(BaseModel):
    """New amount value and status from the edit dialog."""

    amount: float
    status: BillStatus

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return parse_amount(v, strict=config.STRICT_AMOUNTS)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return parse_status(v)
