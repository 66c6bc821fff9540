"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  AJK CRM - Customer model                                                    ║
║                                                                              ║
║  Stored with camelCase keys (same shape as the JSON API).                    ║
║  nextVisit is a calendar date without time zone, serialized YYYY-MM-DD.      ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import re
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class PriceType(str, Enum):
    FIXED = "Fixed"
    HOURLY = "Hourly"


class Recurrence(str, Enum):
    """Cadence governing automatic rescheduling of nextVisit"""
    NONE = "None"
    WEEKLY = "Weekly"
    BI_WEEKLY = "Bi-weekly"
    MONTHLY = "Monthly"


class WorkStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


def is_valid_email_format(email: str) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


def _clean_email(v):
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if not is_valid_email_format(v):
        raise ValueError(f"Invalid email format: {v}")
    return v


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
        extra="ignore",
    )


class CustomerCreate(_CamelModel):
    """Input for a new customer; id and bookkeeping fields are assigned by the store"""
    name: str = Field(min_length=1)
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    visit_time: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    price_type: PriceType = PriceType.FIXED
    recurring: Recurrence = Recurrence.NONE
    work_status: WorkStatus = WorkStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    next_visit: date
    last_payment: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _clean_email(v)

    @field_validator("price_type", mode="before")
    @classmethod
    def default_price_type(cls, v):
        # The front end sends "" when the select is left untouched
        return v or PriceType.FIXED


class CustomerUpdate(_CamelModel):
    """Partial update; only fields present in the payload are written"""
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    visit_time: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    price_type: Optional[PriceType] = None
    recurring: Optional[Recurrence] = None
    work_status: Optional[WorkStatus] = None
    payment_status: Optional[PaymentStatus] = None
    next_visit: Optional[date] = None
    last_payment: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _clean_email(v)

    @field_validator("price_type", mode="before")
    @classmethod
    def blank_price_type(cls, v):
        return v or None

    def to_changes(self) -> dict:
        """Storage-ready dict of the fields the caller actually sent"""
        changes = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        # These are required on the document; null means "leave as is"
        for key in ("name", "nextVisit", "priceType", "recurring", "workStatus", "paymentStatus"):
            if key in changes and changes[key] is None:
                changes.pop(key)
        return changes


class Customer(CustomerCreate):
    """Customer document as stored and returned by the API"""
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ReminderRequest(_CamelModel):
    message: Optional[str] = None
    language: str = "en"


class PdfExportRequest(_CamelModel):
    customer_ids: Optional[List[str]] = None
    title: Optional[str] = None
    language: str = "en"
