"""
Pydantic models for coupons, users, carts and evaluation results.
"""
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def normalize_code(code: Any) -> str:
    """Coupon codes are compared trimmed and uppercased."""
    if code is None:
        return ""
    return str(code).strip().upper()


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a coupon date into an aware UTC datetime.

    Accepts datetimes, dates and ISO-8601 strings ("2025-01-31",
    "2025-01-31T10:00:00Z", ...). Naive values are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"invalid date: {value!r}")
    else:
        raise ValueError(f"invalid date: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# ==========================
# Domain Models & Validation
# ==========================
class DiscountType(str, Enum):
    FLAT = "FLAT"
    PERCENT = "PERCENT"


class Eligibility(BaseModel):
    """Optional constraints a coupon attaches; absent fields are not checked."""
    model_config = ConfigDict(frozen=True)

    allowedUserTiers: Optional[List[str]] = Field(default=None, description="Allowed user tiers (e.g., NEW/GOLD)")
    minLifetimeSpend: Optional[float] = Field(default=None, ge=0)
    minOrdersPlaced: Optional[int] = Field(default=None, ge=0)
    firstOrderOnly: Optional[bool] = None
    allowedCountries: Optional[List[str]] = None
    minCartValue: Optional[float] = Field(default=None, ge=0)
    applicableCategories: Optional[List[str]] = None
    excludedCategories: Optional[List[str]] = None
    minItemsCount: Optional[int] = Field(default=None, ge=0)


class Coupon(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1, max_length=64)
    description: str = ""
    discountType: DiscountType
    discountValue: float = Field(..., ge=0)
    maxDiscountAmount: Optional[float] = Field(default=None, ge=0, description="Cap for percent discount")
    startDate: datetime
    endDate: Optional[datetime] = None
    usageLimitPerUser: Optional[int] = Field(default=None, ge=0)
    eligibility: Eligibility = Field(default_factory=Eligibility)

    @field_validator("code", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_code(v)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v):
        return v or ""

    @field_validator("discountType", mode="before")
    @classmethod
    def uppercase_discount_type(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return parse_datetime(v)

    @field_validator("eligibility", mode="before")
    @classmethod
    def default_eligibility(cls, v):
        return v if v is not None else Eligibility()

    @model_validator(mode="after")
    def validate_percent_range(self):
        if self.discountType == DiscountType.PERCENT and self.discountValue > 100:
            raise ValueError("PERCENT discountValue must be between 0 and 100")
        return self


class CartItem(BaseModel):
    productId: Optional[str] = None
    category: Optional[str] = None
    unitPrice: float = Field(default=0, ge=0, allow_inf_nan=False)
    quantity: int = Field(default=0, ge=0)


class Cart(BaseModel):
    items: Optional[List[CartItem]] = None

    def total_value(self) -> float:
        return sum(item.unitPrice * item.quantity for item in self.items or [])

    def total_items_count(self) -> int:
        return sum(item.quantity for item in self.items or [])

    def categories(self) -> List[str]:
        return list({item.category.strip().lower() for item in self.items or [] if item.category and item.category.strip()})


class UserInfo(BaseModel):
    userId: Optional[str] = None
    userTier: Optional[str] = None
    country: Optional[str] = None
    lifetimeSpend: float = Field(default=0, ge=0)
    ordersPlaced: int = Field(default=0, ge=0)


# ==========================
# Results
# ==========================
class BestResult(BaseModel):
    coupon: Coupon
    discountAmount: float
    finalAmount: float
    projectedUsageForUser: Optional[int] = None
    usageLimitPerUser: Optional[int] = None


class AppliedCoupon(BaseModel):
    code: str
    discountType: DiscountType
    discountValue: float


class AppliedResult(BaseModel):
    coupon: AppliedCoupon
    discountAmount: float
    finalAmount: float
    usageCount: Optional[int] = Field(default=None, description="Ledger count after apply; None for anonymous users")
