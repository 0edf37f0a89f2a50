"""
Coupon evaluation engine.

Picks the single best coupon for a (user, cart) pair and applies coupons
against an in-memory per-user usage ledger.
"""
from coupons.models import (
    AppliedResult,
    BestResult,
    Cart,
    CartItem,
    Coupon,
    DiscountType,
    Eligibility,
    UserInfo,
)
from coupons.ledger import UsageLedger
from coupons.service import CouponService

__all__ = [
    "AppliedResult",
    "BestResult",
    "Cart",
    "CartItem",
    "Coupon",
    "CouponService",
    "DiscountType",
    "Eligibility",
    "UsageLedger",
    "UserInfo",
]
