"""
Discount amount for an eligible coupon.
"""
from coupons.models import Coupon, DiscountType


def compute_discount(coupon: Coupon, cart_value: float) -> float:
    """
    Unrounded discount for the coupon on a cart of the given value.

    FLAT never exceeds the cart value; PERCENT is capped by
    maxDiscountAmount when one is set.
    """
    if coupon.discountType == DiscountType.FLAT:
        discount = min(float(coupon.discountValue), cart_value)
    elif coupon.discountType == DiscountType.PERCENT:
        discount = cart_value * (float(coupon.discountValue) / 100.0)
        if coupon.maxDiscountAmount is not None:
            discount = min(discount, float(coupon.maxDiscountAmount))
    else:
        return 0.0
    return max(0.0, discount)


def round_amount(amount: float) -> float:
    return round(amount, 2)
