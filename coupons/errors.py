"""
Exceptions raised by the coupon service.

Each carries the HTTP status the API layer answers with.
"""


class CouponError(Exception):
    """Base class for coupon service errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CouponValidationError(CouponError):
    """Missing or malformed fields on coupon creation."""

    status_code = 400


class DuplicateCouponError(CouponError):
    """A coupon with the same normalized code already exists."""

    status_code = 409

    def __init__(self, code: str):
        super().__init__("Coupon code already exists")
        self.code = code


class CouponNotFoundError(CouponError):
    status_code = 404

    def __init__(self, code: str):
        super().__init__("Coupon not found")
        self.code = code


class CouponIneligibleError(CouponError):
    """Apply was rejected by the eligibility rules."""

    status_code = 400

    def __init__(self, code: str, reason: str):
        super().__init__(reason)
        self.code = code
        self.reason = reason
