"""
Coupon service: the operations the HTTP layer exposes.

create / list coupons, pick the best coupon for a user and cart (read-only),
and apply a coupon, which is the only path that writes the usage ledger.
"""
from collections.abc import Mapping
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from coupons.cart import compute_cart_facts
from coupons.discount import compute_discount, round_amount
from coupons.eligibility import evaluate
from coupons.errors import CouponIneligibleError, CouponNotFoundError, CouponValidationError
from coupons.ledger import UsageLedger
from coupons.logger import get_logger
from coupons.models import AppliedCoupon, AppliedResult, BestResult, Coupon, UserInfo, normalize_code
from coupons.ranking import select_best
from coupons.seed import default_coupons
from coupons.store import CouponStore

logger = get_logger("service")

REQUIRED_FIELDS = ("code", "discountType", "discountValue", "startDate", "endDate")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _describe(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(messages)


class CouponService:
    def __init__(
        self,
        store: Optional[CouponStore] = None,
        ledger: Optional[UsageLedger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        seed: bool = True,
    ):
        self.store = store if store is not None else CouponStore()
        self.ledger = ledger if ledger is not None else UsageLedger()
        self.clock = clock or now_utc
        self.seed = seed
        if seed:
            self.store.load(default_coupons(self.clock()))

    def create_coupon(self, data: Any) -> Coupon:
        """Validate and store a new coupon; the code must be unused."""
        if isinstance(data, Coupon):
            coupon = data
        else:
            if not isinstance(data, Mapping):
                raise CouponValidationError("Coupon must be an object")
            missing = [name for name in REQUIRED_FIELDS if _is_missing(data.get(name))]
            if missing:
                raise CouponValidationError(f"Missing required fields: {', '.join(missing)}")
            try:
                coupon = Coupon.model_validate(dict(data))
            except ValidationError as exc:
                raise CouponValidationError(_describe(exc)) from exc

        self.store.add(coupon)
        logger.info(f"Created coupon {coupon.code} ({coupon.discountType.value} {coupon.discountValue})")
        return coupon

    def list_coupons(self) -> List[Coupon]:
        return self.store.list()

    def get_coupon(self, code: str) -> Coupon:
        coupon = self.store.get(code)
        if coupon is None:
            raise CouponNotFoundError(normalize_code(code))
        return coupon

    def best_coupon(
        self,
        user: Optional[UserInfo],
        cart: Any,
        evaluate_usage_impact: bool = False,
        now: Optional[datetime] = None,
    ) -> Optional[BestResult]:
        """
        Returns the best coupon for the user and cart, or None.

        Never writes the usage ledger.
        """
        result = select_best(self.store.list(), user, cart, self.ledger, now or self.clock())
        if result is None or not evaluate_usage_impact:
            return result

        # Projected usage if applied now
        current = 0
        if user is not None and user.userId:
            current = self.ledger.get(user.userId, result.coupon.code)
        return result.model_copy(update={
            "projectedUsageForUser": current + 1,
            "usageLimitPerUser": result.coupon.usageLimitPerUser,
        })

    def apply_coupon(
        self,
        user: Optional[UserInfo],
        cart: Any,
        code: Optional[str],
        now: Optional[datetime] = None,
    ) -> AppliedResult:
        """
        Re-check eligibility for one coupon and consume it.

        The usage count is incremented only for identified users, and only
        after the full check passes under the (user, code) lock.
        """
        if _is_missing(code):
            raise CouponValidationError("code required")
        coupon = self.get_coupon(code)
        facts = compute_cart_facts(cart)
        user_id = user.userId if user is not None and user.userId else None

        guard = self.ledger.hold(user_id, coupon.code) if user_id else nullcontext()
        with guard:
            evaluation = evaluate(coupon, user, facts, self.ledger, now or self.clock())
            if not evaluation.eligible:
                logger.info(f"Rejected {coupon.code} for user {user_id or '<anonymous>'}: {evaluation.reason}")
                raise CouponIneligibleError(coupon.code, evaluation.reason)

            discount = compute_discount(coupon, facts.cart_value)
            usage_count = self.ledger.increment(user_id, coupon.code) if user_id else None

        logger.info(f"Applied {coupon.code} for user {user_id or '<anonymous>'}: discount {round_amount(discount)}")
        return AppliedResult(
            coupon=AppliedCoupon(
                code=coupon.code,
                discountType=coupon.discountType,
                discountValue=coupon.discountValue,
            ),
            discountAmount=round_amount(discount),
            finalAmount=round_amount(max(0.0, facts.cart_value - discount)),
            usageCount=usage_count,
        )

    def usage_for(self, user_id: str) -> Dict[str, int]:
        return self.ledger.usage_for(user_id)

    def reset(self) -> None:
        """Drop created coupons and usage; reload the defaults when seeding."""
        self.store.clear()
        self.ledger.clear()
        if self.seed:
            self.store.load(default_coupons(self.clock()))
