"""
Eligibility rules.

A coupon is checked against an ordered tuple of independent rules. The
first failing rule decides the reported reason; the order does not change
whether a coupon is eligible.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from coupons.cart import CartFacts
from coupons.ledger import UsageLedger
from coupons.logger import get_logger
from coupons.models import Coupon, UserInfo

logger = get_logger("eligibility")


@dataclass(frozen=True)
class EvaluationContext:
    coupon: Coupon
    user: Optional[UserInfo]
    facts: CartFacts
    ledger: UsageLedger
    now: datetime


@dataclass(frozen=True)
class Evaluation:
    eligible: bool
    reason: Optional[str] = None


ELIGIBLE = Evaluation(eligible=True)


@dataclass(frozen=True)
class Rule:
    """A named check returning a failure reason, or None when satisfied."""
    name: str
    check: Callable[[EvaluationContext], Optional[str]]


def _folded(values: Iterable[str], fold: Callable[[str], str]) -> set:
    return {fold(str(v).strip()) for v in values}


def _check_validity_window(ctx: EvaluationContext) -> Optional[str]:
    if ctx.now < ctx.coupon.startDate:
        return "not started"
    if ctx.coupon.endDate is not None and ctx.now > ctx.coupon.endDate:
        return "expired"
    return None


def _check_usage_limit(ctx: EvaluationContext) -> Optional[str]:
    limit = ctx.coupon.usageLimitPerUser
    if limit is None or ctx.user is None or not ctx.user.userId:
        return None
    if ctx.ledger.get(ctx.user.userId, ctx.coupon.code) >= limit:
        return "usage limit reached"
    return None


def _check_user_tier(ctx: EvaluationContext) -> Optional[str]:
    tiers = ctx.coupon.eligibility.allowedUserTiers
    if not tiers:
        return None
    if ctx.user is None or not ctx.user.userTier:
        return "user tier not allowed"
    if ctx.user.userTier.strip().upper() not in _folded(tiers, str.upper):
        return "user tier not allowed"
    return None


def _check_min_lifetime_spend(ctx: EvaluationContext) -> Optional[str]:
    threshold = ctx.coupon.eligibility.minLifetimeSpend
    if threshold is None:
        return None
    if ctx.user is None or ctx.user.lifetimeSpend < threshold:
        return "min lifetime spend not met"
    return None


def _check_min_orders_placed(ctx: EvaluationContext) -> Optional[str]:
    threshold = ctx.coupon.eligibility.minOrdersPlaced
    if threshold is None:
        return None
    if ctx.user is None or ctx.user.ordersPlaced < threshold:
        return "min orders placed not met"
    return None


def _check_first_order(ctx: EvaluationContext) -> Optional[str]:
    if not ctx.coupon.eligibility.firstOrderOnly:
        return None
    if ctx.user is None or ctx.user.ordersPlaced != 0:
        return "not first order"
    return None


def _check_country(ctx: EvaluationContext) -> Optional[str]:
    countries = ctx.coupon.eligibility.allowedCountries
    if not countries:
        return None
    if ctx.user is None or not ctx.user.country:
        return "country not allowed"
    if ctx.user.country.strip().upper() not in _folded(countries, str.upper):
        return "country not allowed"
    return None


def _check_min_cart_value(ctx: EvaluationContext) -> Optional[str]:
    threshold = ctx.coupon.eligibility.minCartValue
    if threshold is not None and ctx.facts.cart_value < threshold:
        return "min cart value not met"
    return None


def _check_applicable_categories(ctx: EvaluationContext) -> Optional[str]:
    categories = ctx.coupon.eligibility.applicableCategories
    if categories and ctx.facts.categories.isdisjoint(_folded(categories, str.lower)):
        return "no applicable categories in cart"
    return None


def _check_excluded_categories(ctx: EvaluationContext) -> Optional[str]:
    categories = ctx.coupon.eligibility.excludedCategories
    if categories and not ctx.facts.categories.isdisjoint(_folded(categories, str.lower)):
        return "excluded category present"
    return None


def _check_min_items_count(ctx: EvaluationContext) -> Optional[str]:
    threshold = ctx.coupon.eligibility.minItemsCount
    if threshold is not None and ctx.facts.items_count < threshold:
        return "min items count not met"
    return None


RULES = (
    Rule("validity_window", _check_validity_window),
    Rule("usage_limit", _check_usage_limit),
    Rule("allowed_user_tiers", _check_user_tier),
    Rule("min_lifetime_spend", _check_min_lifetime_spend),
    Rule("min_orders_placed", _check_min_orders_placed),
    Rule("first_order_only", _check_first_order),
    Rule("allowed_countries", _check_country),
    Rule("min_cart_value", _check_min_cart_value),
    Rule("applicable_categories", _check_applicable_categories),
    Rule("excluded_categories", _check_excluded_categories),
    Rule("min_items_count", _check_min_items_count),
)

EVALUATION_ORDER = tuple(rule.name for rule in RULES)


def evaluate(
    coupon: Coupon,
    user: Optional[UserInfo],
    facts: CartFacts,
    ledger: UsageLedger,
    now: datetime,
) -> Evaluation:
    """Run every rule in order and stop at the first failure."""
    ctx = EvaluationContext(coupon=coupon, user=user, facts=facts, ledger=ledger, now=now)
    for rule in RULES:
        reason = rule.check(ctx)
        if reason is not None:
            logger.debug(f"{coupon.code} rejected by {rule.name}: {reason}")
            return Evaluation(eligible=False, reason=reason)
    return ELIGIBLE
