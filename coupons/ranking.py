"""
Best-coupon selection.

Tie-breakers:
  1) Highest discount
  2) Earliest endDate (coupons without one sort last)
  3) Lexicographically smaller code
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional

from coupons.cart import CartFacts, compute_cart_facts
from coupons.discount import compute_discount, round_amount
from coupons.eligibility import evaluate
from coupons.ledger import UsageLedger
from coupons.models import BestResult, Coupon, UserInfo, normalize_code


@dataclass(frozen=True)
class Candidate:
    coupon: Coupon
    discount: float


def _sort_key(candidate: Candidate):
    end = candidate.coupon.endDate
    return (
        -candidate.discount,
        end is None,
        end.timestamp() if end is not None else 0.0,
        normalize_code(candidate.coupon.code),
    )


def rank_candidates(
    coupons: Iterable[Coupon],
    user: Optional[UserInfo],
    facts: CartFacts,
    ledger: UsageLedger,
    now: datetime,
) -> List[Candidate]:
    """Eligible coupons with a positive discount, best first."""
    candidates = []
    for coupon in coupons:
        if not evaluate(coupon, user, facts, ledger, now).eligible:
            continue
        discount = compute_discount(coupon, facts.cart_value)
        if discount <= 0:
            continue
        candidates.append(Candidate(coupon=coupon, discount=discount))
    candidates.sort(key=_sort_key)
    return candidates


def select_best(
    coupons: Iterable[Coupon],
    user: Optional[UserInfo],
    cart: Any,
    ledger: UsageLedger,
    now: datetime,
) -> Optional[BestResult]:
    facts = compute_cart_facts(cart)
    candidates = rank_candidates(coupons, user, facts, ledger, now)
    if not candidates:
        return None

    top = candidates[0]
    return BestResult(
        coupon=top.coupon,
        discountAmount=round_amount(top.discount),
        finalAmount=round_amount(max(0.0, facts.cart_value - top.discount)),
    )
