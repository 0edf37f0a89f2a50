"""
Cart facts: total value, item count and categories present.

Cart input comes from untrusted callers, so anything malformed counts as
zero instead of raising.
"""
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, FrozenSet

from coupons.models import Cart


@dataclass(frozen=True)
class CartFacts:
    cart_value: float = 0.0
    items_count: float = 0
    categories: FrozenSet[str] = field(default_factory=frozenset)


EMPTY_FACTS = CartFacts()


def _number(value: Any) -> float:
    """Non-negative finite float, or 0.0 for anything else."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def compute_cart_facts(cart: Any) -> CartFacts:
    """Derive CartFacts from a Cart model, a raw mapping, or None."""
    if isinstance(cart, Cart):
        if cart.items is None:
            return EMPTY_FACTS
        return CartFacts(
            cart_value=float(cart.total_value()),
            items_count=int(cart.total_items_count()),
            categories=frozenset(cart.categories()),
        )

    if not isinstance(cart, Mapping):
        return EMPTY_FACTS
    items = cart.get("items")
    if not isinstance(items, list):
        return EMPTY_FACTS

    cart_value = 0.0
    items_count = 0.0
    categories = set()
    for item in items:
        if not isinstance(item, Mapping):
            continue
        quantity = _number(item.get("quantity"))
        cart_value += _number(item.get("unitPrice")) * quantity
        items_count += quantity
        category = str(item.get("category") or "").strip().lower()
        if category:
            categories.add(category)

    return CartFacts(cart_value=cart_value, items_count=items_count, categories=frozenset(categories))
