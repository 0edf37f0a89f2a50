"""Pytest configuration for coupon service tests."""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from coupons.ledger import UsageLedger  # noqa: E402
from coupons.models import Cart, Coupon, UserInfo  # noqa: E402
from coupons.service import CouponService  # noqa: E402

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_coupon(code="TEST", discountType="FLAT", discountValue=100, **overrides):
    data = {
        "code": code,
        "discountType": discountType,
        "discountValue": discountValue,
        "startDate": NOW - timedelta(days=1),
        "endDate": NOW + timedelta(days=30),
    }
    data.update(overrides)
    return Coupon(**data)


def make_cart(*items):
    """items: (category, unitPrice, quantity) tuples."""
    return Cart(items=[
        {"productId": f"p{i}", "category": category, "unitPrice": price, "quantity": qty}
        for i, (category, price, qty) in enumerate(items)
    ])


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def ledger():
    return UsageLedger()


@pytest.fixture
def service():
    """Fresh service seeded with the default coupons, clock frozen at NOW."""
    return CouponService(clock=lambda: NOW)


@pytest.fixture
def empty_service():
    return CouponService(clock=lambda: NOW, seed=False)


@pytest.fixture
def new_user():
    return UserInfo(userId="u-new", userTier="NEW", country="IN", lifetimeSpend=0, ordersPlaced=0)


@pytest.fixture
def api_client():
    """TestClient against the app, with coupons and usage reset around each test."""
    from fastapi.testclient import TestClient
    import main

    main.service.reset()
    with TestClient(main.app) as c:
        yield c
    main.service.reset()
