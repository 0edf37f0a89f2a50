"""
Tests for the coupon service: creation, listing, best-coupon queries and
the apply flow against the default coupons.
"""

import threading
from datetime import timedelta

import pytest

from coupons.errors import (
    CouponIneligibleError,
    CouponNotFoundError,
    CouponValidationError,
    DuplicateCouponError,
)
from coupons.models import DiscountType, UserInfo
from coupons.store import CouponStore

from conftest import NOW, make_cart, make_coupon


def coupon_payload(**overrides):
    data = {
        "code": "summer25",
        "description": "25% off",
        "discountType": "PERCENT",
        "discountValue": 25,
        "maxDiscountAmount": 300,
        "startDate": "2025-06-01",
        "endDate": "2025-08-31T23:59:59Z",
        "usageLimitPerUser": 3,
        "eligibility": {"minCartValue": 1000},
    }
    data.update(overrides)
    return data


# ============================================================================
# Creation & listing
# ============================================================================

class TestCreateCoupon:
    def test_code_normalized(self, empty_service):
        coupon = empty_service.create_coupon(coupon_payload(code="  summer25 "))
        assert coupon.code == "SUMMER25"
        assert coupon.discountType == DiscountType.PERCENT
        assert coupon.startDate.isoformat() == "2025-06-01T00:00:00+00:00"
        assert coupon.endDate.isoformat() == "2025-08-31T23:59:59+00:00"
        assert coupon.eligibility.minCartValue == 1000

    def test_discount_type_case_insensitive(self, empty_service):
        coupon = empty_service.create_coupon(coupon_payload(discountType="flat", maxDiscountAmount=None))
        assert coupon.discountType == DiscountType.FLAT

    def test_duplicate_case_insensitive(self, empty_service):
        empty_service.create_coupon(coupon_payload(code="SUMMER25"))
        with pytest.raises(DuplicateCouponError):
            empty_service.create_coupon(coupon_payload(code="Summer25"))
        assert len(empty_service.list_coupons()) == 1

    def test_duplicate_of_seeded_coupon(self, service):
        with pytest.raises(DuplicateCouponError):
            service.create_coupon(coupon_payload(code="welcome100"))

    @pytest.mark.parametrize("field", ["code", "discountType", "discountValue", "startDate", "endDate"])
    def test_missing_required_field(self, empty_service, field):
        payload = coupon_payload()
        del payload[field]
        with pytest.raises(CouponValidationError) as exc:
            empty_service.create_coupon(payload)
        assert field in exc.value.message
        assert empty_service.list_coupons() == []

    def test_zero_discount_value_is_present(self, empty_service):
        assert empty_service.create_coupon(coupon_payload(discountValue=0)).discountValue == 0

    def test_blank_code_rejected(self, empty_service):
        with pytest.raises(CouponValidationError):
            empty_service.create_coupon(coupon_payload(code="   "))

    def test_unparsable_date(self, empty_service):
        with pytest.raises(CouponValidationError) as exc:
            empty_service.create_coupon(coupon_payload(startDate="next tuesday"))
        assert "startDate" in exc.value.message

    def test_unknown_discount_type(self, empty_service):
        with pytest.raises(CouponValidationError):
            empty_service.create_coupon(coupon_payload(discountType="BOGO"))

    def test_percent_over_100(self, empty_service):
        with pytest.raises(CouponValidationError):
            empty_service.create_coupon(coupon_payload(discountValue=150))

    def test_negative_value(self, empty_service):
        with pytest.raises(CouponValidationError):
            empty_service.create_coupon(coupon_payload(discountValue=-5))

    def test_not_a_mapping(self, empty_service):
        with pytest.raises(CouponValidationError):
            empty_service.create_coupon(["SUMMER25"])

    def test_accepts_model(self, empty_service):
        coupon = make_coupon("MODEL")
        assert empty_service.create_coupon(coupon) is coupon

    def test_concurrent_creators_only_one_wins(self, empty_service):
        barrier = threading.Barrier(8)
        outcomes = []

        def create():
            barrier.wait()
            try:
                empty_service.create_coupon(coupon_payload())
                outcomes.append("created")
            except DuplicateCouponError:
                outcomes.append("duplicate")

        threads = [threading.Thread(target=create) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert outcomes.count("created") == 1
        assert len(empty_service.list_coupons()) == 1


def test_list_in_creation_order(service):
    service.create_coupon(coupon_payload())
    codes = [c.code for c in service.list_coupons()]
    assert codes == ["WELCOME100", "FESTIVE50P", "ELECTRO10", "EXCLUDE-FASHION", "SUMMER25"]


def test_get_coupon(service):
    assert service.get_coupon("electro10").code == "ELECTRO10"
    with pytest.raises(CouponNotFoundError):
        service.get_coupon("NOPE")


def test_store_reuse():
    store = CouponStore([make_coupon("A"), make_coupon("B")])
    assert "a" in store
    assert len(store) == 2
    with pytest.raises(DuplicateCouponError):
        CouponStore([make_coupon("A"), make_coupon("a")])


# ============================================================================
# Best coupon
# ============================================================================

class TestBestCoupon:
    def test_festive_capped_at_500(self, service):
        user = UserInfo(userId="u1", userTier="GOLD", country="IN")
        best = service.best_coupon(user, make_cart(("books", 2000, 1)))
        assert best.coupon.code == "FESTIVE50P"
        assert best.discountAmount == 500.0
        assert best.finalAmount == 1500.0

    def test_electro10_scenario(self, service):
        # EXCLUDE-FASHION also saves 150 with the same end date; ELECTRO10 wins on code
        best = service.best_coupon(None, make_cart(("electronics", 1500, 1)))
        assert best.coupon.code == "ELECTRO10"
        assert best.discountAmount == 150.00
        assert best.finalAmount == 1350.00

    def test_welcome_for_new_user_small_cart(self, service, new_user):
        best = service.best_coupon(new_user, make_cart(("books", 300, 1)))
        assert best.coupon.code == "WELCOME100"
        assert best.finalAmount == 200.0

    def test_empty_cart(self, service, new_user):
        assert service.best_coupon(new_user, make_cart()) is None
        assert service.best_coupon(None, {"items": []}) is None

    @pytest.mark.parametrize("price", ["nan", "inf", -1000])
    def test_garbage_prices_earn_nothing(self, service, price):
        cart = {"items": [{"category": "books", "unitPrice": price, "quantity": 1}]}
        assert service.best_coupon(None, cart) is None
        with pytest.raises(CouponIneligibleError) as exc:
            service.apply_coupon(None, cart, "EXCLUDE-FASHION")
        assert exc.value.reason == "min cart value not met"

    def test_fashion_cart_skips_exclude_fashion(self, service):
        user = UserInfo(userId="u1", country="FR")
        assert service.best_coupon(user, make_cart(("fashion", 800, 1))) is None

    def test_idempotent_and_read_only(self, service, new_user):
        cart = make_cart(("books", 2500, 1))
        first = service.best_coupon(new_user, cart)
        second = service.best_coupon(new_user, cart)
        assert first == second
        assert service.ledger.snapshot() == {}

    def test_usage_impact(self, service):
        user = UserInfo(userId="u1", country="IN")
        cart = make_cart(("books", 2000, 1))
        service.apply_coupon(user, cart, "FESTIVE50P")
        best = service.best_coupon(user, cart, evaluate_usage_impact=True)
        assert best.coupon.code == "FESTIVE50P"
        assert best.projectedUsageForUser == 2
        assert best.usageLimitPerUser == 2

    def test_usage_impact_off_by_default(self, service):
        best = service.best_coupon(None, make_cart(("electronics", 1500, 1)))
        assert best.projectedUsageForUser is None

    def test_evaluated_at_given_time(self, service):
        later = NOW + timedelta(days=45)
        best = service.best_coupon(None, make_cart(("electronics", 1500, 1)), now=later)
        assert best.coupon.code == "ELECTRO10"
        assert service.best_coupon(None, make_cart(("electronics", 1500, 1)), now=NOW + timedelta(days=90)) is None


# ============================================================================
# Apply
# ============================================================================

class TestApplyCoupon:
    def test_apply_increments_usage(self, service, new_user):
        result = service.apply_coupon(new_user, make_cart(("books", 300, 1)), "welcome100")
        assert result.coupon.code == "WELCOME100"
        assert result.discountAmount == 100.0
        assert result.finalAmount == 200.0
        assert result.usageCount == 1
        assert service.usage_for("u-new") == {"WELCOME100": 1}

    def test_usage_cap(self, service):
        user = UserInfo(userId="u1", country="IN")
        cart = make_cart(("books", 2000, 1))
        for expected in (1, 2):
            assert service.apply_coupon(user, cart, "FESTIVE50P").usageCount == expected

        with pytest.raises(CouponIneligibleError) as exc:
            service.apply_coupon(user, cart, "FESTIVE50P")
        assert exc.value.reason == "usage limit reached"
        assert service.ledger.get("u1", "FESTIVE50P") == 2

        best = service.best_coupon(user, cart)
        assert best.coupon.code == "EXCLUDE-FASHION"

    def test_welcome_not_first_order(self, service):
        user = UserInfo(userId="u2", userTier="NEW", country="IN", ordersPlaced=1)
        with pytest.raises(CouponIneligibleError) as exc:
            service.apply_coupon(user, make_cart(("books", 300, 1)), "WELCOME100")
        assert exc.value.reason == "not first order"
        assert service.ledger.snapshot() == {}

    def test_exclude_fashion(self, service):
        cart = make_cart(("books", 5000, 1), ("fashion", 10, 1))
        with pytest.raises(CouponIneligibleError) as exc:
            service.apply_coupon(UserInfo(userId="u3"), cart, "EXCLUDE-FASHION")
        assert exc.value.reason == "excluded category present"

    def test_anonymous_apply_not_tracked(self, service):
        result = service.apply_coupon(None, make_cart(("electronics", 1500, 1)), "ELECTRO10")
        assert result.usageCount is None
        assert service.ledger.snapshot() == {}

    def test_unknown_code(self, service):
        with pytest.raises(CouponNotFoundError):
            service.apply_coupon(None, make_cart(("books", 100, 1)), "NOPE")

    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_code_required(self, service, code):
        with pytest.raises(CouponValidationError):
            service.apply_coupon(None, make_cart(("books", 100, 1)), code)

    def test_malformed_cart(self, service):
        with pytest.raises(CouponIneligibleError) as exc:
            service.apply_coupon(None, {"items": "x"}, "ELECTRO10")
        assert exc.value.reason == "no applicable categories in cart"

    def test_concurrent_applies_respect_cap(self, service, new_user):
        cart = make_cart(("books", 300, 1))
        barrier = threading.Barrier(12)
        outcomes = []

        def apply():
            barrier.wait()
            try:
                service.apply_coupon(new_user, cart, "WELCOME100")
                outcomes.append("applied")
            except CouponIneligibleError as exc:
                outcomes.append(exc.reason)

        threads = [threading.Thread(target=apply) for _ in range(12)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert outcomes.count("applied") == 1
        assert outcomes.count("usage limit reached") == 11
        assert service.ledger.get("u-new", "WELCOME100") == 1


def test_reset(service, new_user):
    service.create_coupon(coupon_payload())
    service.apply_coupon(new_user, make_cart(("books", 300, 1)), "WELCOME100")
    service.reset()
    assert [c.code for c in service.list_coupons()] == ["WELCOME100", "FESTIVE50P", "ELECTRO10", "EXCLUDE-FASHION"]
    assert service.ledger.snapshot() == {}
