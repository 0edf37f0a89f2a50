"""
Default coupons loaded on startup.

Windows are relative to the load time: every coupon became active a day
earlier.
"""
from datetime import datetime, timedelta
from typing import List

from coupons.models import Coupon

DAY = timedelta(days=1)


def default_coupons(now: datetime) -> List[Coupon]:
    start = now - DAY
    return [
        Coupon(
            code="WELCOME100",
            description="₹100 off for new users",
            discountType="FLAT",
            discountValue=100,
            startDate=start,
            endDate=now + 30 * DAY,
            usageLimitPerUser=1,
            eligibility={
                "allowedUserTiers": ["NEW"],
                "minLifetimeSpend": 0,
                "minOrdersPlaced": 0,
                "firstOrderOnly": True,
                "allowedCountries": ["IN"],
            },
        ),
        Coupon(
            code="FESTIVE50P",
            description="50% up to ₹500 on cart >= ₹2000",
            discountType="PERCENT",
            discountValue=50,
            maxDiscountAmount=500,
            startDate=start,
            endDate=now + 10 * DAY,
            usageLimitPerUser=2,
            eligibility={
                "minCartValue": 2000,
                "allowedCountries": ["IN", "US"],
            },
        ),
        Coupon(
            code="ELECTRO10",
            description="10% off on electronics, min 1 item from electronics",
            discountType="PERCENT",
            discountValue=10,
            startDate=start,
            endDate=now + 60 * DAY,
            eligibility={
                "applicableCategories": ["electronics"],
                "minItemsCount": 1,
            },
        ),
        Coupon(
            code="EXCLUDE-FASHION",
            description="Flat ₹150 off if cart has NO fashion items",
            discountType="FLAT",
            discountValue=150,
            startDate=start,
            endDate=now + 60 * DAY,
            eligibility={
                "excludedCategories": ["fashion"],
                "minCartValue": 500,
            },
        ),
    ]
