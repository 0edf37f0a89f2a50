"""
In-memory coupon collection keyed by normalized code.
"""
import threading
from typing import Dict, Iterable, List, Optional

from coupons.errors import DuplicateCouponError
from coupons.models import Coupon, normalize_code


class CouponStore:
    def __init__(self, coupons: Iterable[Coupon] = ()):
        self._coupons: Dict[str, Coupon] = {}
        self._lock = threading.Lock()
        self.load(coupons)

    def add(self, coupon: Coupon) -> Coupon:
        """Insert a coupon; the uniqueness check and insert are atomic."""
        code = normalize_code(coupon.code)
        with self._lock:
            if code in self._coupons:
                raise DuplicateCouponError(code)
            self._coupons[code] = coupon
        return coupon

    def get(self, code: str) -> Optional[Coupon]:
        with self._lock:
            return self._coupons.get(normalize_code(code))

    def list(self) -> List[Coupon]:
        with self._lock:
            return list(self._coupons.values())

    def load(self, coupons: Iterable[Coupon]) -> None:
        for coupon in coupons:
            self.add(coupon)

    def clear(self) -> None:
        with self._lock:
            self._coupons.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._coupons)

    def __contains__(self, code) -> bool:
        return self.get(code) is not None
