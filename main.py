"""
FastAPI server for the coupon service.

Usage:
    python main.py
    # or
    uvicorn main:app --reload --port 8000
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from coupons.config import get_config
from coupons.errors import CouponError, CouponValidationError
from coupons.logger import get_logger
from coupons.models import Cart, UserInfo
from coupons.service import CouponService

logger = get_logger("api")
config = get_config()


# ==========================
# Request Models
# ==========================
class BestCouponInput(BaseModel):
    user: Optional[UserInfo] = None
    cart: Optional[Cart] = None
    evaluateUsageImpact: Optional[bool] = False


class ApplyCouponInput(BaseModel):
    user: Optional[UserInfo] = None
    cart: Optional[Cart] = None
    code: Optional[str] = None


# ==========================
# Application Setup
# ==========================
app = FastAPI(title="Coupon Management API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Coupons and usage live in memory; a restart reseeds the defaults
service = CouponService(seed=config.seed_coupons)

router = APIRouter(prefix=config.api_prefix)


@app.exception_handler(CouponError)
async def coupon_error_handler(request: Request, exc: CouponError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request", "errors": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})


# ==========================
# API Routes
# ==========================
@app.get("/")
def root():
    return {"service": "Coupon Management API", "status": "ok", "coupons": len(service.store)}


@router.post("/coupons")
def create_coupon(body: Dict[str, Any] = Body(...)):
    coupon = service.create_coupon(body)
    return {"success": True, "coupon": coupon}


@router.get("/coupons")
def list_coupons():
    return {"success": True, "coupons": service.list_coupons()}


@router.post("/best-coupon")
def get_best_coupon(payload: BestCouponInput):
    if payload.cart is None or payload.cart.items is None:
        raise CouponValidationError("Invalid cart")
    best = service.best_coupon(payload.user, payload.cart, payload.evaluateUsageImpact or False)
    if best is None:
        return {"success": True, "best": None}
    body = best.model_dump(mode="json")
    if not payload.evaluateUsageImpact:
        body.pop("projectedUsageForUser", None)
        body.pop("usageLimitPerUser", None)
    return {"success": True, "best": body}


@router.post("/apply-coupon")
def apply_coupon(payload: ApplyCouponInput):
    result = service.apply_coupon(payload.user, payload.cart, payload.code)
    return {"success": True, **result.model_dump(mode="json")}


@router.get("/usage/{user_id}")
def get_usage(user_id: str):
    return {"success": True, "userId": user_id, "usage": service.usage_for(user_id)}


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.host, port=config.port)
