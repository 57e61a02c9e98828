import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coupons.core.config import settings
from coupons.routers import coupons

logging.basicConfig(level=settings.LOG_LEVEL)

OPENAPI_TAGS = [
    {"name": "Coupons", "description": "Create, apply and redeem discount coupons."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description="Coupon code creation, validation, application and redemption.",
    openapi_tags=OPENAPI_TAGS,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(coupons.router, prefix="/v1/coupons", tags=["Coupons"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
