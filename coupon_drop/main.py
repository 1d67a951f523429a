import uvicorn
from fastapi import FastAPI

from coupon_drop.api.routes.claims import router as claims_router
from coupon_drop.api.routes.health import router as health_router
from coupon_drop.api.routes.internal_coupons import router as internal_coupons_router
from coupon_drop.core.config import get_settings
from coupon_drop.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.app_env != "dev")

    app = FastAPI(
        title="Coupon Drop API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.include_router(health_router)
    app.include_router(claims_router)
    app.include_router(internal_coupons_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "coupon_drop.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
