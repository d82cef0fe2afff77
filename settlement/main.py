import uvicorn
from fastapi import FastAPI

from settlement.api.routes.affiliates import router as affiliates_router
from settlement.api.routes.events import router as events_router
from settlement.api.routes.health import router as health_router
from settlement.api.routes.internal_payouts import router as internal_payouts_router
from settlement.api.routes.payment_webhook import router as payment_webhook_router
from settlement.api.routes.tickets import router as tickets_router
from settlement.api.routes.tips import router as tips_router
from settlement.core.config import get_settings
from settlement.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Concert Settlement API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.include_router(health_router)
    app.include_router(tickets_router)
    app.include_router(tips_router)
    app.include_router(events_router)
    app.include_router(affiliates_router)
    app.include_router(payment_webhook_router)
    app.include_router(internal_payouts_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "settlement.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
