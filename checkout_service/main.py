# checkout_service/main.py
import uvicorn
from fastapi import FastAPI

from checkout_service.api.routers import carts, coupons, health, orders, payments
from checkout_service.data.database import engine, init_db
from checkout_service.utils.logging import get_logger

logger = get_logger(__name__)


def create_app(create_tables: bool = True) -> FastAPI:
    if create_tables:
        init_db(engine)
        logger.info("Database tables ready")

    app = FastAPI(
        title="Checkout Service",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(coupons.router)
    app.include_router(orders.router)
    app.include_router(payments.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
