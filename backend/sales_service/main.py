import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sales_service.api.health import router as health_router
from sales_service.api.routes_customer import router as customer_router
from sales_service.api.routes_order import router as order_router
from sales_service.api.routes_returns import router as returns_router
from sales_service.api.routes_salesman import router as salesman_router
from sales_service.config import settings
from sales_service.db import init_db
from sales_service.utils.log import configure_logging

log = logging.getLogger("sales_service.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    configure_logging()
    # RESET_DB=1 drops and recreates the schema
    init_db()
    log.info("sales service ready (mock services=%s)", settings.USE_MOCK_SERVICES)
    yield


app = FastAPI(title="Sales Service", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(order_router, prefix="/api/orders", tags=["orders"])

app.include_router(returns_router, prefix="/api/returns", tags=["returns"])

app.include_router(customer_router, prefix="/api/customers", tags=["customers"])

app.include_router(salesman_router, prefix="/api/salesmen", tags=["salesmen"])


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    log.exception("CRITICAL ERROR on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {type(exc).__name__}"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("sales_service.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
