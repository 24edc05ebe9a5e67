"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orderflow.config import settings
from orderflow.container import build_services
from orderflow.database import Base, SessionLocal, engine
from orderflow.exceptions import OrderflowError

# Import routers
from orderflow.routers import analytics, billing, kitchen, orders

# Import all models so Base.metadata knows about them
import orderflow.models  # noqa: F401

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )


app = FastAPI(
    title="Orderflow",
    description="Order, kitchen and billing choreography over an event bus",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(kitchen.router, prefix="/api/kitchen", tags=["Kitchen"])
app.include_router(billing.router, prefix="/api/billing", tags=["Billing"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


@app.exception_handler(OrderflowError)
async def orderflow_error_handler(request: Request, exc: OrderflowError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error, "message": exc.message})


@app.on_event("startup")
def on_startup():
    """Create tables (SQLite dev mode) and start the consumer loops."""
    configure_logging()
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    # Tests install their own container and drive the consumers themselves.
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings, SessionLocal)
        app.state.services.start()
        logger.info("Consumers started: %s", ", ".join(c.group for c in app.state.services.consumers))


@app.on_event("shutdown")
def on_shutdown():
    services = getattr(app.state, "services", None)
    if services is not None and any(c.running for c in services.consumers):
        services.stop()


@app.get("/api/health")
def health_check():
    services = getattr(app.state, "services", None)
    consumers = services.consumers if services is not None else []
    return {
        "status": "ok",
        "consumers": [{"group": c.group, "running": c.running} for c in consumers],
    }
