"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from safespend.api.middleware import RequestIDMiddleware, MetricsMiddleware
from safespend.api.v1 import bills, spendable, recommendations, reminders
from safespend.infrastructure.database.models import Base
from safespend.infrastructure.database.session import engine
from safespend.infrastructure.observability.logging import setup_logging
from safespend.services.scheduler import RescheduleLocks
from safespend.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="SafeSpend",
        description="Bill projection, safe-to-spend and reminder scheduling service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.reschedule_locks = RescheduleLocks()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(bills.router, prefix="/v1", tags=["bills"])
    app.include_router(spendable.router, prefix="/v1", tags=["spendable"])
    app.include_router(recommendations.router, prefix="/v1", tags=["recommendations"])
    app.include_router(reminders.router, prefix="/v1", tags=["reminders"])

    return app


app = create_app()
