"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cashflow_forecast.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cashflow_forecast.api.v1 import forecast, scenario, payments
from cashflow_forecast.infrastructure.observability.logging import setup_logging
from cashflow_forecast.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Cash-flow Forecast",
        description="Daily balance projection, what-if scenarios and invoice payment prediction",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

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
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(scenario.router, prefix="/v1", tags=["scenario"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])

    return app


app = create_app()
