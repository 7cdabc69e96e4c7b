from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

load_dotenv()

from app.dependencies import MetricsContainer, get_metrics_container
from domain.config import get_metrics_config
from infrastructure.probes.http import HttpMetricsMiddleware


def create_app(container: Optional[MetricsContainer] = None) -> FastAPI:
    """
    Build the application exposing the collected metrics.

    Args:
        container: Metrics stack to expose (default: the process-wide one)
    """
    container = container or get_metrics_container()
    config = get_metrics_config()

    app = FastAPI(title="metrics-probes")

    @app.get("/metrics")
    async def metrics():
        return Response(
            content=generate_latest(container.exposition_registry),
            media_type=CONTENT_TYPE_LATEST,
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "message": "metrics-probes is running"}

    app.add_middleware(
        HttpMetricsMiddleware,
        metrics=container.collector,
        metrics_route=config.metrics_route,
        internal_prefix=config.internal_route_prefix,
    )
    app.state.metrics = container
    return app
