"""Application entrypoint for the pull request metrics collector."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from prmetrics.core.config import settings
from prmetrics.routers import gather
from prmetrics.telemetry import configure_metrics, shutdown_metrics, collect_prometheus_metrics
from prmetrics.dependencies import get_http_client, get_metric_sink


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_metrics()
    yield
    get_metric_sink().close()
    get_http_client().close()
    shutdown_metrics()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Bitbucket Pull Request Metrics",
        description="Gathers pull request activity for a Bitbucket team, user, or repository owner.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(gather.router)

    @app.get("/healthz", tags=["health"])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    if settings.otel_exporter.lower().strip() == "prometheus":

        @app.get("/metrics", tags=["metrics"])
        def metrics_endpoint() -> PlainTextResponse:
            payload, content_type = collect_prometheus_metrics()
            return PlainTextResponse(payload, media_type=content_type)

    return app


app = create_app()
