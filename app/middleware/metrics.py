"""Prometheus metrics."""
from fastapi import FastAPI
from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

# Metrics
change_logs_written_total = Counter(
    "change_logs_written_total",
    "Change log rows written",
    ["operation"],
)

change_log_detail_failures_total = Counter(
    "change_log_detail_failures_total",
    "Change log detail rows that could not be persisted",
)


def setup_metrics(app: FastAPI) -> None:
    """Setup Prometheus metrics endpoint."""

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
