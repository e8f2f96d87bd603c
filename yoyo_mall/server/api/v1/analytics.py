"""
Performance Analytics Endpoints.

Browsers report web-vitals samples; admins and dashboards read aggregated
statistics. Samples live in process memory only.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from yoyo_mall.core.exceptions import ValidationFailedError
from yoyo_mall.core.models.io.analytics import MetricStatsResponse
from yoyo_mall.core.models.io.common import MessageResponse
from yoyo_mall.server.services.deps import client_ip
from yoyo_mall.server.services.metrics import RATINGS, PerformanceMetricsStore, get_metrics_store

router = APIRouter()

OPTIONAL_FIELDS = ("id", "delta", "navigationType", "url")


def parse_since(value: Optional[str]) -> Optional[datetime]:
    """Accept an ISO-8601 timestamp or epoch milliseconds.

    Returns a naive UTC datetime, matching the stored ``receivedAt``.
    """
    if not value:
        return None
    raw = value.strip()
    if raw.isdigit():
        parsed = datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationFailedError("since must be an ISO timestamp or epoch milliseconds", code="INVALID_SINCE")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _validated(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationFailedError("Invalid metric data", code="INVALID_METRIC")
    name = body.get("name")
    value = body.get("value")
    if not isinstance(name, str) or not name or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailedError("Invalid metric data", code="INVALID_METRIC")
    metric: Dict[str, Any] = {"name": name, "value": value}
    rating = body.get("rating")
    if rating is not None:
        if rating not in RATINGS:
            raise ValidationFailedError("Invalid metric rating", code="INVALID_METRIC")
        metric["rating"] = rating
    for field in OPTIONAL_FIELDS:
        if body.get(field) is not None:
            metric[field] = body[field]
    return metric


@router.post(
    "/performance",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Report Metric",
    description="Record one web-vitals sample (`name`, numeric `value`, optional `rating`).",
    responses={400: {"description": "Invalid metric"}},
)
async def report_metric(
    request: Request, store: PerformanceMetricsStore = Depends(get_metrics_store)
) -> MessageResponse:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationFailedError("Invalid metric data", code="INVALID_METRIC")
    metric = _validated(body)
    metric["userAgent"] = request.headers.get("user-agent")
    metric["ip"] = client_ip(request)
    store.add(metric)
    return MessageResponse(message="Metric recorded")


@router.get(
    "/performance",
    response_model=MetricStatsResponse,
    summary="Metric Statistics",
    description="Count, average, median, p95 and rating counts per metric name.",
)
async def metric_stats(
    metric: Optional[str] = Query(None),
    since: Optional[str] = Query(None, description="ISO timestamp or epoch milliseconds"),
    store: PerformanceMetricsStore = Depends(get_metrics_store),
) -> MetricStatsResponse:
    return MetricStatsResponse.model_validate(store.stats(metric or None, parse_since(since)))
