"""
Performance metric I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict

from .common import ApiModel


class MetricStats(ApiModel):
    count: int
    average: float
    median: float
    p95: float
    good: int
    needs_improvement: int
    poor: int


class MetricStatsResponse(ApiModel):
    success: bool = True
    total_metrics: int
    metrics: Dict[str, MetricStats]
    generated_at: datetime
