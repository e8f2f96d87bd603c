"""
Web-vitals style performance metrics.

Metrics reported by browsers are kept in a bounded in-process buffer; the
oldest entries are dropped first. Nothing is persisted.
"""

from __future__ import annotations

import math
import threading
from collections import deque
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.logging_config import get_logger

logger = get_logger(__name__)

MAX_METRICS = 1000
RATINGS = ("good", "needs-improvement", "poor")


class PerformanceMetricsStore:
    """Thread-safe ring buffer of metric samples."""

    def __init__(self, max_entries: int = MAX_METRICS) -> None:
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, metric: Dict[str, Any]) -> Dict[str, Any]:
        entry = dict(metric)
        entry.setdefault("receivedAt", utc_now())
        with self._lock:
            self._entries.append(entry)
        if entry.get("rating") == "poor":
            logger.warning(f"Poor performance metric: {entry.get('name')}={entry.get('value')} url={entry.get('url')}")
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self, metric: Optional[str] = None, since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        with self._lock:
            entries = list(self._entries)
        if metric:
            entries = [e for e in entries if e.get("name") == metric]
        if since is not None:
            entries = [e for e in entries if e["receivedAt"] >= since]
        return entries

    def stats(self, metric: Optional[str] = None, since: Optional[datetime] = None) -> Dict[str, Any]:
        """Aggregate samples per metric name.

        Median is ``sorted[n // 2]`` and p95 is ``sorted[floor(n * 0.95)]``
        (clamped to the last sample).
        """
        entries = self.snapshot(metric, since)
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for entry in entries:
            grouped.setdefault(entry["name"], []).append(entry)

        metrics: Dict[str, Dict[str, Any]] = {}
        for name, samples in grouped.items():
            values = sorted(float(s["value"]) for s in samples)
            n = len(values)
            metrics[name] = {
                "count": n,
                "average": sum(values) / n,
                "median": values[n // 2],
                "p95": values[min(math.floor(n * 0.95), n - 1)],
                "good": sum(1 for s in samples if s.get("rating") == "good"),
                "needs_improvement": sum(1 for s in samples if s.get("rating") == "needs-improvement"),
                "poor": sum(1 for s in samples if s.get("rating") == "poor"),
            }
        return {"total_metrics": len(entries), "metrics": metrics, "generated_at": utc_now()}


metrics_store = PerformanceMetricsStore()


def get_metrics_store() -> PerformanceMetricsStore:
    return metrics_store
