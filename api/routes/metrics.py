"""
Metrics routes: windowed snapshots, exports, hourly trends, time series and
engine statistics.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import Response

from api.responses import EngineStats, MetricsSnapshot, TimeSeriesPoint, TrendAnalysis, TrendBucket
from api.routes.common import get_engine
from api.routes.exception import handle_exceptions
from engine.enums import ExportFormat, SeriesMetric

router = APIRouter(tags=["Metrics"])

_MEDIA_TYPES = {
    ExportFormat.json: "application/json",
    ExportFormat.csv: "text/csv",
}


@router.get("/metrics", summary="Metrics snapshot over a trailing window (default 24h)")
@handle_exceptions
async def metrics_snapshot(window_seconds: Optional[float] = Query(default=None, gt=0)) -> MetricsSnapshot:
    return get_engine().metrics_snapshot(window_seconds)


@router.get("/metrics/export", summary="Export the metrics snapshot as JSON or CSV")
@handle_exceptions
async def export_metrics(
    format: ExportFormat = ExportFormat.json,
    window_seconds: Optional[float] = Query(default=None, gt=0),
) -> Response:
    body = get_engine().export_metrics(format, window_seconds)
    return Response(content=body, media_type=_MEDIA_TYPES[format])


@router.get("/metrics/trends", summary="Hourly trend buckets over the retained history")
@handle_exceptions
async def metrics_trends(hours: Optional[int] = Query(default=None, ge=1, le=24 * 30)) -> List[TrendBucket]:
    return get_engine().trends(hours)


@router.get("/metrics/timeseries", summary="Equal-width time series of count or confidence")
@handle_exceptions
async def metrics_time_series(
    metric: SeriesMetric,
    window_seconds: float = Query(gt=0),
    intervals: Optional[int] = Query(default=None, ge=1, le=1000),
) -> List[TimeSeriesPoint]:
    return get_engine().time_series(metric, window_seconds, intervals)


@router.get("/metrics/analysis", summary="Overall snapshot, hourly trends and leading agent/kind")
@handle_exceptions
async def metrics_analysis(hours: Optional[int] = Query(default=None, ge=1, le=24 * 30)) -> TrendAnalysis:
    return get_engine().analyze_trends(hours)


@router.get("/stats", summary="Buffer sizes and rule counts")
@handle_exceptions
async def engine_stats() -> EngineStats:
    return get_engine().stats()
