"""
Point-in-time statistics over the retained signal history: counts by kind,
source and agent, confidence distribution, per-agent running averages, rates,
top patterns, hourly trend buckets and equal-width time series. Everything is
recomputed from the buffer on each call; nothing here mutates the history.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from api.responses import (
    AgentMetric,
    ConfidenceDistribution,
    MetricsSnapshot,
    PatternCount,
    TimeRange,
    TimeSeriesPoint,
    TrendAnalysis,
    TrendBucket,
    TrendSummary,
)
from config import METADATA_PATTERN_KEY, settings
from engine.enums import SeriesMetric
from engine.errors import ValidationError
from engine.signals.history import SignalHistory
from engine.signals.models import Signal

HOUR_SECONDS = 3600.0


def _positive(value: float, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be numeric, got {value!r}") from None
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{label} must be positive, got {value!r}")
    return number


def _pattern_key(signal: Signal) -> str:
    tagged = signal.metadata.get(METADATA_PATTERN_KEY)
    return str(tagged) if tagged else signal.kind


def _hour_label(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:00")


def _arrays(signals: List[Signal]) -> Tuple[np.ndarray, np.ndarray]:
    ts = np.array([s.produced_at for s in signals], dtype=float)
    conf = np.array([s.confidence or 0.0 for s in signals], dtype=float)
    return ts, conf


def _most_common(counts: Dict[str, int]) -> Optional[Tuple[str, int]]:
    if not counts:
        return None
    # max keeps the first key among equal counts
    return max(counts.items(), key=lambda kv: kv[1])


class MetricsAggregator:
    def __init__(self, history: SignalHistory, clock: Callable[[], float] = time.time) -> None:
        self._history = history
        self._clock = clock

    def snapshot(self, window: float | None = None) -> MetricsSnapshot:
        window = _positive(settings.metrics_window_seconds if window is None else window, "metrics window")
        now = self._clock()
        signals = self._history.window_since(now, window)

        by_kind: Dict[str, int] = {}
        by_source: Dict[str, int] = {}
        by_agent: Dict[str, int] = {}
        agents: Dict[str, Dict[str, float]] = {}
        patterns: Dict[str, List[float]] = {}

        for s in signals:
            by_kind[s.kind] = by_kind.get(s.kind, 0) + 1
            by_source[s.source] = by_source.get(s.source, 0) + 1
            agent = s.declared_agent
            by_agent[agent] = by_agent.get(agent, 0) + 1

            stats = agents.setdefault(agent, {"count": 0, "scored": 0, "mean": 0.0})
            stats["count"] += 1
            if s.confidence is not None:
                stats["scored"] += 1
                stats["mean"] += (s.confidence - stats["mean"]) / stats["scored"]

            entry = patterns.setdefault(_pattern_key(s), [0, 0.0])
            entry[0] += 1
            entry[1] += s.confidence or 0.0

        scored = np.array([s.confidence for s in signals if s.confidence is not None], dtype=float)
        medium, high = settings.metrics_confidence_medium, settings.metrics_confidence_high
        distribution = ConfidenceDistribution(
            low=int(np.count_nonzero(scored < medium)),
            medium=int(np.count_nonzero((scored >= medium) & (scored < high))),
            high=int(np.count_nonzero(scored >= high)),
        )

        # sorted() is stable, so equal counts stay in first-seen order
        ranked = sorted(patterns.items(), key=lambda kv: kv[1][0], reverse=True)
        top_patterns = [
            PatternCount(pattern=key, count=int(count), confidence=total / count if count else 0.0)
            for key, (count, total) in ranked[: settings.metrics_top_patterns]
        ]

        if signals:
            stamps = [s.produced_at for s in signals]
            time_range = TimeRange(start=min(stamps), end=max(stamps))
        else:
            time_range = TimeRange(start=now, end=now)

        total = len(signals)
        per_second = total / window
        return MetricsSnapshot(
            total_signals=total,
            signals_by_kind=by_kind,
            signals_by_source=by_source,
            signals_by_agent=by_agent,
            average_confidence=float(scored.mean()) if scored.size else 0.0,
            signals_per_hour=total / (window / HOUR_SECONDS),
            signals_per_second=per_second,
            signals_per_minute=per_second * 60.0,
            confidence_distribution=distribution,
            agent_metrics={
                agent: AgentMetric(count=int(v["count"]), average_confidence=v["mean"])
                for agent, v in agents.items()
            },
            top_patterns=top_patterns,
            time_range=time_range,
            window_seconds=window,
            generated_at=now,
        )

    def trends(self, hours: int | None = None) -> List[TrendBucket]:
        """Hourly buckets over the whole retained history, oldest first.

        Bucket ``i`` covers ``[now - (i+1)h, now - ih)``; the newest bucket
        also includes signals stamped exactly ``now``. Unscored signals count
        as zero confidence and empty buckets report zeros.
        """
        if hours is None:
            hours = settings.metrics_trend_hours
        if isinstance(hours, bool) or not isinstance(hours, int) or hours <= 0:
            raise ValidationError(f"trend hours must be a positive integer, got {hours!r}")
        now = self._clock()
        ts, conf = _arrays(self._history.list_all())

        buckets: List[TrendBucket] = []
        for i in range(hours - 1, -1, -1):
            start = now - (i + 1) * HOUR_SECONDS
            end = now - i * HOUR_SECONDS
            mask = (ts >= start) & ((ts < end) | ((i == 0) & (ts == end)))
            count = int(np.count_nonzero(mask))
            buckets.append(TrendBucket(
                hour=_hour_label(start),
                start=start,
                end=end,
                count=count,
                average_confidence=float(conf[mask].mean()) if count else 0.0,
            ))
        return buckets

    def time_series(
        self,
        metric: SeriesMetric | str,
        window: float,
        intervals: int | None = None,
    ) -> List[TimeSeriesPoint]:
        try:
            metric = SeriesMetric(metric)
        except ValueError:
            raise ValidationError(f"unknown time series metric {metric!r}") from None
        window = _positive(window, "time series window")
        if intervals is None:
            intervals = settings.metrics_time_series_intervals
        if isinstance(intervals, bool) or not isinstance(intervals, int) or intervals <= 0:
            raise ValidationError(f"time series intervals must be a positive integer, got {intervals!r}")

        now = self._clock()
        step = window / intervals
        ts, conf = _arrays(self._history.list_all())

        points: List[TimeSeriesPoint] = []
        for i in range(intervals):
            start = now - window + i * step
            end = start + step
            last = i == intervals - 1
            mask = (ts >= start) & ((ts < end) | (last & (ts <= now)))
            count = int(np.count_nonzero(mask))
            if metric is SeriesMetric.count:
                value = float(count)
            else:
                value = float(conf[mask].mean()) if count else 0.0
            points.append(TimeSeriesPoint(timestamp=start, value=value))
        return points

    def analyze_trends(self, hours: int | None = None) -> TrendAnalysis:
        overall = self.snapshot()
        hourly = self.trends(hours)
        return TrendAnalysis(
            overall=overall,
            hourly=hourly,
            trending=TrendSummary(
                most_active_agent=_most_common(overall.signals_by_agent),
                most_common_kind=_most_common(overall.signals_by_kind),
                average_confidence_trend=[b.average_confidence for b in hourly],
            ),
        )
