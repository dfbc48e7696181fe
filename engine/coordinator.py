"""
Signal engine: the single entry point that validates each ingested signal,
stores it in the correlation and analytics histories, runs correlation and
alerting against the updated state, and answers metrics queries. All access
to one instance is serialized under its lock.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from api.responses import EngineStats, MetricsSnapshot, TimeSeriesPoint, TrendAnalysis, TrendBucket
from config import settings
from engine.alerts.engine import AlertEngine
from engine.alerts.rules import AlertRule, TriggeredAlert
from engine.correlation.matcher import CorrelationEngine
from engine.correlation.rules import CorrelationRule
from engine.enums import CooldownScope, ExportFormat
from engine.errors import InvalidSignal
from engine.metrics.export import export as export_snapshot
from engine.metrics.aggregator import MetricsAggregator
from engine.signals.history import SignalHistory
from engine.signals.models import CompositeSignal, Signal, validate_signal

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    signal: Signal
    composites: List[CompositeSignal] = field(default_factory=list)
    alerts: List[TriggeredAlert] = field(default_factory=list)

    @property
    def composite(self) -> Optional[CompositeSignal]:
        """First composite only, for callers that expect a single match."""
        return self.composites[0] if self.composites else None


class SignalEngine:
    def __init__(
        self,
        correlation_history_size: int | None = None,
        analytics_history_size: int | None = None,
        clock: Callable[[], float] = time.time,
        correlation_rules: Optional[Iterable[CorrelationRule]] = None,
        alert_rules: Optional[Iterable[AlertRule]] = None,
        cooldown_scope: CooldownScope | str | None = None,
    ) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._correlation = CorrelationEngine(
            history_size=correlation_history_size,
            clock=clock,
            rules=correlation_rules,
        )
        self._alerts = AlertEngine(clock=clock, rules=alert_rules, cooldown_scope=cooldown_scope)
        if analytics_history_size is None:
            analytics_history_size = settings.analytics_history_size
        self._history = SignalHistory(analytics_history_size)
        self._metrics = MetricsAggregator(self._history, clock=clock)

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def new_signal(self, kind: str, source: str, **kwargs: Any) -> Signal:
        return Signal.create(kind, source, clock=self._clock, **kwargs)

    def ingest(self, signal: Signal) -> IngestResult:
        try:
            validate_signal(signal)
        except InvalidSignal as exc:
            log.debug("Rejected signal %r: %s", getattr(signal, "fingerprint", None), exc)
            raise

        with self._lock:
            # nothing is stored until correlation and every alert condition have run
            composites = self._correlation.match(signal)
            alerts = self._alerts.evaluate_many([signal] + [c.as_signal() for c in composites])
            self._correlation.commit(signal, composites)
            self._history.append(signal)

        log.debug(
            "Ingested %s from %s: %d composite(s), %d alert(s)",
            signal.kind, signal.source, len(composites), len(alerts),
        )
        return IngestResult(signal=signal, composites=composites, alerts=alerts)

    def add_correlation_rule(self, rule: CorrelationRule) -> None:
        with self._lock:
            self._correlation.add_rule(rule)

    def remove_correlation_rule(self, rule_id: str) -> CorrelationRule:
        with self._lock:
            return self._correlation.remove_rule(rule_id)

    def correlation_rules(self) -> List[CorrelationRule]:
        with self._lock:
            return self._correlation.rules()

    def add_alert_rule(self, rule: AlertRule) -> None:
        with self._lock:
            self._alerts.add_rule(rule)

    def remove_alert_rule(self, rule_id: str) -> AlertRule:
        with self._lock:
            return self._alerts.remove_rule(rule_id)

    def enable_alert_rule(self, rule_id: str) -> None:
        with self._lock:
            self._alerts.enable(rule_id)

    def disable_alert_rule(self, rule_id: str) -> None:
        with self._lock:
            self._alerts.disable(rule_id)

    def alert_rules(self) -> List[AlertRule]:
        with self._lock:
            return self._alerts.rules()

    def active_alert_rules(self) -> List[AlertRule]:
        with self._lock:
            return self._alerts.active_rules()

    def recent_signals(self, limit: int | None = None) -> List[Signal]:
        if limit is None:
            limit = settings.recent_signals_limit
        with self._lock:
            return self._history.recent(limit)

    def correlate_kinds(self, kinds: Iterable[str], window: float | None = None) -> bool:
        with self._lock:
            return self._correlation.correlate_kinds(kinds, window)

    def active_signals(self, window: float | None = None) -> List[Signal]:
        with self._lock:
            return self._correlation.active_signals(window)

    def metrics_snapshot(self, window: float | None = None) -> MetricsSnapshot:
        with self._lock:
            return self._metrics.snapshot(window)

    def export_metrics(self, fmt: ExportFormat | str = ExportFormat.json, window: float | None = None) -> str:
        return export_snapshot(self.metrics_snapshot(window), fmt)

    def trends(self, hours: int | None = None) -> List[TrendBucket]:
        with self._lock:
            return self._metrics.trends(hours)

    def time_series(self, metric: str, window: float, intervals: int | None = None) -> List[TimeSeriesPoint]:
        with self._lock:
            return self._metrics.time_series(metric, window, intervals)

    def analyze_trends(self, hours: int | None = None) -> TrendAnalysis:
        with self._lock:
            return self._metrics.analyze_trends(hours)

    def set_history_capacity(self, capacity: int) -> int:
        with self._lock:
            return self._history.resize(capacity)

    def stats(self) -> EngineStats:
        with self._lock:
            corr = self._correlation.stats()
            return EngineStats(
                buffered_signals=corr["buffered_signals"],
                retained_signals=len(self._history),
                unique_kinds=corr["unique_kinds"],
                active_sources=corr["active_sources"],
                correlation_rules=corr["correlation_rules"],
                alert_rules=len(self._alerts.rules()),
                active_alert_rules=len(self._alerts.active_rules()),
                buffer_utilization=corr["buffer_utilization"],
                history_utilization=self._history.utilization(),
            )

    def export_data(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "signals": [s.to_dict() for s in self._history.list_all()],
                "metrics": self._metrics.snapshot().model_dump(),
                "correlation_rules": [r.to_dict() for r in self._correlation.rules()],
                "alert_rules": [r.to_dict() for r in self._alerts.rules()],
                "exported_at": self._clock(),
            }

    def reset(self) -> None:
        with self._lock:
            self._correlation.clear()
            self._history.clear()
            self._alerts.reset()
        log.info("Signal engine reset: histories and alert cooldowns cleared")
