"""
Response models for API endpoints and metrics snapshots.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field, model_serializer

from engine.enums import Priority


def _coerce(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _coerce(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_coerce(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


class NpModel(BaseModel):

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> Any:
        return _coerce(handler(self))


class ConfidenceDistribution(NpModel):

    low: int = 0
    medium: int = 0
    high: int = 0


class AgentMetric(NpModel):

    count: int
    average_confidence: float


class PatternCount(NpModel):

    pattern: str
    count: int
    confidence: float


class TimeRange(NpModel):

    start: float
    end: float


class MetricsSnapshot(NpModel):

    total_signals: int
    signals_by_kind: Dict[str, int] = Field(default_factory=dict)
    signals_by_source: Dict[str, int] = Field(default_factory=dict)
    signals_by_agent: Dict[str, int] = Field(default_factory=dict)
    average_confidence: float = 0.0
    signals_per_hour: float = 0.0
    signals_per_second: float = 0.0
    signals_per_minute: float = 0.0
    confidence_distribution: ConfidenceDistribution = Field(default_factory=ConfidenceDistribution)
    agent_metrics: Dict[str, AgentMetric] = Field(default_factory=dict)
    top_patterns: List[PatternCount] = Field(default_factory=list)
    time_range: TimeRange
    window_seconds: float
    generated_at: float


class TrendBucket(NpModel):

    hour: str
    start: float
    end: float
    count: int
    average_confidence: float


class TimeSeriesPoint(NpModel):

    timestamp: float
    value: float


class TrendSummary(NpModel):

    most_active_agent: Optional[Tuple[str, int]] = None
    most_common_kind: Optional[Tuple[str, int]] = None
    average_confidence_trend: List[float] = Field(default_factory=list)


class TrendAnalysis(NpModel):

    overall: MetricsSnapshot
    hourly: List[TrendBucket]
    trending: TrendSummary


class SignalOut(NpModel):

    kind: str
    source: str
    agent: Optional[str] = None
    produced_at: float
    confidence: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    fingerprint: str


class CompositeSignalOut(NpModel):

    pattern: str
    rule_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    contributing_sources: List[str]
    produced_at: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TriggeredAlertOut(NpModel):

    rule_id: str
    rule_name: str
    priority: Priority
    signal: SignalOut
    fired_at: float


class IngestResponse(NpModel):

    signal: SignalOut
    composite: Optional[CompositeSignalOut] = None
    composites: List[CompositeSignalOut] = Field(default_factory=list)
    alerts: List[TriggeredAlertOut] = Field(default_factory=list)


class CorrelationRuleOut(NpModel):

    id: str
    name: str
    description: str = ""
    required_kinds: List[str]
    window: float
    min_average_confidence: float
    output_pattern: str


class AlertRuleOut(NpModel):

    id: str
    name: str
    description: str = ""
    priority: Priority
    cooldown: float
    enabled: bool
    condition: Dict[str, Any]


class EngineStats(NpModel):

    buffered_signals: int
    retained_signals: int
    unique_kinds: int
    active_sources: int
    correlation_rules: int
    alert_rules: int
    active_alert_rules: int
    buffer_utilization: float
    history_utilization: float
