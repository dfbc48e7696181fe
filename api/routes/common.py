"""
Shared helpers for API route modules: the application-level engine instance
and conversions from engine records to response models. Keeping these here
keeps individual route files thin.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Optional

from api.responses import (
    AlertRuleOut,
    CompositeSignalOut,
    CorrelationRuleOut,
    IngestResponse,
    SignalOut,
    TriggeredAlertOut,
)
from engine.alerts.rules import AlertRule, TriggeredAlert
from engine.coordinator import IngestResult, SignalEngine
from engine.correlation.rules import CorrelationRule
from engine.signals.models import CompositeSignal, Signal

_engine: Optional[SignalEngine] = None


def get_engine() -> SignalEngine:
    global _engine
    if _engine is None:
        _engine = SignalEngine()
    return _engine


def reset_engine() -> None:
    global _engine
    _engine = None


def signal_out(signal: Signal) -> SignalOut:
    return SignalOut(**signal.to_dict())


def composite_out(composite: CompositeSignal) -> CompositeSignalOut:
    return CompositeSignalOut(**composite.to_dict())


def alert_out(alert: TriggeredAlert) -> TriggeredAlertOut:
    return TriggeredAlertOut(
        rule_id=alert.rule_id,
        rule_name=alert.rule_name,
        priority=alert.priority,
        signal=signal_out(alert.signal),
        fired_at=alert.fired_at,
    )


def ingest_out(result: IngestResult) -> IngestResponse:
    composites = [composite_out(c) for c in result.composites]
    return IngestResponse(
        signal=signal_out(result.signal),
        composite=composites[0] if composites else None,
        composites=composites,
        alerts=[alert_out(a) for a in result.alerts],
    )


def correlation_rule_out(rule: CorrelationRule) -> CorrelationRuleOut:
    return CorrelationRuleOut(**rule.to_dict())


def alert_rule_out(rule: AlertRule) -> AlertRuleOut:
    return AlertRuleOut(**rule.to_dict())
