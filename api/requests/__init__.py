from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from engine.alerts.conditions import condition_from_dict
from engine.alerts.rules import AlertRule
from engine.correlation.rules import CorrelationRule
from engine.enums import Priority
from engine.signals.models import Signal


class SignalRequest(BaseModel):
    kind: str = Field(min_length=1)
    source: str = Field(min_length=1)
    agent: Optional[str] = None
    produced_at: Optional[float] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    fingerprint: Optional[str] = None

    def to_signal(self, clock: Callable[[], float]) -> Signal:
        return Signal.create(
            kind=self.kind,
            source=self.source,
            confidence=self.confidence,
            metadata=self.metadata,
            produced_at=self.produced_at,
            fingerprint=self.fingerprint,
            agent=self.agent,
            clock=clock,
        )


class CorrelationRuleRequest(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    required_kinds: List[str] = Field(min_length=1)
    window: float = Field(gt=0.0)
    min_average_confidence: float = Field(ge=0.0, le=1.0)
    output_pattern: str = Field(min_length=1)

    def to_rule(self) -> CorrelationRule:
        return CorrelationRule(
            id=self.id,
            name=self.name,
            description=self.description,
            required_kinds=frozenset(self.required_kinds),
            window=self.window,
            min_average_confidence=self.min_average_confidence,
            output_pattern=self.output_pattern,
        )


class AlertRuleRequest(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    priority: Priority
    cooldown: float = Field(gt=0.0)
    enabled: bool = True
    condition: Dict[str, Any]

    def to_rule(self) -> AlertRule:
        return AlertRule(
            id=self.id,
            name=self.name,
            description=self.description,
            priority=self.priority,
            cooldown=self.cooldown,
            enabled=self.enabled,
            condition=condition_from_dict(self.condition),
        )
