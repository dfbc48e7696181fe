"""
Correlation rules: which signal kinds must co-occur, within what trailing
window and at what minimum average confidence, to produce a composite signal.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List

from config import settings
from engine.errors import InvalidRule


@dataclass(frozen=True)
class CorrelationRule:
    id: str
    required_kinds: FrozenSet[str]
    window: float
    min_average_confidence: float
    output_pattern: str
    name: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.required_kinds, (list, tuple, set)):
            object.__setattr__(self, "required_kinds", frozenset(self.required_kinds))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name or self.id,
            "description": self.description,
            "required_kinds": sorted(self.required_kinds),
            "window": self.window,
            "min_average_confidence": self.min_average_confidence,
            "output_pattern": self.output_pattern,
        }


def validate_correlation_rule(rule: CorrelationRule) -> CorrelationRule:
    if not isinstance(rule, CorrelationRule):
        raise InvalidRule(f"expected CorrelationRule, got {type(rule).__name__}")
    if not isinstance(rule.id, str) or not rule.id.strip():
        raise InvalidRule("correlation rule id must be a non-empty string")
    if not isinstance(rule.required_kinds, frozenset) or not rule.required_kinds:
        raise InvalidRule(f"correlation rule {rule.id!r} needs at least one required kind")
    if any(not isinstance(k, str) or not k.strip() for k in rule.required_kinds):
        raise InvalidRule(f"correlation rule {rule.id!r} has an empty required kind")
    if isinstance(rule.window, bool) or isinstance(rule.min_average_confidence, bool):
        raise InvalidRule(f"correlation rule {rule.id!r} has a non-numeric window or threshold")
    try:
        window = float(rule.window)
        threshold = float(rule.min_average_confidence)
    except (TypeError, ValueError):
        raise InvalidRule(f"correlation rule {rule.id!r} has a non-numeric window or threshold") from None
    if not math.isfinite(window) or window <= 0:
        raise InvalidRule(f"correlation rule {rule.id!r} window must be positive, got {rule.window!r}")
    if not 0.0 <= threshold <= 1.0:
        raise InvalidRule(f"correlation rule {rule.id!r} threshold {threshold} outside [0, 1]")
    if not isinstance(rule.output_pattern, str) or not rule.output_pattern.strip():
        raise InvalidRule(f"correlation rule {rule.id!r} output pattern must be a non-empty string")
    return rule


def default_correlation_rules() -> List[CorrelationRule]:
    return [
        CorrelationRule(
            id="cex_rapid_deploy",
            name="CEX funding followed by rapid deployment",
            required_kinds=frozenset({"cex_funding", "rapid_deploy"}),
            window=settings.funding_deploy_window_seconds,
            min_average_confidence=settings.funding_deploy_min_confidence,
            output_pattern="coordinated_launch_pattern",
        ),
        CorrelationRule(
            id="ghost_wallet_activation",
            name="Dormant wallet reactivated with a high value transfer",
            required_kinds=frozenset({"dormant_wallet_activated", "high_value_transaction"}),
            window=settings.dormant_reactivation_window_seconds,
            min_average_confidence=settings.dormant_reactivation_min_confidence,
            output_pattern="suspicious_reactivation",
        ),
    ]
