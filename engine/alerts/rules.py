"""
Alert rules and triggered alert records, plus the default rule set.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List

from config import METADATA_DEPLOY_RATE_KEY, METADATA_DORMANCY_KEY, settings
from engine.alerts.conditions import AllOf, Condition, ConfidenceAbove, KindIn, KindIs, MetadataAbove
from engine.enums import Priority
from engine.errors import InvalidRule
from engine.signals.models import Signal


@dataclass
class AlertRule:
    id: str
    priority: Priority
    cooldown: float
    condition: Condition
    enabled: bool = True
    name: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name or self.id,
            "description": self.description,
            "priority": self.priority.value,
            "cooldown": self.cooldown,
            "enabled": self.enabled,
            "condition": self.condition.to_dict(),
        }


@dataclass(frozen=True)
class TriggeredAlert:
    rule_id: str
    rule_name: str
    priority: Priority
    signal: Signal
    fired_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "priority": self.priority.value,
            "signal": self.signal.to_dict(),
            "fired_at": self.fired_at,
        }


def validate_alert_rule(rule: AlertRule) -> AlertRule:
    """Check shape and normalise the priority tag in place.

    Raises :class:`InvalidRule` without touching any engine state.
    """
    if not isinstance(rule, AlertRule):
        raise InvalidRule(f"expected AlertRule, got {type(rule).__name__}")
    if not isinstance(rule.id, str) or not rule.id.strip():
        raise InvalidRule("alert rule id must be a non-empty string")
    priority = Priority.parse(rule.priority)
    if isinstance(rule.cooldown, bool):
        raise InvalidRule(f"alert rule {rule.id!r} cooldown must be numeric")
    try:
        cooldown = float(rule.cooldown)
    except (TypeError, ValueError):
        raise InvalidRule(f"alert rule {rule.id!r} cooldown must be numeric") from None
    if not math.isfinite(cooldown) or cooldown <= 0:
        raise InvalidRule(f"alert rule {rule.id!r} cooldown must be positive, got {rule.cooldown!r}")
    if not isinstance(rule.condition, Condition):
        raise InvalidRule(f"alert rule {rule.id!r} needs a Condition")
    rule.priority = priority
    rule.cooldown = cooldown
    return rule


def default_alert_rules() -> List[AlertRule]:
    cooldowns = settings.alert_cooldowns
    return [
        AlertRule(
            id="high_confidence_launch",
            name="High Confidence Launch Detection",
            description="Launch detected with confidence above the launch threshold",
            priority=Priority.high,
            cooldown=cooldowns.get("high_confidence_launch", 30.0),
            condition=AllOf((
                KindIs("launch_detected"),
                ConfidenceAbove(settings.alert_launch_confidence_threshold),
            )),
        ),
        AlertRule(
            id="coordinated_pattern",
            name="Coordinated Pattern Alert",
            description="Composite coordinated-launch or suspicious-reactivation pattern",
            priority=Priority.critical,
            cooldown=cooldowns.get("coordinated_pattern", 60.0),
            condition=KindIn(frozenset({"coordinated_launch_pattern", "suspicious_reactivation"})),
        ),
        AlertRule(
            id="ghost_wallet_activity",
            name="Ghost Wallet Reactivation",
            description="Wallet reactivated after a dormancy longer than the threshold",
            priority=Priority.medium,
            cooldown=cooldowns.get("ghost_wallet_activity", 120.0),
            condition=AllOf((
                KindIs("dormant_wallet_activated"),
                MetadataAbove(METADATA_DORMANCY_KEY, settings.alert_dormancy_days_threshold),
            )),
        ),
        AlertRule(
            id="rapid_deployment_burst",
            name="Rapid Deployment Burst",
            description="Deployment rate per minute above the burst threshold",
            priority=Priority.medium,
            cooldown=cooldowns.get("rapid_deployment_burst", 180.0),
            condition=AllOf((
                KindIs("rapid_deploy"),
                MetadataAbove(METADATA_DEPLOY_RATE_KEY, settings.alert_deploy_rate_threshold),
            )),
        ),
    ]
