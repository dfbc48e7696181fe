"""
Rule-based alerting over individual signals with per-rule cooldowns.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.alerts.conditions import (
    AllOf,
    AnyOf,
    Condition,
    ConfidenceAbove,
    KindIn,
    KindIs,
    MetadataAbove,
    MetadataEquals,
    Not,
    Predicate,
    condition_from_dict,
)
from engine.alerts.rules import AlertRule, TriggeredAlert, default_alert_rules, validate_alert_rule
from engine.alerts.engine import AlertEngine

__all__ = [
    "AllOf", "AnyOf", "Condition", "ConfidenceAbove", "KindIn", "KindIs",
    "MetadataAbove", "MetadataEquals", "Not", "Predicate", "condition_from_dict",
    "AlertRule", "TriggeredAlert", "default_alert_rules", "validate_alert_rule",
    "AlertEngine",
]
