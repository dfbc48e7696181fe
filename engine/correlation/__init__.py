"""
Correlation of signal kinds co-occurring within a trailing window, producing
boosted composite signals from declarative rules.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.correlation.rules import CorrelationRule, default_correlation_rules, validate_correlation_rule
from engine.correlation.matcher import CorrelationEngine, average_confidence

__all__ = [
    "CorrelationRule",
    "default_correlation_rules",
    "validate_correlation_rule",
    "CorrelationEngine",
    "average_confidence",
]
