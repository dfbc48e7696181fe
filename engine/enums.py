"""
Enumerations for alert priorities, cooldown scopes and export formats

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum

from config import PRIORITY_WEIGHTS
from engine.errors import InvalidRule


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @classmethod
    def parse(cls, value: object) -> Priority:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidRule(f"invalid priority {value!r}") from None

    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self.value]


class CooldownScope(str, Enum):
    rule = "rule"
    source = "source"


class ExportFormat(str, Enum):
    json = "json"
    csv = "csv"


class SeriesMetric(str, Enum):
    count = "count"
    confidence = "confidence"
