"""
Alert conditions expressed as a small, inspectable predicate vocabulary
instead of arbitrary closures, so rules can be listed, serialized and
registered over the API. ``Predicate`` remains as an in-process escape hatch.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Mapping, Tuple

from engine.errors import InvalidRule
from engine.signals.models import Signal


def _numeric(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


class Condition(ABC):
    type_tag: str = ""

    @abstractmethod
    def evaluate(self, signal: Signal) -> bool: ...

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]: ...

    def __call__(self, signal: Signal) -> bool:
        return self.evaluate(signal)


@dataclass(frozen=True)
class KindIs(Condition):
    kind: str
    type_tag = "kind_is"

    def evaluate(self, signal: Signal) -> bool:
        return signal.kind == self.kind

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "kind": self.kind}


@dataclass(frozen=True)
class KindIn(Condition):
    kinds: FrozenSet[str]
    type_tag = "kind_in"

    def __post_init__(self) -> None:
        object.__setattr__(self, "kinds", frozenset(self.kinds))

    def evaluate(self, signal: Signal) -> bool:
        return signal.kind in self.kinds

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "kinds": sorted(self.kinds)}


@dataclass(frozen=True)
class ConfidenceAbove(Condition):
    threshold: float
    type_tag = "confidence_above"

    def evaluate(self, signal: Signal) -> bool:
        # unscored signals count as zero confidence
        return (signal.confidence or 0.0) > self.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "threshold": self.threshold}


@dataclass(frozen=True)
class MetadataAbove(Condition):
    key: str
    threshold: float
    type_tag = "metadata_above"

    def evaluate(self, signal: Signal) -> bool:
        return _numeric(signal.metadata.get(self.key)) > self.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "key": self.key, "threshold": self.threshold}


@dataclass(frozen=True)
class MetadataEquals(Condition):
    key: str
    value: Any
    type_tag = "metadata_equals"

    def evaluate(self, signal: Signal) -> bool:
        return self.key in signal.metadata and signal.metadata[self.key] == self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "key": self.key, "value": self.value}


@dataclass(frozen=True)
class AllOf(Condition):
    conditions: Tuple[Condition, ...]
    type_tag = "all_of"

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))

    def evaluate(self, signal: Signal) -> bool:
        return all(c.evaluate(signal) for c in self.conditions)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "conditions": [c.to_dict() for c in self.conditions]}


@dataclass(frozen=True)
class AnyOf(Condition):
    conditions: Tuple[Condition, ...]
    type_tag = "any_of"

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))

    def evaluate(self, signal: Signal) -> bool:
        return any(c.evaluate(signal) for c in self.conditions)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "conditions": [c.to_dict() for c in self.conditions]}


@dataclass(frozen=True)
class Not(Condition):
    condition: Condition
    type_tag = "not"

    def evaluate(self, signal: Signal) -> bool:
        return not self.condition.evaluate(signal)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "condition": self.condition.to_dict()}


@dataclass(frozen=True)
class Predicate(Condition):
    func: Callable[[Signal], bool]
    label: str = "predicate"
    type_tag = "predicate"

    def evaluate(self, signal: Signal) -> bool:
        return bool(self.func(signal))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "label": self.label}


def _require(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise InvalidRule(f"condition {data.get('type')!r} is missing {key!r}")
    return data[key]


def _threshold(data: Mapping[str, Any]) -> float:
    raw = _require(data, "threshold")
    if isinstance(raw, bool):
        raise InvalidRule(f"condition threshold must be numeric, got {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise InvalidRule(f"condition threshold must be numeric, got {raw!r}") from None


def _children(data: Mapping[str, Any]) -> Tuple[Condition, ...]:
    raw = _require(data, "conditions")
    if not isinstance(raw, (list, tuple)) or not raw:
        raise InvalidRule(f"condition {data.get('type')!r} needs a non-empty list of conditions")
    return tuple(condition_from_dict(c) for c in raw)


def condition_from_dict(data: Mapping[str, Any]) -> Condition:
    if not isinstance(data, Mapping):
        raise InvalidRule(f"condition must be a mapping, got {type(data).__name__}")
    tag = data.get("type")
    if tag == KindIs.type_tag:
        return KindIs(kind=str(_require(data, "kind")))
    if tag == KindIn.type_tag:
        kinds = _require(data, "kinds")
        if isinstance(kinds, str) or not kinds:
            raise InvalidRule("kind_in condition needs a non-empty list of kinds")
        return KindIn(kinds=frozenset(str(k) for k in kinds))
    if tag == ConfidenceAbove.type_tag:
        return ConfidenceAbove(threshold=_threshold(data))
    if tag == MetadataAbove.type_tag:
        return MetadataAbove(key=str(_require(data, "key")), threshold=_threshold(data))
    if tag == MetadataEquals.type_tag:
        return MetadataEquals(key=str(_require(data, "key")), value=_require(data, "value"))
    if tag == AllOf.type_tag:
        return AllOf(conditions=_children(data))
    if tag == AnyOf.type_tag:
        return AnyOf(conditions=_children(data))
    if tag == Not.type_tag:
        return Not(condition=condition_from_dict(_require(data, "condition")))
    if tag == Predicate.type_tag:
        raise InvalidRule("predicate conditions wrap in-process callables and cannot be rebuilt from data")
    raise InvalidRule(f"unknown condition type {tag!r}")
