"""
Signal records handled by the engine: the atomic signal emitted by producers
and the composite signal derived by correlation, together with the shape
validation applied before a signal is accepted into any history.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
import json
import math
import time
import uuid
from types import MappingProxyType
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Optional

from config import COMPOSITE_SOURCE, FINGERPRINT_PREFIX
from engine.errors import InvalidSignal


def _frozen(metadata: Any) -> Any:
    # non-mappings are left for validate_signal to reject
    if isinstance(metadata, Mapping):
        return MappingProxyType(dict(metadata))
    return metadata


def generate_fingerprint(kind: str, source: str) -> str:
    base = json.dumps({"kind": kind, "source": source, "ns": time.time_ns(), "nonce": uuid.uuid4().hex})
    return FINGERPRINT_PREFIX + hashlib.sha256(base.encode()).hexdigest()[:16]


@dataclass(frozen=True)
class Signal:
    kind: str
    source: str
    produced_at: float
    confidence: Optional[float] = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    fingerprint: str = ""
    agent: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.fingerprint:
            object.__setattr__(self, "fingerprint", generate_fingerprint(str(self.kind), str(self.source)))
        object.__setattr__(self, "metadata", _frozen(self.metadata))

    @classmethod
    def create(
        cls,
        kind: str,
        source: str,
        confidence: Optional[float] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        produced_at: Optional[float] = None,
        fingerprint: Optional[str] = None,
        agent: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> Signal:
        return cls(
            kind=kind,
            source=source,
            produced_at=clock() if produced_at is None else produced_at,
            confidence=confidence,
            metadata=dict(metadata or {}),
            fingerprint=fingerprint or "",
            agent=agent,
        )

    @property
    def declared_agent(self) -> str:
        return self.agent or self.source

    @property
    def scored(self) -> bool:
        return self.confidence is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "source": self.source,
            "agent": self.agent,
            "produced_at": self.produced_at,
            "confidence": self.confidence,
            "metadata": dict(self.metadata),
            "fingerprint": self.fingerprint,
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_signal(signal: Signal) -> Signal:
    if not isinstance(signal, Signal):
        raise InvalidSignal(f"expected Signal, got {type(signal).__name__}")
    if not isinstance(signal.kind, str) or not signal.kind.strip():
        raise InvalidSignal("signal kind must be a non-empty string")
    if not isinstance(signal.source, str) or not signal.source.strip():
        raise InvalidSignal("signal source must be a non-empty string")
    if not _is_number(signal.produced_at) or not math.isfinite(signal.produced_at):
        raise InvalidSignal(f"signal produced_at must be a finite timestamp, got {signal.produced_at!r}")
    if signal.confidence is not None:
        if not _is_number(signal.confidence) or not math.isfinite(signal.confidence):
            raise InvalidSignal(f"signal confidence must be a number, got {signal.confidence!r}")
        if not 0.0 <= signal.confidence <= 1.0:
            raise InvalidSignal(f"signal confidence {signal.confidence} outside [0, 1]")
    if not isinstance(signal.metadata, Mapping):
        raise InvalidSignal("signal metadata must be a mapping")
    if signal.agent is not None and not isinstance(signal.agent, str):
        raise InvalidSignal("signal agent must be a string")
    return signal


@dataclass(frozen=True)
class CompositeSignal:
    pattern: str
    rule_id: str
    confidence: float
    contributing_sources: FrozenSet[str]
    produced_at: float
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _frozen(self.metadata))

    def as_signal(self) -> Signal:
        """Composite viewed as a plain signal so alert rules can match on its pattern."""
        return Signal(
            kind=self.pattern,
            source=COMPOSITE_SOURCE,
            produced_at=self.produced_at,
            confidence=self.confidence,
            metadata={**self.metadata, "contributing_sources": sorted(self.contributing_sources)},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern,
            "rule_id": self.rule_id,
            "confidence": self.confidence,
            "contributing_sources": sorted(self.contributing_sources),
            "produced_at": self.produced_at,
            "metadata": dict(self.metadata),
        }
