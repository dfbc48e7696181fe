"""
Test cases for signal records: fingerprint assignment, shape validation and
composite conversion.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import math

import pytest

from config import COMPOSITE_SOURCE
from engine.errors import InvalidSignal
from engine.signals import CompositeSignal, Signal, generate_fingerprint, validate_signal


def test_fingerprint_assigned_when_missing_and_kept_when_supplied():
    a = Signal(kind="k", source="s", produced_at=1.0)
    b = Signal(kind="k", source="s", produced_at=1.0)
    assert a.fingerprint.startswith("sig_")
    assert a.fingerprint != b.fingerprint
    c = Signal(kind="k", source="s", produced_at=1.0, fingerprint="sig_fixed")
    assert c.fingerprint == "sig_fixed"
    assert generate_fingerprint("k", "s") != generate_fingerprint("k", "s")


def test_create_uses_clock_and_copies_metadata(clock):
    meta = {"pattern": "p"}
    s = Signal.create("k", "s", confidence=0.4, metadata=meta, clock=clock)
    assert s.produced_at == clock.now
    meta["pattern"] = "changed"
    assert s.metadata == {"pattern": "p"}
    assert s.declared_agent == "s"
    assert Signal.create("k", "s", agent="agent-1", clock=clock).declared_agent == "agent-1"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"kind": ""},
        {"kind": "  "},
        {"source": ""},
        {"confidence": 1.5},
        {"confidence": -0.01},
        {"confidence": math.nan},
        {"confidence": True},
        {"confidence": "0.5"},
        {"produced_at": math.inf},
        {"metadata": ["not", "a", "mapping"]},
    ],
)
def test_validate_signal_rejects_malformed_shapes(kwargs):
    base = {"kind": "k", "source": "s", "produced_at": 1.0, "confidence": 0.5}
    base.update(kwargs)
    with pytest.raises(InvalidSignal):
        validate_signal(Signal(**base))


def test_validate_signal_accepts_bounds_and_unscored():
    for conf in (0.0, 1.0, None):
        s = Signal(kind="k", source="s", produced_at=1.0, confidence=conf)
        assert validate_signal(s) is s


def test_composite_as_signal_carries_pattern_and_sources():
    comp = CompositeSignal(
        pattern="coordinated_launch_pattern",
        rule_id="r1",
        confidence=0.9,
        contributing_sources=frozenset({"B", "A"}),
        produced_at=10.0,
        metadata={"rule_id": "r1"},
    )
    sig = comp.as_signal()
    assert sig.kind == "coordinated_launch_pattern"
    assert sig.source == COMPOSITE_SOURCE
    assert sig.confidence == 0.9
    assert sig.metadata["contributing_sources"] == ["A", "B"]
    assert comp.to_dict()["contributing_sources"] == ["A", "B"]


def test_metadata_is_copied_and_read_only():
    meta = {"pattern": "p1"}
    s = Signal(kind="k", source="s", produced_at=1.0, metadata=meta)
    meta["pattern"] = "p2"
    assert s.metadata["pattern"] == "p1"
    with pytest.raises(TypeError):
        s.metadata["pattern"] = "p3"
    assert type(s.to_dict()["metadata"]) is dict
