"""
Test cases for rule-driven temporal correlation: window coverage, confidence
threshold and boost, multiple matching rules and rule registration.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.correlation import CorrelationEngine, CorrelationRule, average_confidence, validate_correlation_rule
from engine.errors import InvalidRule, RuleNotFound, ValidationError
from engine.signals import Signal


def _rule(rule_id="pair", kinds=("a", "b"), window=30.0, threshold=0.8, pattern="pair_pattern"):
    return CorrelationRule(
        id=rule_id,
        required_kinds=frozenset(kinds),
        window=window,
        min_average_confidence=threshold,
        output_pattern=pattern,
    )


def _sig(kind, source, confidence, t):
    return Signal(kind=kind, source=source, produced_at=t, confidence=confidence)


def test_average_confidence_counts_unscored_as_zero():
    assert average_confidence([]) == 0.0
    signals = [_sig("a", "x", 0.8, 0.0), Signal(kind="b", source="y", produced_at=0.0)]
    assert average_confidence(signals) == pytest.approx(0.4)


def test_pair_within_window_yields_boosted_composite(clock):
    engine = CorrelationEngine(history_size=100, clock=clock, rules=[_rule()])
    assert engine.process(_sig("a", "A", 0.9, clock.now)) == []
    clock.advance(5)
    composites = engine.process(_sig("b", "B", 0.9, clock.now))

    assert len(composites) == 1
    comp = composites[0]
    assert comp.pattern == "pair_pattern"
    assert comp.rule_id == "pair"
    assert comp.confidence == pytest.approx(0.99)
    assert comp.contributing_sources == frozenset({"A", "B"})
    assert comp.produced_at == clock.now
    assert [t["kind"] for t in comp.metadata["trigger_signals"]] == ["a", "b"]


def test_boost_is_capped_at_one(clock):
    engine = CorrelationEngine(history_size=100, clock=clock, rules=[_rule()])
    engine.process(_sig("a", "A", 1.0, clock.now))
    comp = engine.process_first(_sig("b", "B", 1.0, clock.now))
    assert comp is not None
    assert comp.confidence == 1.0


def test_low_average_confidence_yields_nothing(clock):
    engine = CorrelationEngine(history_size=100, clock=clock, rules=[_rule()])
    engine.process(_sig("a", "A", 0.5, clock.now))
    assert engine.process(_sig("b", "B", 0.6, clock.now)) == []


def test_single_kind_never_fires(clock):
    engine = CorrelationEngine(history_size=100, clock=clock, rules=[_rule()])
    for _ in range(5):
        assert engine.process(_sig("a", "A", 1.0, clock.now)) == []
        clock.advance(1)


def test_signals_further_apart_than_window_do_not_correlate(clock):
    engine = CorrelationEngine(history_size=100, clock=clock, rules=[_rule(window=30.0)])
    engine.process(_sig("a", "A", 0.9, clock.now))
    clock.advance(31)
    assert engine.process(_sig("b", "B", 0.9, clock.now)) == []


def test_signal_outside_window_is_excluded_from_average(clock):
    engine = CorrelationEngine(history_size=100, clock=clock, rules=[_rule(window=30.0)])
    engine.process(_sig("a", "old", 0.1, clock.now - 100))
    engine.process(_sig("a", "A", 0.9, clock.now))
    comp = engine.process_first(_sig("b", "B", 0.9, clock.now))
    assert comp is not None
    assert "old" not in comp.contributing_sources
    assert comp.confidence == pytest.approx(0.99)


def test_every_matching_rule_yields_a_composite(clock):
    rules = [_rule("first", pattern="p1"), _rule("second", kinds=("b",), threshold=0.5, pattern="p2")]
    engine = CorrelationEngine(history_size=100, clock=clock, rules=rules)
    engine.process(_sig("a", "A", 0.9, clock.now))
    composites = engine.process(_sig("b", "B", 0.9, clock.now))
    assert [c.pattern for c in composites] == ["p1", "p2"]
    assert engine.process_first(_sig("b", "C", 0.9, clock.now)).pattern == "p1"


def test_history_is_bounded(clock):
    engine = CorrelationEngine(history_size=3, clock=clock, rules=[])
    for i in range(10):
        engine.process(_sig("a", f"s{i}", 0.5, clock.now))
    assert len(engine.history) == 3
    assert engine.stats()["buffer_utilization"] == 100.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"rule_id": ""},
        {"kinds": ()},
        {"kinds": ("a", "")},
        {"window": 0},
        {"window": -5},
        {"threshold": 1.5},
        {"threshold": -0.1},
        {"window": True},
        {"threshold": True},
        {"pattern": ""},
    ],
)
def test_malformed_rules_are_rejected(kwargs, clock):
    engine = CorrelationEngine(history_size=10, clock=clock, rules=[])
    with pytest.raises(InvalidRule):
        engine.add_rule(_rule(**kwargs))
    assert engine.rules() == []


def test_duplicate_and_unknown_rules(clock):
    engine = CorrelationEngine(history_size=10, clock=clock, rules=[_rule()])
    with pytest.raises(InvalidRule):
        engine.add_rule(_rule())
    with pytest.raises(RuleNotFound):
        engine.remove_rule("missing")
    assert engine.remove_rule("pair").id == "pair"
    assert engine.rules() == []


def test_required_kinds_list_is_normalised():
    rule = CorrelationRule(id="r", required_kinds=["a", "b", "a"], window=1, min_average_confidence=0.1, output_pattern="p")
    assert validate_correlation_rule(rule).required_kinds == frozenset({"a", "b"})
    assert rule.to_dict()["required_kinds"] == ["a", "b"]


def test_default_rules_are_loaded(clock):
    engine = CorrelationEngine(history_size=10, clock=clock)
    ids = {r.id for r in engine.rules()}
    assert ids == {"cex_rapid_deploy", "ghost_wallet_activation"}


def test_correlate_kinds_and_active_signals(clock):
    engine = CorrelationEngine(history_size=10, clock=clock, rules=[])
    engine.process(_sig("x", "A", 0.5, clock.now - 10))
    engine.process(_sig("y", "B", 0.5, clock.now))
    assert engine.correlate_kinds({"x", "y"}, window=60)
    assert not engine.correlate_kinds({"x", "y"}, window=5)
    assert [s.kind for s in engine.active_signals(window=5)] == ["y"]
    engine.clear()
    assert engine.active_signals() == []


def test_match_does_not_store_until_commit(clock):
    engine = CorrelationEngine(history_size=10, clock=clock, rules=[_rule()])
    engine.process(_sig("a", "A", 0.9, clock.now))
    pending = _sig("b", "B", 0.9, clock.now)
    assert [c.pattern for c in engine.match(pending)] == ["pair_pattern"]
    assert len(engine.history) == 1
    engine.commit(pending)
    assert len(engine.history) == 2


def test_match_sees_buffer_after_eviction(clock):
    engine = CorrelationEngine(history_size=2, clock=clock, rules=[_rule()])
    engine.process(_sig("a", "A", 0.9, clock.now))
    engine.process(_sig("x", "X", 0.9, clock.now))
    # appending "b" evicts the only "a"
    assert engine.match(_sig("b", "B", 0.9, clock.now)) == []


def test_zero_history_size_is_rejected(clock):
    with pytest.raises(ValidationError):
        CorrelationEngine(history_size=0, clock=clock)
