"""
Test cases for the signal engine coordinating correlation, alerting and
metrics over a single ingest path.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import json
import threading

import pytest

from engine.alerts import AlertRule, KindIs, Predicate
from engine.coordinator import IngestResult, SignalEngine
from engine.correlation import CorrelationRule
from engine.enums import Priority
from engine.errors import InvalidRule, InvalidSignal, RuleNotFound, ValidationError
from engine.metrics import parse_csv
from engine.signals import Signal


@pytest.fixture
def engine(clock):
    return SignalEngine(correlation_history_size=100, analytics_history_size=1000, clock=clock)


def test_ingested_signal_is_most_recent(engine):
    sig = engine.new_signal("heartbeat", "A", confidence=0.4)
    result = engine.ingest(sig)
    assert isinstance(result, IngestResult)
    assert result.composites == []
    assert result.composite is None
    assert engine.recent_signals(1) == [sig]


def test_invalid_signal_leaves_state_unchanged(engine, clock):
    engine.ingest(engine.new_signal("heartbeat", "A", confidence=0.4))
    before = engine.stats()
    with pytest.raises(InvalidSignal):
        engine.ingest(Signal(kind="cex_funding", source="A", produced_at=clock.now, confidence=1.5))
    with pytest.raises(ValueError):
        engine.ingest(Signal(kind="", source="A", produced_at=clock.now))
    assert engine.stats() == before
    assert len(engine.recent_signals()) == 1


def test_funding_then_deploy_yields_coordinated_launch(engine, clock):
    first = engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.85))
    assert first.composites == []
    clock.advance(10)
    result = engine.ingest(engine.new_signal("rapid_deploy", "B", confidence=0.78))

    comp = result.composite
    assert comp is not None
    assert comp.pattern == "coordinated_launch_pattern"
    assert comp.contributing_sources == frozenset({"A", "B"})
    assert comp.confidence == pytest.approx(0.8965)
    assert [a.rule_id for a in result.alerts] == ["coordinated_pattern"]
    assert result.alerts[0].priority is Priority.critical
    assert result.alerts[0].signal.source == "correlator"


def test_composites_are_not_retained(engine, clock):
    engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.85))
    engine.ingest(engine.new_signal("rapid_deploy", "B", confidence=0.78))
    kinds = {s.kind for s in engine.recent_signals()}
    assert kinds == {"cex_funding", "rapid_deploy"}
    assert engine.metrics_snapshot().total_signals == 2


def test_composite_alert_respects_cooldown(engine, clock):
    for _ in range(2):
        engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.85))
        result = engine.ingest(engine.new_signal("rapid_deploy", "B", confidence=0.78))
        clock.advance(1)
    assert result.composite is not None
    assert result.alerts == []


def test_multiple_matching_rules_all_reported(engine):
    engine.add_correlation_rule(CorrelationRule(
        id="deploy_only",
        required_kinds=frozenset({"rapid_deploy"}),
        window=10,
        min_average_confidence=0.1,
        output_pattern="deploy_seen",
    ))
    engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.85))
    result = engine.ingest(engine.new_signal("rapid_deploy", "B", confidence=0.78))
    assert [c.pattern for c in result.composites] == ["coordinated_launch_pattern", "deploy_seen"]
    assert result.composite.pattern == "coordinated_launch_pattern"


def test_rule_management(engine):
    assert {r.id for r in engine.correlation_rules()} == {"cex_rapid_deploy", "ghost_wallet_activation"}
    engine.remove_correlation_rule("cex_rapid_deploy")
    with pytest.raises(RuleNotFound):
        engine.remove_correlation_rule("cex_rapid_deploy")

    engine.add_alert_rule(AlertRule(id="hb", priority="low", cooldown=5, condition=KindIs("heartbeat")))
    with pytest.raises(InvalidRule):
        engine.add_alert_rule(AlertRule(id="hb", priority="low", cooldown=5, condition=KindIs("heartbeat")))
    assert len(engine.ingest(engine.new_signal("heartbeat", "A")).alerts) == 1

    engine.disable_alert_rule("hb")
    assert "hb" not in {r.id for r in engine.active_alert_rules()}
    engine.enable_alert_rule("hb")
    assert engine.remove_alert_rule("hb").id == "hb"
    assert "hb" not in {r.id for r in engine.alert_rules()}


def test_correlate_kinds_and_active_signals(engine, clock):
    engine.ingest(engine.new_signal("x", "A"))
    clock.advance(20)
    engine.ingest(engine.new_signal("y", "B"))
    assert engine.correlate_kinds(["x", "y"], window=30)
    assert not engine.correlate_kinds(["x", "y"], window=10)
    assert [s.kind for s in engine.active_signals(window=10)] == ["y"]


def test_metrics_queries_delegate_to_history(engine, clock):
    engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.9))
    assert engine.metrics_snapshot(window=60).total_signals == 1
    assert json.loads(engine.export_metrics("json"))["total_signals"] == 1
    assert engine.export_metrics("csv").startswith("metric,value")
    assert len(engine.trends(hours=4)) == 4
    assert engine.time_series("count", window=60, intervals=3)[-1].value == 1.0
    assert engine.analyze_trends(hours=2).trending.most_common_kind == ("cex_funding", 1)


def test_stats_and_export_data(engine):
    engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.9))
    engine.ingest(engine.new_signal("heartbeat", "B"))
    stats = engine.stats()
    assert stats.buffered_signals == 2
    assert stats.retained_signals == 2
    assert stats.unique_kinds == 2
    assert stats.active_sources == 2
    assert stats.correlation_rules == 2
    assert stats.alert_rules == stats.active_alert_rules == 4
    assert stats.buffer_utilization == pytest.approx(2.0)

    data = engine.export_data()
    assert len(data["signals"]) == 2
    assert data["metrics"]["total_signals"] == 2
    assert len(data["alert_rules"]) == 4


def test_history_capacity_shrinks_analytics_history(engine):
    for i in range(5):
        engine.ingest(engine.new_signal("k", f"s{i}"))
    assert engine.set_history_capacity(2) == 3
    assert [s.source for s in engine.recent_signals()] == ["s3", "s4"]


def test_reset_clears_histories_and_cooldowns(engine):
    engine.ingest(engine.new_signal("launch_detected", "A", confidence=0.95))
    engine.reset()
    assert engine.recent_signals() == []
    assert engine.stats().buffered_signals == 0
    result = engine.ingest(engine.new_signal("launch_detected", "A", confidence=0.95))
    assert [a.rule_id for a in result.alerts] == ["high_confidence_launch"]


def test_concurrent_ingest_keeps_histories_consistent(clock):
    engine = SignalEngine(correlation_history_size=50, analytics_history_size=10_000, clock=clock)
    errors = []

    def worker(n):
        try:
            for _ in range(100):
                engine.ingest(engine.new_signal("heartbeat", f"w{n}", confidence=0.5))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    stats = engine.stats()
    assert stats.retained_signals == 800
    assert stats.buffered_signals == 50
    assert engine.metrics_snapshot().total_signals == 800


def test_export_metrics_in_both_formats(engine):
    engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.9))
    engine.ingest(engine.new_signal("heartbeat", "B"))
    assert json.loads(engine.export_metrics("json", window=3600))["signals_by_kind"] == {"cex_funding": 1, "heartbeat": 1}
    parsed = parse_csv(engine.export_metrics("csv"))
    assert parsed["summary"]["total_signals"] == 2
    assert parsed["signals_by_source"] == {"A": 1, "B": 1}


def _raising(signal):
    raise RuntimeError("condition failed")


def test_failing_alert_condition_applies_nothing(clock):
    rules = [
        AlertRule(id="any", priority="low", cooldown=60, condition=KindIs("cex_funding")),
        AlertRule(id="broken", priority="low", cooldown=60, condition=Predicate(_raising)),
    ]
    engine = SignalEngine(correlation_history_size=10, analytics_history_size=10, clock=clock, alert_rules=rules)
    with pytest.raises(RuntimeError):
        engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.9))

    assert engine.recent_signals(10) == []
    assert engine.stats().buffered_signals == 0

    engine.remove_alert_rule("broken")
    result = engine.ingest(engine.new_signal("cex_funding", "A", confidence=0.9))
    assert [a.rule_id for a in result.alerts] == ["any"]


def test_mutating_caller_metadata_after_ingest_changes_nothing(engine, clock):
    meta = {"pattern": "p1"}
    engine.ingest(Signal(kind="k", source="s", produced_at=clock.now, confidence=0.5, metadata=meta))
    meta["pattern"] = "p2"
    assert engine.metrics_snapshot().top_patterns[0].pattern == "p1"
    assert engine.recent_signals(1)[0].metadata == {"pattern": "p1"}


def test_zero_capacities_are_rejected(clock):
    with pytest.raises(ValidationError):
        SignalEngine(analytics_history_size=0, clock=clock)
    with pytest.raises(ValidationError):
        SignalEngine(correlation_history_size=0, clock=clock)
