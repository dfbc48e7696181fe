"""
Rule-driven temporal correlation over a bounded signal history. Each processed
signal is stored, then every registered rule checks whether all of its
required kinds are present in its trailing window; a rule whose average
confidence clears its threshold yields a boosted composite signal.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from config import settings
from engine.correlation.rules import CorrelationRule, default_correlation_rules, validate_correlation_rule
from engine.errors import InvalidRule, RuleNotFound
from engine.signals.history import SignalHistory
from engine.signals.models import CompositeSignal, Signal, validate_signal

log = logging.getLogger(__name__)


def average_confidence(signals: List[Signal]) -> float:
    if not signals:
        return 0.0
    return sum(s.confidence or 0.0 for s in signals) / len(signals)


class CorrelationEngine:
    def __init__(
        self,
        history_size: int | None = None,
        boost: float | None = None,
        clock: Callable[[], float] = time.time,
        rules: Optional[Iterable[CorrelationRule]] = None,
    ) -> None:
        if history_size is None:
            history_size = settings.correlation_history_size
        self._history = SignalHistory(history_size)
        self._boost = settings.correlation_boost if boost is None else float(boost)
        self._clock = clock
        self._rules: Dict[str, CorrelationRule] = {}
        for rule in default_correlation_rules() if rules is None else rules:
            self.add_rule(rule)

    @property
    def history(self) -> SignalHistory:
        return self._history

    def add_rule(self, rule: CorrelationRule) -> None:
        validate_correlation_rule(rule)
        if rule.id in self._rules:
            raise InvalidRule(f"correlation rule {rule.id!r} is already registered")
        self._rules[rule.id] = rule
        log.info("Correlation rule registered: %s (%s)", rule.id, ", ".join(sorted(rule.required_kinds)))

    def remove_rule(self, rule_id: str) -> CorrelationRule:
        try:
            rule = self._rules.pop(rule_id)
        except KeyError:
            raise RuleNotFound(rule_id) from None
        log.info("Correlation rule removed: %s", rule_id)
        return rule

    def rules(self) -> List[CorrelationRule]:
        return list(self._rules.values())

    def match(self, signal: Signal) -> List[CompositeSignal]:
        """Composites the history would yield once ``signal`` is stored.

        Nothing is stored; pair with :meth:`commit` to apply the signal.
        """
        validate_signal(signal)
        now = self._clock()
        # the buffer as it will look after appending and evicting
        pending = self._history.recent(self._history.capacity - 1) + [signal]
        composites: List[CompositeSignal] = []
        for rule in self._rules.values():
            composite = self._evaluate(rule, pending, now)
            if composite is not None:
                composites.append(composite)
        return composites

    def commit(self, signal: Signal, composites: Iterable[CompositeSignal] = ()) -> None:
        self._history.append(signal)
        for composite in composites:
            log.info(
                "Composite signal detected: %s (rule=%s confidence=%.3f sources=%s)",
                composite.pattern,
                composite.rule_id,
                composite.confidence,
                ", ".join(sorted(composite.contributing_sources)),
            )

    def process(self, signal: Signal) -> List[CompositeSignal]:
        composites = self.match(signal)
        self.commit(signal, composites)
        return composites

    def process_first(self, signal: Signal) -> Optional[CompositeSignal]:
        composites = self.process(signal)
        return composites[0] if composites else None

    def _relevant(self, signals: Iterable[Signal], kinds: Iterable[str], window: float, now: float) -> List[Signal]:
        wanted = set(kinds)
        start = now - window
        return [s for s in signals if s.kind in wanted and start <= s.produced_at <= now]

    def _evaluate(self, rule: CorrelationRule, signals: List[Signal], now: float) -> Optional[CompositeSignal]:
        relevant = self._relevant(signals, rule.required_kinds, rule.window, now)
        if not rule.required_kinds <= {s.kind for s in relevant}:
            return None

        avg = average_confidence(relevant)
        if avg < rule.min_average_confidence:
            log.debug("Rule %s matched kinds but avg confidence %.3f < %.3f", rule.id, avg, rule.min_average_confidence)
            return None

        composite = CompositeSignal(
            pattern=rule.output_pattern,
            rule_id=rule.id,
            confidence=min(avg * self._boost, settings.correlation_confidence_cap),
            contributing_sources=frozenset(s.source for s in relevant),
            produced_at=now,
            metadata={
                "rule_id": rule.id,
                "trigger_signals": [{"kind": s.kind, "fingerprint": s.fingerprint} for s in relevant],
            },
        )
        return composite

    def correlate_kinds(self, kinds: Iterable[str], window: float | None = None) -> bool:
        if window is None:
            window = settings.correlation_default_window_seconds
        wanted = set(kinds)
        found = {s.kind for s in self._relevant(self._history.list_all(), wanted, window, self._clock())}
        return wanted <= found

    def active_signals(self, window: float | None = None) -> List[Signal]:
        if window is None:
            window = settings.correlation_default_window_seconds
        return self._history.window_since(self._clock(), window)

    def stats(self) -> Dict[str, Any]:
        signals = self._history.list_all()
        return {
            "buffered_signals": len(signals),
            "unique_kinds": len({s.kind for s in signals}),
            "active_sources": len({s.source for s in signals}),
            "correlation_rules": len(self._rules),
            "buffer_utilization": self._history.utilization(),
        }

    def clear(self) -> None:
        self._history.clear()
