"""
Alert rule evaluation with per-rule cooldowns. Every enabled rule whose
cooldown has elapsed is tested against each signal and all rules that fire
are returned. Cooldown state is keyed by rule id, or by (rule id, source)
when the engine runs with the ``source`` cooldown scope.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Hashable, Iterable, List, Optional

from config import settings
from engine.alerts.rules import AlertRule, TriggeredAlert, default_alert_rules, validate_alert_rule
from engine.enums import CooldownScope
from engine.errors import InvalidRule, RuleNotFound
from engine.signals.models import Signal, validate_signal

log = logging.getLogger(__name__)


class AlertEngine:
    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rules: Optional[Iterable[AlertRule]] = None,
        cooldown_scope: CooldownScope | str | None = None,
    ) -> None:
        self._clock = clock
        try:
            self._scope = CooldownScope(cooldown_scope or settings.alert_cooldown_scope)
        except ValueError:
            raise InvalidRule(f"unknown cooldown scope {cooldown_scope!r}") from None
        self._rules: Dict[str, AlertRule] = {}
        self._last_fired: Dict[Hashable, float] = {}
        for rule in default_alert_rules() if rules is None else rules:
            self.add_rule(rule)

    @property
    def cooldown_scope(self) -> CooldownScope:
        return self._scope

    def add_rule(self, rule: AlertRule) -> None:
        validate_alert_rule(rule)
        if rule.id in self._rules:
            raise InvalidRule(f"alert rule {rule.id!r} is already registered")
        self._rules[rule.id] = rule
        log.info("Alert rule registered: %s [%s] cooldown=%.1fs", rule.id, rule.priority.value, rule.cooldown)

    def remove_rule(self, rule_id: str) -> AlertRule:
        rule = self._get(rule_id)
        del self._rules[rule_id]
        for key in [k for k in self._last_fired if k == rule_id or (isinstance(k, tuple) and k[0] == rule_id)]:
            del self._last_fired[key]
        log.info("Alert rule removed: %s", rule_id)
        return rule

    def enable(self, rule_id: str) -> None:
        self._get(rule_id).enabled = True

    def disable(self, rule_id: str) -> None:
        self._get(rule_id).enabled = False

    def rules(self) -> List[AlertRule]:
        return list(self._rules.values())

    def active_rules(self) -> List[AlertRule]:
        return [r for r in self._rules.values() if r.enabled]

    def last_fired(self, rule_id: str, source: str | None = None) -> Optional[float]:
        self._get(rule_id)
        return self._last_fired.get(self._key(rule_id, source))

    def evaluate(self, signal: Signal) -> List[TriggeredAlert]:
        return self.evaluate_many([signal])

    def evaluate_many(self, signals: Iterable[Signal]) -> List[TriggeredAlert]:
        """Evaluate signals in order, sharing cooldowns between them.

        Cooldown state is only written once every condition has been
        evaluated, so a condition that raises leaves the engine untouched.
        """
        signals = [validate_signal(s) for s in signals]
        now = self._clock()
        fired: Dict[Hashable, float] = {}
        triggered: List[TriggeredAlert] = []

        for signal in signals:
            for rule in self._rules.values():
                if not rule.enabled:
                    continue
                key = self._key(rule.id, signal.source)
                last = fired.get(key, self._last_fired.get(key))
                if last is not None and now - last < rule.cooldown:
                    continue
                if not rule.condition.evaluate(signal):
                    continue
                fired[key] = now
                triggered.append(TriggeredAlert(
                    rule_id=rule.id,
                    rule_name=rule.name or rule.id,
                    priority=rule.priority,
                    signal=signal,
                    fired_at=now,
                ))

        self._last_fired.update(fired)
        for alert in triggered:
            log.info(
                "ALERT [%s] %s triggered by %s from %s (fingerprint=%s)",
                alert.priority.value.upper(),
                alert.rule_name,
                alert.signal.kind,
                alert.signal.source,
                alert.signal.fingerprint,
            )
        return triggered

    def reset(self) -> None:
        self._last_fired.clear()

    def _key(self, rule_id: str, source: str | None) -> Hashable:
        if self._scope is CooldownScope.source:
            return (rule_id, source)
        return rule_id

    def _get(self, rule_id: str) -> AlertRule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise RuleNotFound(rule_id) from None
