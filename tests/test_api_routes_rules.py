"""
Tests for correlation and alert rule management routes.
"""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from api.requests import AlertRuleRequest, CorrelationRuleRequest
from api.routes import rules as rules_route
from engine.coordinator import SignalEngine


@pytest.fixture
def engine(monkeypatch, clock):
    eng = SignalEngine(correlation_history_size=10, analytics_history_size=10, clock=clock)
    monkeypatch.setattr(rules_route, "get_engine", lambda: eng)
    return eng


def _corr_req(**kw):
    data = {
        "id": "probe",
        "required_kinds": ["a", "b"],
        "window": 30,
        "min_average_confidence": 0.5,
        "output_pattern": "probe_pattern",
    }
    data.update(kw)
    return CorrelationRuleRequest(**data)


@pytest.mark.asyncio
async def test_correlation_rule_lifecycle(engine):
    listed = await rules_route.list_correlation_rules()
    assert [r.id for r in listed] == ["cex_rapid_deploy", "ghost_wallet_activation"]

    created = await rules_route.add_correlation_rule(_corr_req())
    assert created.required_kinds == ["a", "b"]
    assert created.name == "probe"

    with pytest.raises(HTTPException) as dup:
        await rules_route.add_correlation_rule(_corr_req())
    assert dup.value.status_code == 400

    assert await rules_route.remove_correlation_rule("probe") == {"status": "removed", "rule_id": "probe"}
    with pytest.raises(HTTPException) as missing:
        await rules_route.remove_correlation_rule("probe")
    assert missing.value.status_code == 404


@pytest.mark.asyncio
async def test_blank_required_kind_is_rejected(engine):
    with pytest.raises(HTTPException) as exc:
        await rules_route.add_correlation_rule(_corr_req(required_kinds=["a", " "]))
    assert exc.value.status_code == 400
    assert len(engine.correlation_rules()) == 2


@pytest.mark.asyncio
async def test_alert_rule_lifecycle(engine):
    req = AlertRuleRequest(
        id="probe_alert",
        priority="high",
        cooldown=60,
        condition={"type": "kind_is", "kind": "probe_pattern"},
    )
    created = await rules_route.add_alert_rule(req)
    assert created.condition == {"type": "kind_is", "kind": "probe_pattern"}

    assert (await rules_route.disable_alert_rule("probe_alert"))["status"] == "disabled"
    active = await rules_route.list_alert_rules(active_only=True)
    assert "probe_alert" not in {r.id for r in active}
    assert (await rules_route.enable_alert_rule("probe_alert"))["status"] == "enabled"
    assert len(await rules_route.list_alert_rules(active_only=False)) == 5

    await rules_route.remove_alert_rule("probe_alert")
    for op in (rules_route.enable_alert_rule, rules_route.disable_alert_rule, rules_route.remove_alert_rule):
        with pytest.raises(HTTPException) as exc:
            await op("probe_alert")
        assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_unknown_condition_type_is_400(engine):
    req = AlertRuleRequest(id="bad", priority="low", cooldown=1, condition={"type": "nope"})
    with pytest.raises(HTTPException) as exc:
        await rules_route.add_alert_rule(req)
    assert exc.value.status_code == 400
    assert "nope" in exc.value.detail
