"""
Rule management routes for correlation rules and alert rules.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter

from api.requests import AlertRuleRequest, CorrelationRuleRequest
from api.responses import AlertRuleOut, CorrelationRuleOut
from api.routes.common import alert_rule_out, correlation_rule_out, get_engine
from api.routes.exception import handle_exceptions

router = APIRouter(tags=["Rules"])


@router.get("/rules/correlation", summary="List correlation rules in registration order")
@handle_exceptions
async def list_correlation_rules() -> List[CorrelationRuleOut]:
    return [correlation_rule_out(r) for r in get_engine().correlation_rules()]


@router.post("/rules/correlation", summary="Register a correlation rule")
@handle_exceptions
async def add_correlation_rule(req: CorrelationRuleRequest) -> CorrelationRuleOut:
    rule = req.to_rule()
    get_engine().add_correlation_rule(rule)
    return correlation_rule_out(rule)


@router.delete("/rules/correlation/{rule_id}", summary="Remove a correlation rule")
@handle_exceptions
async def remove_correlation_rule(rule_id: str) -> Dict[str, str]:
    get_engine().remove_correlation_rule(rule_id)
    return {"status": "removed", "rule_id": rule_id}


@router.get("/rules/alerts", summary="List alert rules")
@handle_exceptions
async def list_alert_rules(active_only: bool = False) -> List[AlertRuleOut]:
    engine = get_engine()
    rules = engine.active_alert_rules() if active_only else engine.alert_rules()
    return [alert_rule_out(r) for r in rules]


@router.post("/rules/alerts", summary="Register an alert rule")
@handle_exceptions
async def add_alert_rule(req: AlertRuleRequest) -> AlertRuleOut:
    rule = req.to_rule()
    get_engine().add_alert_rule(rule)
    return alert_rule_out(rule)


@router.delete("/rules/alerts/{rule_id}", summary="Remove an alert rule and its cooldown state")
@handle_exceptions
async def remove_alert_rule(rule_id: str) -> Dict[str, str]:
    get_engine().remove_alert_rule(rule_id)
    return {"status": "removed", "rule_id": rule_id}


@router.post("/rules/alerts/{rule_id}/enable", summary="Enable an alert rule")
@handle_exceptions
async def enable_alert_rule(rule_id: str) -> Dict[str, str]:
    get_engine().enable_alert_rule(rule_id)
    return {"status": "enabled", "rule_id": rule_id}


@router.post("/rules/alerts/{rule_id}/disable", summary="Disable an alert rule")
@handle_exceptions
async def disable_alert_rule(rule_id: str) -> Dict[str, str]:
    get_engine().disable_alert_rule(rule_id)
    return {"status": "disabled", "rule_id": rule_id}
