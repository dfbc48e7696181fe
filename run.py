#!/usr/bin/env python3

"""
Regression and integration runner for the Signal Correlation Engine API.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import argparse
import asyncio
import json
import os
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import httpx

BASE_URL = os.getenv("SIGCORR_BASE_URL", "http://localhost:4322/api/v1")
NOW = time.time()
HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class Case:
    label: str
    method: str
    path: str
    body: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    expect: int = 200
    section: str = ""
    check: Optional[Callable[[Any], Optional[str]]] = None


def signal(kind: str, source: str, confidence: float | None = None, **extra: Any) -> Dict[str, Any]:
    d: Dict[str, Any] = {"kind": kind, "source": source, "produced_at": NOW}
    if confidence is not None:
        d["confidence"] = confidence
    d.update(extra)
    return d


def expect_composite(pattern: str) -> Callable[[Any], Optional[str]]:
    def _check(body: Any) -> Optional[str]:
        found = [c.get("pattern") for c in (body or {}).get("composites", [])]
        return None if pattern in found else f"expected composite {pattern!r}, got {found}"
    return _check


def expect_alert(rule_id: str) -> Callable[[Any], Optional[str]]:
    def _check(body: Any) -> Optional[str]:
        fired = [a.get("rule_id") for a in (body or {}).get("alerts", [])]
        return None if rule_id in fired else f"expected alert {rule_id!r}, got {fired}"
    return _check


CASES: list[Case] = [
    # ── Health ────────────────────────────────────────────
    Case("health", "GET", "/health", section="Health"),
    Case("stats", "GET", "/stats", section="Health"),

    # ── Rules ─────────────────────────────────────────────
    Case("list correlation rules", "GET", "/rules/correlation", section="Rules"),
    Case("add correlation rule", "POST", "/rules/correlation", section="Rules", body={
        "id": "probe_pair", "required_kinds": ["probe_a", "probe_b"],
        "window": 30, "min_average_confidence": 0.5, "output_pattern": "probe_pattern",
    }),
    Case("duplicate correlation rule", "POST", "/rules/correlation", section="Rules", expect=400, body={
        "id": "probe_pair", "required_kinds": ["probe_a"],
        "window": 30, "min_average_confidence": 0.5, "output_pattern": "probe_pattern",
    }),
    Case("add alert rule", "POST", "/rules/alerts", section="Rules", body={
        "id": "probe_alert", "priority": "high", "cooldown": 60,
        "condition": {"type": "kind_is", "kind": "probe_pattern"},
    }),
    Case("disable alert rule", "POST", "/rules/alerts/rapid_deployment_burst/disable", section="Rules"),
    Case("enable alert rule", "POST", "/rules/alerts/rapid_deployment_burst/enable", section="Rules"),
    Case("unknown alert rule", "POST", "/rules/alerts/missing/enable", section="Rules", expect=404),

    # ── Signals ───────────────────────────────────────────
    Case("cex funding", "POST", "/signals", section="Signals", body=signal("cex_funding", "A", 0.85)),
    Case("rapid deploy (composite)", "POST", "/signals", section="Signals",
         body=signal("rapid_deploy", "B", 0.78, metadata={"deploys_per_minute": 7}),
         check=expect_composite("coordinated_launch_pattern")),
    Case("probe a", "POST", "/signals", section="Signals", body=signal("probe_a", "C", 0.6)),
    Case("probe b (custom composite)", "POST", "/signals", section="Signals", body=signal("probe_b", "D", 0.7),
         check=expect_composite("probe_pattern")),
    Case("launch detected", "POST", "/signals", section="Signals",
         body=signal("launch_detected", "E", 0.95),
         check=expect_alert("high_confidence_launch")),
    Case("unscored signal", "POST", "/signals", section="Signals", body=signal("heartbeat", "F")),
    Case("recent signals", "GET", "/signals/recent", section="Signals", params={"limit": 5}),

    # ── Metrics ───────────────────────────────────────────
    Case("snapshot 24h", "GET", "/metrics", section="Metrics"),
    Case("snapshot 1h", "GET", "/metrics", section="Metrics", params={"window_seconds": 3600}),
    Case("export json", "GET", "/metrics/export", section="Metrics", params={"format": "json"}),
    Case("export csv", "GET", "/metrics/export", section="Metrics", params={"format": "csv"}),
    Case("trends 6h", "GET", "/metrics/trends", section="Metrics", params={"hours": 6}),
    Case("timeseries count", "GET", "/metrics/timeseries", section="Metrics",
         params={"metric": "count", "window_seconds": 600}),
    Case("analysis", "GET", "/metrics/analysis", section="Metrics"),

    # ── Cleanup ───────────────────────────────────────────
    Case("remove alert rule", "DELETE", "/rules/alerts/probe_alert", section="Cleanup"),
    Case("remove correlation rule", "DELETE", "/rules/correlation/probe_pair", section="Cleanup"),

    # ── Validation ────────────────────────────────────────
    Case("confidence > 1", "POST", "/signals", section="Validation",
         body=signal("cex_funding", "A", 1.5), expect=422),
    Case("empty kind", "POST", "/signals", section="Validation", body=signal("", "A", 0.5), expect=422),
    Case("non-positive window", "POST", "/rules/correlation", section="Validation", expect=422, body={
        "id": "bad", "required_kinds": ["x"], "window": 0,
        "min_average_confidence": 0.5, "output_pattern": "p",
    }),
    Case("unknown condition type", "POST", "/rules/alerts", section="Validation", expect=400, body={
        "id": "bad_alert", "priority": "low", "cooldown": 1, "condition": {"type": "nope"},
    }),
    Case("unknown export format", "GET", "/metrics/export", section="Validation",
         params={"format": "xml"}, expect=422),
]


async def run_case(client: httpx.AsyncClient, case: Case) -> tuple[bool, str, Any]:
    attempt = 0
    last_exc: Exception | None = None
    while attempt < 2:
        try:
            if case.method == "GET":
                r = await client.get(case.path, params=case.params)
            elif case.method == "DELETE":
                r = await client.delete(case.path, params=case.params)
            else:
                r = await client.request(case.method, case.path, json=case.body or None,
                                         params=case.params)
            ok = r.status_code == case.expect
            body: Any = None
            try:
                body = r.json()
            except ValueError:
                body = r.text
            if ok and case.check is not None:
                problem = case.check(body)
                if problem:
                    return False, problem, body
            if ok:
                return True, "", body
            return False, f"{r.status_code} {r.reason_phrase}: {body}", body
        except httpx.TransportError as exc:
            last_exc = exc
            attempt += 1
            if attempt < 2:
                await asyncio.sleep(0.1)
                continue
            return False, f"transport error: {exc}", None
    return False, str(last_exc), None


async def main():
    parser = argparse.ArgumentParser(description="Run API test cases")
    parser.add_argument("--section", help="only run cases from this section name")
    parser.add_argument("--label", help="only run the case with this exact label")
    args = parser.parse_args()
    selected: list[Case] = []
    for c in CASES:
        if args.section and c.section != args.section:
            continue
        if args.label and c.label != args.label:
            continue
        selected.append(c)
    if not selected:
        print("no matching cases (check --section or --label)")
        sys.exit(1)

    passed = failed = 0
    current_section = ""

    async with httpx.AsyncClient(base_url=BASE_URL, headers=HEADERS, timeout=30) as client:
        for case in selected:
            if case.section != current_section:
                current_section = case.section
                print(f"\n── {current_section} {'─' * max(0, 44 - len(current_section))}")

            ok, detail, body = await run_case(client, case)
            if isinstance(body, (dict, list)):
                pretty = json.dumps(body, indent=2)
            elif body is not None:
                pretty = str(body)
            else:
                pretty = "<no response>"

            if ok:
                passed += 1
                print(f"  ✓ PASS  {case.method} {case.path} — {case.label}")
                print(f"         response:\n{pretty}")
            else:
                failed += 1
                print(f"  ✗ FAIL  {case.method} {case.path} — {case.label} (expected {case.expect})")
                if detail:
                    print(f"         {detail}")

    total = passed + failed
    print(f"\n{'━' * 43}")
    print(f"  Results: {passed} passed / {failed} failed / {total} total")
    print(f"  {'All tests passed ✓' if failed == 0 else f'{failed} test(s) failed ✗'}")
    print(f"{'━' * 43}\n")
    sys.exit(0 if failed == 0 else 1)


if __name__ == "__main__":
    asyncio.run(main())
