#!/usr/bin/env python3

"""
Script to perform concurrent stress testing of the /signals ingestion endpoint.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import argparse
import asyncio
import random
import statistics
import time
from collections import Counter
from dataclasses import dataclass
from typing import Any

import httpx


@dataclass(frozen=True)
class Sample:
    kind: str
    latency_ms: float
    status: int
    error: str | None = None
    composites: int = 0
    alerts: int = 0


@dataclass(frozen=True)
class RunConfig:
    base_url: str
    endpoint: str
    kinds: list[str]
    sources: list[str]
    concurrency: int
    requests: int
    timeout: float
    warmup: int
    seed: int


def _parse_args() -> RunConfig:
    parser = argparse.ArgumentParser(description="Concurrent stress test for /signals")
    parser.add_argument("--base-url", default="http://localhost:4322/api/v1", help="API base URL")
    parser.add_argument("--endpoint", default="/signals", help="Endpoint path")
    parser.add_argument(
        "--kinds",
        default="cex_funding,rapid_deploy,dormant_wallet_activated,high_value_transaction,launch_detected",
        help="Comma-separated signal kinds, picked at random per request",
    )
    parser.add_argument("--sources", default="observer,harvester,sentinel", help="Comma-separated sources")
    parser.add_argument("--concurrency", type=int, default=5, help="Concurrent workers")
    parser.add_argument("--requests", type=int, default=500, help="Total measured requests")
    parser.add_argument("--timeout", type=float, default=30.0, help="HTTP timeout (seconds)")
    parser.add_argument("--warmup", type=int, default=10, help="Warmup requests (not measured)")
    parser.add_argument("--seed", type=int, default=7, help="Random seed for payloads")

    args = parser.parse_args()

    kinds = [k.strip() for k in args.kinds.split(",") if k.strip()]
    sources = [s.strip() for s in args.sources.split(",") if s.strip()]
    if not kinds:
        raise SystemExit("--kinds must include at least one kind")
    if not sources:
        raise SystemExit("--sources must include at least one source")
    if args.concurrency < 1:
        raise SystemExit("--concurrency must be >= 1")
    if args.requests < 1:
        raise SystemExit("--requests must be >= 1")
    if args.warmup < 0:
        raise SystemExit("--warmup must be >= 0")

    return RunConfig(
        base_url=args.base_url.rstrip("/"),
        endpoint=args.endpoint,
        kinds=kinds,
        sources=sources,
        concurrency=args.concurrency,
        requests=args.requests,
        timeout=args.timeout,
        warmup=args.warmup,
        seed=args.seed,
    )


def _payload(cfg: RunConfig, rng: random.Random) -> dict[str, Any]:
    return {
        "kind": rng.choice(cfg.kinds),
        "source": rng.choice(cfg.sources),
        "confidence": round(rng.uniform(0.5, 1.0), 3),
        "produced_at": time.time(),
        "metadata": {"deploys_per_minute": rng.randint(0, 10), "dormancy_days": rng.randint(0, 365)},
    }


def _percentile(sorted_values: list[float], p: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return sorted_values[0]
    rank = (len(sorted_values) - 1) * p
    lower = int(rank)
    upper = min(lower + 1, len(sorted_values) - 1)
    frac = rank - lower
    return sorted_values[lower] * (1.0 - frac) + sorted_values[upper] * frac


async def _one_request(
    client: httpx.AsyncClient,
    cfg: RunConfig,
    rng: random.Random,
) -> Sample:
    body = _payload(cfg, rng)
    kind = body["kind"]
    t0 = time.perf_counter()
    try:
        resp = await client.post(cfg.endpoint, json=body)
    except httpx.HTTPError as exc:
        latency_ms = (time.perf_counter() - t0) * 1000.0
        return Sample(kind, latency_ms, 0, error=f"transport:{type(exc).__name__}")

    latency_ms = (time.perf_counter() - t0) * 1000.0
    if resp.status_code != 200:
        return Sample(kind, latency_ms, resp.status_code, error=f"http:{resp.status_code}")
    data = resp.json()
    return Sample(
        kind,
        latency_ms,
        resp.status_code,
        composites=len(data.get("composites") or []),
        alerts=len(data.get("alerts") or []),
    )


async def _run_phase(
    client: httpx.AsyncClient,
    cfg: RunConfig,
    count: int,
    rng: random.Random,
) -> list[Sample]:
    remaining = count
    lock = asyncio.Lock()
    results: list[Sample] = []

    async def worker() -> None:
        nonlocal remaining
        while True:
            async with lock:
                if remaining <= 0:
                    return
                remaining -= 1
            results.append(await _one_request(client, cfg, rng))

    workers = [asyncio.create_task(worker()) for _ in range(cfg.concurrency)]
    await asyncio.gather(*workers)
    return results


def _print_summary(
    cfg: RunConfig,
    elapsed_s: float,
    results: list[Sample],
) -> None:
    latencies = [r.latency_ms for r in results]
    codes = Counter(r.status for r in results)
    errors = Counter(r.error for r in results if r.error)
    composites = sum(r.composites for r in results)
    alerts = sum(r.alerts for r in results)

    by_kind: dict[str, list[float]] = {}
    for r in results:
        by_kind.setdefault(r.kind, []).append(r.latency_ms)

    sorted_lat = sorted(latencies)
    success = codes.get(200, 0)
    rps = len(results) / elapsed_s if elapsed_s > 0 else 0.0

    print("\nStress test complete")
    print(f"target        : {cfg.base_url}{cfg.endpoint}")
    print(f"requests      : {len(results)}")
    print(f"concurrency   : {cfg.concurrency}")
    print(f"success       : {success}/{len(results)} ({(success/len(results))*100:.1f}%)")
    print(f"duration      : {elapsed_s:.3f}s")
    print(f"throughput    : {rps:.2f} req/s")
    print(f"latency avg   : {statistics.fmean(latencies):.2f} ms")
    print(f"latency p50   : {_percentile(sorted_lat, 0.50):.2f} ms")
    print(f"latency p95   : {_percentile(sorted_lat, 0.95):.2f} ms")
    print(f"latency p99   : {_percentile(sorted_lat, 0.99):.2f} ms")
    print(f"composites    : {composites}")
    print(f"alerts        : {alerts}")
    print(f"status codes  : {dict(sorted(codes.items(), key=lambda kv: kv[0]))}")
    print("per kind      :")
    for kind, values in sorted(by_kind.items()):
        values.sort()
        print(f"  {kind:<28} n={len(values):<5} p50={_percentile(values, 0.50):.2f} ms p95={_percentile(values, 0.95):.2f} ms")
    if errors:
        print(f"errors        : {dict(errors.most_common())}")


async def main() -> None:
    cfg = _parse_args()
    rng = random.Random(cfg.seed)

    timeout = httpx.Timeout(cfg.timeout)
    async with httpx.AsyncClient(base_url=cfg.base_url, timeout=timeout) as client:
        if cfg.warmup:
            print(f"Running warmup: {cfg.warmup} request(s)...")
            await _run_phase(client, cfg, cfg.warmup, rng)

        print(f"Running measured phase: {cfg.requests} request(s), concurrency={cfg.concurrency}...")
        t0 = time.perf_counter()
        measured = await _run_phase(client, cfg, cfg.requests, rng)
        elapsed = time.perf_counter() - t0

    _print_summary(cfg, elapsed, measured)


if __name__ == "__main__":
    asyncio.run(main())
