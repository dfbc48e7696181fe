"""
Signal ingestion routes: submit a signal for correlation and alerting, and
read back the most recent retained signals.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query

from api.requests import SignalRequest
from api.responses import IngestResponse, SignalOut
from api.routes.common import get_engine, ingest_out, signal_out
from api.routes.exception import handle_exceptions
from config import settings

router = APIRouter(tags=["Signals"])


@router.post("/signals", summary="Ingest a signal and return composites and triggered alerts")
@handle_exceptions
async def ingest_signal(req: SignalRequest) -> IngestResponse:
    engine = get_engine()
    result = engine.ingest(req.to_signal(engine.clock))
    return ingest_out(result)


@router.get("/signals/recent", summary="Most recent retained signals in arrival order")
@handle_exceptions
async def recent_signals(limit: int = Query(default=settings.recent_signals_limit, ge=1)) -> List[SignalOut]:
    return [signal_out(s) for s in get_engine().recent_signals(limit)]
