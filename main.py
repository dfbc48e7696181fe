"""
Entry point for the Signal Correlation Engine API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from api.routes import router
from api.routes.common import get_engine, reset_engine
from config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    stats = get_engine().stats()
    log.info(
        "Signal engine ready: correlation_history=%d analytics_history=%d correlation_rules=%d alert_rules=%d cooldown_scope=%s",
        settings.correlation_history_size,
        settings.analytics_history_size,
        stats.correlation_rules,
        stats.alert_rules,
        settings.alert_cooldown_scope,
    )
    try:
        yield
    finally:
        reset_engine()
        log.info("Signal engine released")


app = FastAPI(
    title="Signal Correlation Engine",
    description="Temporal correlation, rule-based alerting and rolling analytics over signal streams.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        access_log=True,
    )
