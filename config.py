"""
Constants and configuration for the signal correlation engine.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Dict, List

from pydantic_settings import BaseSettings


SIGCORR_CORRELATION_HISTORY_SIZE: int = int(os.getenv("SIGCORR_CORRELATION_HISTORY_SIZE", "1000"))
SIGCORR_ANALYTICS_HISTORY_SIZE: int = int(os.getenv("SIGCORR_ANALYTICS_HISTORY_SIZE", "10000"))

COOLDOWN_SCOPE_RULE = "rule"
COOLDOWN_SCOPE_SOURCE = "source"

SIGCORR_ALERT_COOLDOWN_SCOPE = os.getenv("SIGCORR_ALERT_COOLDOWN_SCOPE", COOLDOWN_SCOPE_RULE).lower()

# source assigned to composite signals when they are re-evaluated as alerts
COMPOSITE_SOURCE = "correlator"

FINGERPRINT_PREFIX = "sig_"

# weight values assigned to alert priority labels for comparison and ranking
PRIORITY_WEIGHTS: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 4,
    "critical": 8,
}

# metadata keys read by the built-in alert rules and the pattern ranking
METADATA_PATTERN_KEY = "pattern"
METADATA_DORMANCY_KEY = "dormancy_days"
METADATA_DEPLOY_RATE_KEY = "deploys_per_minute"

TIME_SERIES_METRICS: List[str] = ["count", "confidence"]
EXPORT_FORMATS: List[str] = ["json", "csv"]


class Settings(BaseSettings):
    # history bounds
    correlation_history_size: int = SIGCORR_CORRELATION_HISTORY_SIZE
    analytics_history_size: int = SIGCORR_ANALYTICS_HISTORY_SIZE

    # correlation scoring
    correlation_boost: float = 1.1
    correlation_confidence_cap: float = 1.0
    correlation_default_window_seconds: float = 60.0

    # built-in correlation rules
    funding_deploy_window_seconds: float = 30.0
    funding_deploy_min_confidence: float = 0.8
    dormant_reactivation_window_seconds: float = 120.0
    dormant_reactivation_min_confidence: float = 0.75

    # alerting
    alert_cooldown_scope: str = SIGCORR_ALERT_COOLDOWN_SCOPE
    alert_launch_confidence_threshold: float = 0.9
    alert_dormancy_days_threshold: float = 180.0
    alert_deploy_rate_threshold: float = 5.0
    alert_cooldowns: Dict[str, float] = {
        "high_confidence_launch": 30.0,
        "coordinated_pattern": 60.0,
        "ghost_wallet_activity": 120.0,
        "rapid_deployment_burst": 180.0,
    }

    # metrics aggregation
    metrics_window_seconds: float = 24 * 3600.0
    metrics_confidence_medium: float = 0.7
    metrics_confidence_high: float = 0.8
    metrics_top_patterns: int = 10
    metrics_trend_hours: int = 24
    metrics_time_series_intervals: int = 10

    # export precision; csv values are rounded, json values are not
    export_confidence_precision: int = 3
    export_rate_precision: int = 2

    recent_signals_limit: int = 50

    # http surface
    host: str = "0.0.0.0"
    port: int = 4322
    log_level: str = "info"

    model_config = {
        "env_prefix": "SIGCORR_",
        "extra": "ignore",
    }


settings = Settings()
