"""
Serialization of metrics snapshots.

JSON output is the full pydantic dump and validates back into an identical
``MetricsSnapshot``. CSV output is a sectioned report for spreadsheets: counts
are exact, but confidence values are rounded to
``settings.export_confidence_precision`` decimals and rates to
``settings.export_rate_precision`` decimals, so those fields do not survive a
round trip bit-for-bit.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, List

from api.responses import MetricsSnapshot
from config import settings
from engine.enums import ExportFormat
from engine.errors import ValidationError

SECTION_SUMMARY = ("metric", "value")
SECTION_KINDS = ("signal_kind", "count")
SECTION_AGENTS = ("agent", "count")
SECTION_SOURCES = ("source", "count")
SECTION_PATTERNS = ("pattern", "count", "confidence")

_SECTIONS = {
    SECTION_SUMMARY[0]: "summary",
    SECTION_KINDS[0]: "signals_by_kind",
    SECTION_AGENTS[0]: "signals_by_agent",
    SECTION_SOURCES[0]: "signals_by_source",
    SECTION_PATTERNS[0]: "top_patterns",
}

_INT_METRICS = {"total_signals", "confidence_low", "confidence_medium", "confidence_high"}


def _conf(value: float) -> str:
    return f"{value:.{settings.export_confidence_precision}f}"


def _rate(value: float) -> str:
    return f"{value:.{settings.export_rate_precision}f}"


def to_json(snapshot: MetricsSnapshot) -> str:
    return snapshot.model_dump_json(indent=2)


def to_csv(snapshot: MetricsSnapshot) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    dist = snapshot.confidence_distribution

    writer.writerow(SECTION_SUMMARY)
    writer.writerows([
        ("total_signals", snapshot.total_signals),
        ("average_confidence", _conf(snapshot.average_confidence)),
        ("signals_per_hour", _rate(snapshot.signals_per_hour)),
        ("signals_per_minute", _rate(snapshot.signals_per_minute)),
        ("signals_per_second", _rate(snapshot.signals_per_second)),
        ("confidence_low", dist.low),
        ("confidence_medium", dist.medium),
        ("confidence_high", dist.high),
        ("window_seconds", snapshot.window_seconds),
        ("time_range_start", snapshot.time_range.start),
        ("time_range_end", snapshot.time_range.end),
    ])

    writer.writerow(())
    writer.writerow(SECTION_KINDS)
    writer.writerows(snapshot.signals_by_kind.items())

    writer.writerow(())
    writer.writerow(SECTION_AGENTS)
    writer.writerows(snapshot.signals_by_agent.items())

    writer.writerow(())
    writer.writerow(SECTION_SOURCES)
    writer.writerows(snapshot.signals_by_source.items())

    writer.writerow(())
    writer.writerow(SECTION_PATTERNS)
    writer.writerows((p.pattern, p.count, _conf(p.confidence)) for p in snapshot.top_patterns)

    return buf.getvalue()


def export(snapshot: MetricsSnapshot, fmt: ExportFormat | str = ExportFormat.json) -> str:
    try:
        fmt = ExportFormat(fmt)
    except ValueError:
        raise ValidationError(f"unsupported export format {fmt!r}") from None
    if fmt is ExportFormat.csv:
        return to_csv(snapshot)
    return to_json(snapshot)


def parse_csv(text: str) -> Dict[str, Any]:
    """Read a CSV export back into its sections.

    Counts come back as ``int``; summary values and pattern confidences come
    back as ``float`` at the exported precision.
    """
    parsed: Dict[str, Any] = {
        "summary": {},
        "signals_by_kind": {},
        "signals_by_agent": {},
        "signals_by_source": {},
        "top_patterns": [],
    }
    section: str | None = None
    for row in csv.reader(io.StringIO(text)):
        if not row:
            section = None
            continue
        if section is None:
            section = _SECTIONS.get(row[0])
            if section is None:
                raise ValidationError(f"unknown csv section header {row[0]!r}")
            continue
        if section == "summary":
            key, value = row[0], row[1]
            parsed["summary"][key] = int(value) if key in _INT_METRICS else float(value)
        elif section == "top_patterns":
            patterns: List[Dict[str, Any]] = parsed["top_patterns"]
            patterns.append({"pattern": row[0], "count": int(row[1]), "confidence": float(row[2])})
        else:
            parsed[section][row[0]] = int(row[1])
    return parsed
