"""
On-demand metrics over the retained signal history and their export formats.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.metrics.aggregator import MetricsAggregator
from engine.metrics.export import export, parse_csv, to_csv, to_json

__all__ = ["MetricsAggregator", "export", "parse_csv", "to_csv", "to_json"]
