"""
Signal records and the bounded signal history.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.signals.models import CompositeSignal, Signal, generate_fingerprint, validate_signal
from engine.signals.history import SignalHistory

__all__ = ["CompositeSignal", "Signal", "generate_fingerprint", "validate_signal", "SignalHistory"]
