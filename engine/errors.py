"""
Error taxonomy for the correlation engine. Every error here is a caller
error: it is raised synchronously before any state is mutated and is never
retried.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""


class EngineError(Exception):
    pass


class ValidationError(EngineError, ValueError):
    pass


class InvalidSignal(ValidationError):
    pass


class InvalidRule(ValidationError):
    pass


class RuleNotFound(EngineError, KeyError):

    def __init__(self, rule_id: str) -> None:
        super().__init__(rule_id)
        self.rule_id = rule_id

    def __str__(self) -> str:
        return f"rule {self.rule_id!r} is not registered"
