"""Shared test helpers: a failure-injecting evaluator and NDJSON writer."""
import json
from pathlib import Path

from fhirpathpy import evaluate


class FailingEvaluator:
    """fhirpathpy ``evaluate`` that raises for selected expressions.

    An expression containing any string from ``fail_on`` raises ValueError;
    everything else is evaluated by fhirpathpy. Calls are recorded.
    """

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def __call__(self, resource, expression, context=None, model=None, options=None):
        self.calls.append((expression, context, options))
        if any(marker in expression for marker in self.fail_on):
            raise ValueError(f"cannot evaluate {expression}")
        return evaluate(resource, expression, context, model, options)


def write_ndjson(path: Path, records) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write((record if isinstance(record, str) else json.dumps(record)) + "\n")
    return path
