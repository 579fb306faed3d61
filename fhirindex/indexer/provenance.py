"""Path-provenance adapter around the FHIRPath evaluator.

Indexed expressions are evaluated with ``returnRawData`` so fhirpathpy hands
back its own ``ResourceNode`` objects instead of plain values. Each node
carries the property path it was reached through, rooted at the resource type
(``Medication.code.coding[1].code``). Dropping the array indices gives the
type-qualified source path stored with every row
(``Medication.code.coding.code``). Results that are not nodes (literals,
function results) have no path.

fhirpathpy's own parser recovers from syntax errors without raising, so every
expression is checked once against the grammar's ``entireExpression`` rule with
a raising error listener before it is first evaluated.

Record mutation: the evaluator may annotate the record with type metadata the
first time it sees it. Callers evaluating many expressions against one record
reuse the annotated object; pass a deep copy if the original must stay intact.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from antlr4 import CommonTokenStream, InputStream
from antlr4.error.ErrorListener import ErrorListener
from fhirpathpy import evaluate as fhirpath_evaluate
from fhirpathpy.engine.nodes import FP_Quantity, FP_TimeBase, FP_Type, ResourceNode
from fhirpathpy.models import models as fhirpath_models
from fhirpathpy.parser.generated.FHIRPathLexer import FHIRPathLexer
from fhirpathpy.parser.generated.FHIRPathParser import FHIRPathParser

from fhirindex.utils.logging import logger

from .config import FHIR_MODEL

# evaluate(resource, expression, context, model, options) -> list
Evaluator = Callable[..., list]

FHIR_R4_MODEL = fhirpath_models[FHIR_MODEL]

RAW_DATA_OPTIONS = {"returnRawData": True}

_ARRAY_INDEX_RE = re.compile(r"\[\d+\]")


class FhirpathSyntaxError(ValueError):
    """An expression the FHIRPath grammar rejects."""


class _RaisingErrorListener(ErrorListener):

    def syntaxError(self, recognizer, offendingSymbol, line, column, msg, e):
        raise FhirpathSyntaxError(f"syntax error at {line}:{column}: {msg}")


def check_syntax(expression: str) -> None:
    """Parse the whole expression strictly; raise FhirpathSyntaxError on any error."""
    listener = _RaisingErrorListener()

    lexer = FHIRPathLexer(InputStream(expression))
    lexer.removeErrorListeners()
    lexer.addErrorListener(listener)

    parser = FHIRPathParser(CommonTokenStream(lexer))
    parser.removeErrorListeners()
    parser.addErrorListener(listener)
    parser.entireExpression()


@dataclass(frozen=True)
class ResultItem:
    """One matched value and the path of the node it came from."""

    path: str | None
    value: Any


def node_path(node: ResourceNode) -> str | None:
    """Type-qualified path of an evaluator node, without array indices."""
    if node.propName:
        # Untyped roots make the engine emit a leading '.'
        return _ARRAY_INDEX_RE.sub("", node.propName).lstrip(".") or None
    return node.path


def _ucum_unit(unit: str | None) -> str | None:
    if unit and len(unit) > 1 and unit.startswith("'") and unit.endswith("'"):
        return unit[1:-1]
    return unit


def to_json_value(value: Any) -> Any:
    """Convert evaluator scalar types into plain JSON-compatible values.

    Quantities become ``{"value": ..., "unit": ...}``, dates and times keep
    their ISO text, decimals become int or float. Anything else is returned
    unchanged.
    """
    if isinstance(value, ResourceNode):
        value = value.data
    if isinstance(value, FP_Quantity):
        return {"value": to_json_value(value.value), "unit": _ucum_unit(value.unit)}
    if isinstance(value, FP_TimeBase):
        return value.asStr
    if isinstance(value, FP_Type):
        return str(value)
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def json_default(value: Any) -> Any:
    """``json.dumps`` default hook for evaluator types nested inside values."""
    converted = to_json_value(value)
    if converted is value:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return converted


def _record_label(record: Any) -> str:
    if isinstance(record, dict):
        return f"{record.get('resourceType', '?')}/{record.get('id', '?')}"
    return type(record).__name__


def _to_result_item(item: Any) -> ResultItem:
    if isinstance(item, ResourceNode):
        return ResultItem(path=node_path(item), value=to_json_value(item.data))
    return ResultItem(path=None, value=to_json_value(item))


class PathProvenanceAdapter:
    """Evaluates expressions and attaches a provenance path to every result.

    ``evaluator`` follows the fhirpathpy ``evaluate`` signature and is
    injectable; it defaults to fhirpathpy with the R4 model.
    """

    def __init__(self, evaluator: Evaluator | None = None, model: Any = None):
        self.evaluator = evaluator or fhirpath_evaluate
        self.model = model if model is not None else FHIR_R4_MODEL
        self.failures = 0
        self._syntax_errors: dict[str, str | None] = {}

    def check(self, expression: str) -> None:
        """Raise FhirpathSyntaxError if ``expression`` does not parse.

        The outcome is cached per expression string; the first failure is
        logged once.
        """
        if expression not in self._syntax_errors:
            try:
                check_syntax(expression)
            except FhirpathSyntaxError as e:
                self._syntax_errors[expression] = str(e)
                logger.warning(f"Invalid expression \"{expression}\": {e}")
            else:
                self._syntax_errors[expression] = None

        error = self._syntax_errors[expression]
        if error is not None:
            raise FhirpathSyntaxError(error)

    def evaluate_with_paths(self, record: Any, expression: str) -> list[ResultItem]:
        """Evaluate ``expression`` against ``record``; [] on any evaluator error."""
        try:
            self.check(expression)
        except FhirpathSyntaxError:
            self.failures += 1
            return []

        try:
            results = self.evaluator(
                record,
                expression,
                {"resource": record},
                self.model,
                RAW_DATA_OPTIONS,
            )
        except Exception as e:
            self.failures += 1
            logger.warning(
                f"Error evaluating expression \"{expression}\" on {_record_label(record)}: {e}"
            )
            return []

        if not isinstance(results, list):
            results = [] if results is None else [results]
        return [_to_result_item(item) for item in results]

    def evaluate_simple(self, value: Any, expression: str) -> Any:
        """Evaluate against a result value and return the first result or None.

        The expression runs inside ``select()`` so ``$this`` is bound to the
        value. Errors propagate; callers decide whether they are fatal.
        """
        self.check(expression)
        results = self.evaluator(value, f"select({expression})", {}, self.model)
        if not results:
            return None
        return to_json_value(results[0])


_default_adapter: PathProvenanceAdapter | None = None


def _adapter() -> PathProvenanceAdapter:
    global _default_adapter
    if _default_adapter is None:
        _default_adapter = PathProvenanceAdapter()
    return _default_adapter


def evaluate_with_paths(record: Any, expression: str) -> list[ResultItem]:
    """Module-level convenience using the default fhirpathpy adapter."""
    return _adapter().evaluate_with_paths(record, expression)
