"""Expression extraction from view definitions.

Walks views and blocks in definition order and returns the deduplicated list
of expressions that the materializer evaluates. Ids are ``expr_<n>`` in
first-seen order, so the same registry always yields the same ids.
"""

import re
from dataclasses import dataclass, field

from fhirindex.utils.logging import logger
from fhirindex.views.models import (
    EXPRESSION_BLOCK_TYPES,
    BlockType,
    VariableKind,
    ViewRegistry,
)

from .config import ALLOWED_VARIABLES

_VARIABLE_RE = re.compile(r"%([A-Za-z][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class Projection:
    """A table column path, evaluated relative to each result at render time."""

    name: str
    path: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "path": self.path}


@dataclass(frozen=True)
class FilterToIndex:
    """A facet computed per result item from its value."""

    name: str
    value_expression: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "valueExpression": self.value_expression}


@dataclass
class ExpressionToIndex:
    id: str
    expression: str
    projections: list[Projection] = field(default_factory=list)
    filters: list[FilterToIndex] = field(default_factory=list)

    def projections_payload(self) -> list[dict[str, str]] | None:
        """Serializable projections, or None when there are none."""
        if not self.projections:
            return None
        return [p.to_dict() for p in self.projections]


def has_unbound_variables(expression: str) -> bool:
    """True if the expression uses a %variable the indexer cannot bind."""
    for match in _VARIABLE_RE.finditer(expression):
        if match.group(1) not in ALLOWED_VARIABLES:
            return True
    return False


class ExpressionExtractor:
    """Collects expressions; repeated strings resolve to the first entry."""

    def __init__(self):
        self.expressions: list[ExpressionToIndex] = []
        self._by_expression: dict[str, ExpressionToIndex] = {}
        self.skipped: list[str] = []

    def _register(self, expression: str) -> tuple[ExpressionToIndex, bool]:
        existing = self._by_expression.get(expression)
        if existing is not None:
            return existing, False

        entry = ExpressionToIndex(id=f"expr_{len(self.expressions)}", expression=expression)
        self.expressions.append(entry)
        self._by_expression[expression] = entry
        return entry, True

    def _skip(self, expression: str) -> None:
        logger.info(f"Skipping expression with variables: {expression}")
        self.skipped.append(expression)

    def add_block(self, block) -> None:
        if block.type not in EXPRESSION_BLOCK_TYPES:
            return

        expression = block.expression
        if has_unbound_variables(expression):
            self._skip(expression)
        else:
            entry, created = self._register(expression)
            if created:
                if block.type == BlockType.FHIRPATH_TABLE:
                    entry.projections = [
                        Projection(name=col.header, path=col.path) for col in block.columns
                    ]
                entry.filters = [
                    FilterToIndex(name=v.name, value_expression=v.value_expression)
                    for v in block.variables
                    if v.kind == VariableKind.FILTER and v.value_expression
                ]

        for variable in block.variables:
            options = variable.options_expression
            if not options:
                continue
            if has_unbound_variables(options):
                self._skip(options)
                continue
            self._register(options)

    def extract(self, registry: ViewRegistry) -> list[ExpressionToIndex]:
        for view in registry.views:
            for block in view.blocks:
                self.add_block(block)
        return self.expressions


def extract_expressions(registry: ViewRegistry) -> list[ExpressionToIndex]:
    """Extract the deduplicated, stable-ordered expressions of a registry."""
    return ExpressionExtractor().extract(registry)
