"""View definition model.

A view is a page made of ordered blocks. Blocks are a tagged union keyed by
``type``; every FHIRPath-bearing variant carries an ``expression`` and optional
``variables``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class ViewDefinitionError(ValueError):
    """Raised when a view registry document is structurally invalid."""


class BlockType(str, Enum):
    """Discriminant for view blocks."""

    MARKDOWN = "markdown"
    FHIRPATH_TABLE = "fhirpath-table"
    FHIRPATH_LIST = "fhirpath-list"
    FHIRPATH_SINGLE = "fhirpath-single"


class VariableKind(str, Enum):
    """filter = resolved per result at index time, param = render time only."""

    FILTER = "filter"
    PARAM = "param"


@dataclass(frozen=True)
class ViewVariable:
    name: str
    kind: VariableKind
    label: str | None = None
    options_expression: str | None = None
    value_expression: str | None = None
    default_value: str | None = None


@dataclass(frozen=True)
class ViewColumn:
    header: str
    path: str
    link: str | None = None


@dataclass(frozen=True)
class MarkdownBlock:
    type: ClassVar[BlockType] = BlockType.MARKDOWN

    content: str = ""


@dataclass(frozen=True)
class FhirpathTableBlock:
    type: ClassVar[BlockType] = BlockType.FHIRPATH_TABLE

    expression: str
    columns: tuple[ViewColumn, ...] = ()
    variables: tuple[ViewVariable, ...] = ()
    title: str | None = None
    description: str | None = None
    page_size: int | None = None


@dataclass(frozen=True)
class FhirpathListBlock:
    type: ClassVar[BlockType] = BlockType.FHIRPATH_LIST

    expression: str
    item_template: str = ""
    variables: tuple[ViewVariable, ...] = ()
    page_size: int | None = None


@dataclass(frozen=True)
class FhirpathSingleBlock:
    type: ClassVar[BlockType] = BlockType.FHIRPATH_SINGLE

    expression: str
    template: str = ""
    variables: tuple[ViewVariable, ...] = ()


ViewBlock = MarkdownBlock | FhirpathTableBlock | FhirpathListBlock | FhirpathSingleBlock

EXPRESSION_BLOCK_TYPES = frozenset(
    {BlockType.FHIRPATH_TABLE, BlockType.FHIRPATH_LIST, BlockType.FHIRPATH_SINGLE}
)


@dataclass(frozen=True)
class ViewDefinition:
    """A named page. ``raw`` is the mapping exactly as loaded."""

    id: str
    title: str
    blocks: tuple[ViewBlock, ...] = ()
    params: tuple[str, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class ViewRegistry:
    views: tuple[ViewDefinition, ...] = ()

    def get(self, view_id: str) -> ViewDefinition | None:
        """Look up a view by id."""
        for view in self.views:
            if view.id == view_id:
                return view
        return None
