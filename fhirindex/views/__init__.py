"""View definitions: typed model and YAML loader."""

from .loader import load_registry, parse_registry
from .models import (
    EXPRESSION_BLOCK_TYPES,
    BlockType,
    FhirpathListBlock,
    FhirpathSingleBlock,
    FhirpathTableBlock,
    MarkdownBlock,
    VariableKind,
    ViewBlock,
    ViewColumn,
    ViewDefinition,
    ViewDefinitionError,
    ViewRegistry,
    ViewVariable,
)

__all__ = [
    "BlockType",
    "VariableKind",
    "ViewVariable",
    "ViewColumn",
    "MarkdownBlock",
    "FhirpathTableBlock",
    "FhirpathListBlock",
    "FhirpathSingleBlock",
    "ViewBlock",
    "ViewDefinition",
    "ViewRegistry",
    "EXPRESSION_BLOCK_TYPES",
    "ViewDefinitionError",
    "load_registry",
    "parse_registry",
]
