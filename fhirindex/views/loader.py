"""View registry loader.

Parses the YAML view document into the typed model in ``models``. Block
construction dispatches on the ``type`` discriminant; unknown types and
missing required keys raise ViewDefinitionError.
"""

from pathlib import Path
from typing import Any

import yaml

from .models import (
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


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise ViewDefinitionError(f"{where}: missing required key '{key}'")
    return data[key]


def _require_mapping(data: Any, where: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ViewDefinitionError(f"{where}: expected a mapping, got {type(data).__name__}")
    return data


def _list_of(data: dict[str, Any], key: str, where: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ViewDefinitionError(f"{where}: '{key}' must be a list")
    return value


def parse_variable(data: Any, where: str) -> ViewVariable:
    data = _require_mapping(data, where)
    name = str(_require(data, "name", where))
    kind_value = _require(data, "type", where)
    try:
        kind = VariableKind(kind_value)
    except ValueError as e:
        raise ViewDefinitionError(
            f"{where}: variable '{name}' has unknown type '{kind_value}'"
        ) from e

    return ViewVariable(
        name=name,
        kind=kind,
        label=data.get("label"),
        options_expression=data.get("optionsExpression"),
        value_expression=data.get("valueExpression"),
        default_value=data.get("defaultValue"),
    )


def parse_column(data: Any, where: str) -> ViewColumn:
    data = _require_mapping(data, where)
    return ViewColumn(
        header=str(_require(data, "header", where)),
        path=str(_require(data, "path", where)),
        link=data.get("link"),
    )


def _variables(data: dict[str, Any], where: str) -> tuple[ViewVariable, ...]:
    return tuple(
        parse_variable(v, f"{where}.variables[{i}]")
        for i, v in enumerate(_list_of(data, "variables", where))
    )


def _markdown(data: dict[str, Any], where: str) -> MarkdownBlock:
    return MarkdownBlock(content=str(data.get("content", "")))


def _table(data: dict[str, Any], where: str) -> FhirpathTableBlock:
    return FhirpathTableBlock(
        expression=str(_require(data, "expression", where)),
        columns=tuple(
            parse_column(c, f"{where}.columns[{i}]")
            for i, c in enumerate(_list_of(data, "columns", where))
        ),
        variables=_variables(data, where),
        title=data.get("title"),
        description=data.get("description"),
        page_size=data.get("pageSize"),
    )


def _list(data: dict[str, Any], where: str) -> FhirpathListBlock:
    return FhirpathListBlock(
        expression=str(_require(data, "expression", where)),
        item_template=str(data.get("itemTemplate", "")),
        variables=_variables(data, where),
        page_size=data.get("pageSize"),
    )


def _single(data: dict[str, Any], where: str) -> FhirpathSingleBlock:
    return FhirpathSingleBlock(
        expression=str(_require(data, "expression", where)),
        template=str(data.get("template", "")),
        variables=_variables(data, where),
    )


BLOCK_PARSERS = {
    BlockType.MARKDOWN: _markdown,
    BlockType.FHIRPATH_TABLE: _table,
    BlockType.FHIRPATH_LIST: _list,
    BlockType.FHIRPATH_SINGLE: _single,
}


def parse_block(data: Any, where: str) -> ViewBlock:
    data = _require_mapping(data, where)
    type_value = _require(data, "type", where)
    try:
        block_type = BlockType(type_value)
    except ValueError as e:
        raise ViewDefinitionError(f"{where}: unknown block type '{type_value}'") from e
    return BLOCK_PARSERS[block_type](data, where)


def parse_view(data: Any, where: str) -> ViewDefinition:
    data = _require_mapping(data, where)
    view_id = str(_require(data, "id", where))
    where = f"view '{view_id}'"
    return ViewDefinition(
        id=view_id,
        title=str(data.get("title", view_id)),
        params=tuple(str(p) for p in _list_of(data, "params", where)),
        blocks=tuple(
            parse_block(b, f"{where}.blocks[{i}]")
            for i, b in enumerate(_list_of(data, "blocks", where))
        ),
        raw=data,
    )


def parse_registry(data: Any) -> ViewRegistry:
    """Build a ViewRegistry from an already-deserialized document."""
    data = _require_mapping(data, "registry")
    views = tuple(
        parse_view(v, f"views[{i}]") for i, v in enumerate(_list_of(data, "views", "registry"))
    )

    seen: set[str] = set()
    for view in views:
        if view.id in seen:
            raise ViewDefinitionError(f"Duplicate view id '{view.id}'")
        seen.add(view.id)

    return ViewRegistry(views=views)


def load_registry(path: str | Path) -> ViewRegistry:
    """Load a YAML view registry from disk."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ViewDefinitionError(f"{path}: invalid YAML: {e}") from e

    if data is None:
        raise ViewDefinitionError(f"{path}: empty view document")
    return parse_registry(data)
