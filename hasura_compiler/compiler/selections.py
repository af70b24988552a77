# Copyright 2019-present Kensho Technologies, LLC.
from typing import Any, List, Mapping, Optional, Sequence, Union

from graphql.language.ast import FieldNode, SelectionNode, SelectionSetNode

from ..ast_manipulation import make_name_node, parse_selection_set
from ..exceptions import BuildError
from ..global_utils import is_valid_graphql_name
from .naming import validate_name


# The shape of the requested fields. One of:
# - selection-set text, with or without the enclosing braces, e.g. "id name posts { id }";
# - a sequence of column names, selection-set snippets, or {relation name: nested fields} dicts;
# - a dict of field name -> True, or field name -> nested fields for relations.
FieldsSpec = Union[str, Sequence[Any], Mapping[str, Any]]


def _make_field_node(
    field_name: str, selection_set: Optional[SelectionSetNode] = None
) -> FieldNode:
    """Return a FieldNode selecting the named field, with the nested selection if one is given."""
    return FieldNode(
        name=make_name_node(validate_name(field_name, "field name")),
        arguments=(),
        directives=(),
        selection_set=selection_set,
    )


def _compile_fields_mapping(fields: Mapping[str, Any]) -> List[SelectionNode]:
    """Return the selections described by a field name -> True / nested fields mapping."""
    selections: List[SelectionNode] = []
    for field_name, nested_fields in fields.items():
        if nested_fields is False:
            continue
        elif nested_fields is True or nested_fields is None:
            selections.append(_make_field_node(field_name))
        else:
            selections.append(_make_field_node(field_name, _compile_fields_spec(nested_fields)))
    return selections


def _compile_fields_sequence(fields: Sequence[Any]) -> List[SelectionNode]:
    """Return the selections described by a sequence of field descriptions."""
    selections: List[SelectionNode] = []
    for field_description in fields:
        if isinstance(field_description, str):
            if is_valid_graphql_name(field_description):
                selections.append(_make_field_node(field_description))
            else:
                selections.extend(parse_selection_set(field_description).selections)
        elif isinstance(field_description, Mapping):
            selections.extend(_compile_fields_mapping(field_description))
        else:
            raise BuildError(
                "Unsupported field description {!r} of type {}. Expected a field name, selection "
                "text or a dict.".format(field_description, type(field_description).__name__)
            )
    return selections


def _compile_fields_spec(fields: FieldsSpec) -> SelectionSetNode:
    """Return the selection set described by the fields specification."""
    if isinstance(fields, str):
        selections = list(parse_selection_set(fields).selections)
    elif isinstance(fields, Mapping):
        selections = _compile_fields_mapping(fields)
    elif isinstance(fields, (list, tuple)):
        selections = _compile_fields_sequence(fields)
    else:
        raise BuildError(
            "Unsupported fields specification {!r} of type {}.".format(
                fields, type(fields).__name__
            )
        )

    if not selections:
        raise BuildError("The fields specification {!r} selects no fields.".format(fields))
    return SelectionSetNode(selections=tuple(selections))


def compile_field_selection(
    fields: Optional[FieldsSpec], default_field_names: Sequence[str]
) -> SelectionSetNode:
    """Return the selection set for the requested fields of a table.

    Field names are not checked against the catalog: relations and computed fields are legal
    selections even though they are not columns.

    Args:
        fields: the requested fields, or None to select the default fields.
        default_field_names: names of the fields selected when no fields are requested,
                             usually all the columns of the table.

    Returns:
        SelectionSetNode selecting the requested fields

    Raises:
        BuildError if the fields specification is malformed or selects nothing
    """
    if fields is None:
        if not default_field_names:
            raise BuildError(
                "No fields were requested, and there are no default fields to select."
            )
        return SelectionSetNode(
            selections=tuple(_make_field_node(field_name) for field_name in default_field_names)
        )
    return _compile_fields_spec(fields)
