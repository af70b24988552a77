# Copyright 2019-present Kensho Technologies, LLC.
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from graphql import parse_type, print_ast
from graphql.language.ast import (
    ArgumentNode,
    FieldNode,
    FragmentDefinitionNode,
    NamedTypeNode,
    SelectionSetNode,
    VariableDefinitionNode,
    VariableNode,
)

from ..ast_manipulation import (
    get_ast_response_key,
    make_fragment_spread_selection,
    make_name_node,
    make_variable_argument,
    rename_fragment_spreads,
)
from ..exceptions import BuildError, NotFoundError, UnknownTableError
from ..schema.catalog import Catalog, Table, TableTypeNames
from .naming import make_fragment_name, make_operation_name, make_variable_name, validate_name
from .request_params import MutationActionParams, ReadParams, WriteParams
from .response_remapping import FlatPathMapping
from .selections import FieldsSpec, compile_field_selection


# Name of the field of mutation results that holds the affected rows.
RETURNING_FIELD_NAME = "returning"

# The GraphQL type of each argument is determined by the argument name alone.
_READ_ARGUMENT_TYPES: Dict[str, Callable[[TableTypeNames], str]] = {
    "where": lambda type_names: type_names.bool_exp,
    "order_by": lambda type_names: "[{}!]".format(type_names.order_by),
    "limit": lambda _: "Int",
    "offset": lambda _: "Int",
    "distinct_on": lambda type_names: "[{}!]".format(type_names.select_column),
}

_MUTATION_ARGUMENT_TYPES: Dict[str, Callable[[TableTypeNames], str]] = {
    "objects": lambda type_names: "[{}!]!".format(type_names.insert_input),
    "on_conflict": lambda type_names: type_names.on_conflict,
    "where": lambda type_names: "{}!".format(type_names.bool_exp),
    "_set": lambda type_names: type_names.set_input,
    "_inc": lambda type_names: type_names.inc_input,
}


class NamedFragment(NamedTuple):
    """A named selection-set fragment, as text."""

    fragment_name: str
    fragment_text: str


@dataclass(frozen=True)
class OperationBuildResult:
    """The contribution of a single read or mutation action of one table to a document."""

    operation_name: str
    variable_definitions: Tuple[VariableDefinitionNode, ...]
    variable_bindings: Dict[str, Any]
    root_field: FieldNode
    fragment_definition: FragmentDefinitionNode

    # Only set for mutations: where the result lands in the response vs. where the caller wants it.
    flat_path_mapping: Optional[FlatPathMapping] = None

    # The caller-supplied fragment discriminator, if any.
    fragment_discriminator: Optional[str] = None

    @property
    def response_key(self) -> str:
        """Return the key under which the result of the root field appears in the response."""
        return get_ast_response_key(self.root_field)

    @property
    def variable_declarations(self) -> Tuple[str, ...]:
        """Return the variable declarations as text, e.g. "$user_limit_0: Int"."""
        return tuple(print_ast(definition) for definition in self.variable_definitions)

    @property
    def field_selection(self) -> str:
        """Return the text of the root field selection."""
        return print_ast(self.root_field)

    @property
    def fragment_name(self) -> str:
        """Return the name of the fragment holding the selected fields."""
        return self.fragment_definition.name.value

    @property
    def named_fragment(self) -> NamedFragment:
        """Return the name and text of the fragment holding the selected fields."""
        return NamedFragment(self.fragment_name, print_ast(self.fragment_definition))

    @property
    def fragment_type_name(self) -> str:
        """Return the GraphQL type name the fragment applies to."""
        return self.fragment_definition.type_condition.name.value

    def with_fragment_name(self, fragment_name: str) -> "OperationBuildResult":
        """Return a copy of the build whose fragment, and the spread of it, use the given name."""
        old_fragment_name = self.fragment_name
        fragment_definition = FragmentDefinitionNode(
            name=make_name_node(fragment_name),
            type_condition=self.fragment_definition.type_condition,
            variable_definitions=self.fragment_definition.variable_definitions,
            directives=self.fragment_definition.directives,
            selection_set=self.fragment_definition.selection_set,
        )
        root_field = rename_fragment_spreads(self.root_field, {old_fragment_name: fragment_name})
        return replace(self, root_field=root_field, fragment_definition=fragment_definition)


def _get_table(catalog: Catalog, table_name: str) -> Table:
    """Return the named table from the catalog, raising UnknownTableError if it does not exist."""
    try:
        table = catalog.lookup(table_name)
    except NotFoundError as e:
        raise UnknownTableError(
            "Table {} was requested, but it is not in the catalog. Known tables: {}.".format(
                table_name, list(catalog.table_names)
            )
        ) from e

    validate_name(table.graphql_name, "table name")
    return table


def _make_variable_definition(variable_name: str, type_string: str) -> VariableDefinitionNode:
    """Return the declaration of a variable with the given name and GraphQL type."""
    return VariableDefinitionNode(
        variable=VariableNode(name=make_name_node(variable_name)),
        type=parse_type(type_string, no_location=True),
        directives=(),
    )


def _make_fragment_definition(
    table: Table, fields: Optional[FieldsSpec], discriminator: Optional[str]
) -> FragmentDefinitionNode:
    """Return the fragment selecting the requested fields of the table."""
    return FragmentDefinitionNode(
        name=make_name_node(make_fragment_name(table.graphql_name, discriminator)),
        type_condition=NamedTypeNode(name=make_name_node(table.graphql_name)),
        variable_definitions=(),
        directives=(),
        selection_set=compile_field_selection(fields, table.field_names),
    )


def _bind_arguments(
    typed_arguments: Sequence[Tuple[str, str, Any]],
    make_variable: Callable[[str], str],
) -> Tuple[List[ArgumentNode], List[VariableDefinitionNode], Dict[str, Any]]:
    """Bind each (argument name, GraphQL type, value) triple to its own variable.

    Returns:
        tuple (argument nodes, variable definitions, variable name -> value)
    """
    argument_nodes = []
    variable_definitions = []
    variable_bindings = {}
    for argument_name, argument_type, value in typed_arguments:
        variable_name = make_variable(argument_name)
        if variable_name in variable_bindings:
            raise AssertionError(
                "Arguments {} map to the same variable {}.".format(
                    [name for name, _, _ in typed_arguments], variable_name
                )
            )
        argument_nodes.append(make_variable_argument(argument_name, variable_name))
        variable_definitions.append(_make_variable_definition(variable_name, argument_type))
        variable_bindings[variable_name] = value
    return argument_nodes, variable_definitions, variable_bindings


def _get_primary_key_arguments(table: Table, params: ReadParams) -> List[Tuple[str, str, Any]]:
    """Return the (column name, GraphQL type, value) triples of a primary key lookup."""
    if not table.primary_key:
        raise BuildError(
            "A primary key lookup was requested for {}, but table {} has no primary "
            "key.".format(params.alias, table.name)
        )
    if set(params.pk) != set(table.primary_key):
        raise BuildError(
            "The primary key lookup for {} must specify exactly the columns {}, but got "
            "{}.".format(params.alias, list(table.primary_key), sorted(params.pk))
        )

    typed_arguments = []
    for column_name in table.primary_key:
        field = table.fields.get(column_name)
        if field is None:
            raise BuildError(
                "Primary key column {} of table {} is not one of its columns.".format(
                    column_name, table.name
                )
            )
        typed_arguments.append(
            (column_name, "{}!".format(field.graphql_type_name), params.pk[column_name])
        )
    return typed_arguments


def _make_alias_node(response_key: str, field_name: str):
    """Return the alias NameNode for a root field, or None if the response key is the field."""
    if response_key == field_name:
        return None
    return make_name_node(response_key)


def build_read_operation(
    catalog: Catalog, params: ReadParams, operation_index: int
) -> OperationBuildResult:
    """Build the query or subscription contribution of one table.

    Every filter and pagination argument present in the params is bound to its own variable,
    and omitted arguments do not appear at all. The selected fields are placed in a named
    fragment, spread into the root field.

    Args:
        catalog: finalized Catalog containing the table
        params: the read parameters of the table
        operation_index: position of this build among all builds of the document

    Returns:
        OperationBuildResult without a flat path mapping

    Raises:
        - UnknownTableError if the table is not in the catalog
        - BuildError if the params are malformed
    """
    table = _get_table(catalog, params.table_name)
    type_names = table.type_names

    if params.pk is not None:
        root_field_name = type_names.by_pk_field
        typed_arguments = _get_primary_key_arguments(table, params)
    else:
        root_field_name = table.graphql_name
        typed_arguments = [
            (argument_name, _READ_ARGUMENT_TYPES[argument_name](type_names), value)
            for argument_name, value in params.arguments
        ]

    argument_nodes, variable_definitions, variable_bindings = _bind_arguments(
        typed_arguments,
        lambda argument_name: make_variable_name(params.alias, operation_index, argument_name),
    )

    fragment_definition = _make_fragment_definition(table, params.fields, params.fragment)
    root_field = FieldNode(
        alias=_make_alias_node(params.alias, root_field_name),
        name=make_name_node(root_field_name),
        arguments=tuple(argument_nodes),
        directives=(),
        selection_set=make_fragment_spread_selection(fragment_definition.name.value),
    )

    return OperationBuildResult(
        operation_name=make_operation_name(params.alias),
        variable_definitions=tuple(variable_definitions),
        variable_bindings=variable_bindings,
        root_field=root_field,
        fragment_definition=fragment_definition,
        fragment_discriminator=params.fragment,
    )


def _build_mutation_action(
    table: Table, alias: str, operation: MutationActionParams, operation_index: int
) -> OperationBuildResult:
    """Build the contribution of a single insert, update or delete of one table."""
    action = operation.action
    type_names = table.type_names

    root_field_name = "{}_{}".format(action, table.graphql_name)
    response_key = make_operation_name(alias, action)

    typed_arguments = [
        (argument_name, _MUTATION_ARGUMENT_TYPES[argument_name](type_names), value)
        for argument_name, value in operation.arguments
    ]
    argument_nodes, variable_definitions, variable_bindings = _bind_arguments(
        typed_arguments,
        lambda argument_name: make_variable_name(alias, operation_index, argument_name, action),
    )

    fragment_definition = _make_fragment_definition(table, operation.fields, operation.fragment)
    returning_field = FieldNode(
        name=make_name_node(RETURNING_FIELD_NAME),
        arguments=(),
        directives=(),
        selection_set=make_fragment_spread_selection(fragment_definition.name.value),
    )
    root_field = FieldNode(
        alias=_make_alias_node(response_key, root_field_name),
        name=make_name_node(root_field_name),
        arguments=tuple(argument_nodes),
        directives=(),
        selection_set=SelectionSetNode(selections=(returning_field,)),
    )

    return OperationBuildResult(
        operation_name=response_key,
        variable_definitions=tuple(variable_definitions),
        variable_bindings=variable_bindings,
        root_field=root_field,
        fragment_definition=fragment_definition,
        flat_path_mapping=FlatPathMapping(
            caller_path=(alias, action), endpoint_path=(response_key, RETURNING_FIELD_NAME)
        ),
        fragment_discriminator=operation.fragment,
    )


def build_write_operations(
    catalog: Catalog, params: WriteParams, first_operation_index: int
) -> List[OperationBuildResult]:
    """Build the mutation contributions of one table: one build per insert, update or delete.

    Args:
        catalog: finalized Catalog containing the table
        params: the mutation parameters of the table
        first_operation_index: position of the first build of this table among all builds
                               of the document. The builds of the table take consecutive indices.

    Returns:
        list of OperationBuildResult, in the order insert, update, delete. Each has a flat path
        mapping from "<alias>.<action>" to "<action>_<alias>.returning".

    Raises:
        - UnknownTableError if the table is not in the catalog
        - BuildError if the params are malformed
    """
    table = _get_table(catalog, params.table_name)
    return [
        _build_mutation_action(table, params.alias, operation, first_operation_index + offset)
        for offset, operation in enumerate(params.operations)
    ]
