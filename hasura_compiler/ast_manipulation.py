# Copyright 2019-present Kensho Technologies, LLC.
from typing import Any, Dict

from graphql.error import GraphQLSyntaxError
from graphql.language.ast import (
    ArgumentNode,
    DocumentNode,
    FieldNode,
    FragmentSpreadNode,
    NameNode,
    Node,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    VariableNode,
)
from graphql.language.parser import parse
from graphql.language.visitor import Visitor, visit

from .exceptions import BuildError


def get_ast_field_name(ast):
    """Return the field name for the given AST node."""
    return ast.name.value


def get_ast_response_key(ast: FieldNode) -> str:
    """Return the key under which the result of the given field appears in the response."""
    if ast.alias is not None:
        return ast.alias.value
    return get_ast_field_name(ast)


def safe_parse_graphql(graphql_string: str) -> DocumentNode:
    """Return an AST representation of the given GraphQL input, reraising GraphQL library errors."""
    try:
        ast = parse(graphql_string, no_location=True)
    except GraphQLSyntaxError as e:
        raise BuildError(e) from e

    return ast


def parse_selection_set(selection_text: str) -> SelectionSetNode:
    """Parse selection-set text, with or without the enclosing braces, into a SelectionSetNode."""
    selection_text = selection_text.strip()
    if not selection_text.startswith("{"):
        selection_text = "{" + selection_text + "}"

    document_ast = safe_parse_graphql(selection_text)
    if len(document_ast.definitions) != 1:
        raise BuildError(
            "Expected a single selection set, but found {} definitions in: {}".format(
                len(document_ast.definitions), selection_text
            )
        )

    definition_ast = document_ast.definitions[0]
    if (
        not isinstance(definition_ast, OperationDefinitionNode)
        or definition_ast.operation != OperationType.QUERY
        or definition_ast.name is not None
    ):
        raise BuildError("Expected a bare selection set, but got: {}".format(selection_text))

    return definition_ast.selection_set


def make_name_node(name: str) -> NameNode:
    """Return a NameNode with the given value."""
    return NameNode(value=name)


def make_variable_argument(argument_name: str, variable_name: str) -> ArgumentNode:
    """Return an argument node that binds the argument to the variable of the given name."""
    return ArgumentNode(
        name=make_name_node(argument_name),
        value=VariableNode(name=make_name_node(variable_name)),
    )


def make_fragment_spread_selection(fragment_name: str) -> SelectionSetNode:
    """Return a selection set containing only a spread of the named fragment."""
    return SelectionSetNode(
        selections=(FragmentSpreadNode(name=make_name_node(fragment_name), directives=()),)
    )


class RenameFragmentSpreadsVisitor(Visitor):
    """Replace spreads of the fragments named in the rename dict with spreads of the new names."""

    def __init__(self, rename_dict: Dict[str, str]) -> None:
        """Create a visitor renaming fragment spreads according to the dict of old -> new name."""
        super().__init__()
        self.rename_dict = rename_dict

    def enter_fragment_spread(self, node: FragmentSpreadNode, *args: Any) -> Any:
        """Return a renamed copy of the spread, or None to leave it unchanged."""
        new_name = self.rename_dict.get(node.name.value)
        if new_name is None:
            return None
        return FragmentSpreadNode(name=make_name_node(new_name), directives=node.directives)


def rename_fragment_spreads(ast: Node, rename_dict: Dict[str, str]) -> Any:
    """Return a copy of the AST in which fragment spreads are renamed, leaving the input as is."""
    return visit(ast, RenameFragmentSpreadsVisitor(rename_dict))
