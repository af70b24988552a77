# Copyright 2019-present Kensho Technologies, LLC.
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import funcy
from graphql import print_ast
from graphql.language.ast import (
    DocumentNode,
    FragmentDefinitionNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
)

from ..ast_manipulation import make_name_node
from ..exceptions import BuildError
from ..global_utils import merge_non_overlapping_dicts
from ..query_formatting.graphql_formatting import pretty_print_graphql
from ..schema.catalog import Catalog
from .naming import make_composite_operation_name, make_fragment_name
from .operation_builder import (
    NamedFragment,
    OperationBuildResult,
    build_read_operation,
    build_write_operations,
)
from .request_params import parse_read_params, parse_write_params
from .response_remapping import FlatPathMapping


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledDocument:
    """A single GraphQL document covering every requested table, ready to be executed."""

    operation_type: OperationType
    document: DocumentNode
    variables: Dict[str, Any]

    # Response keys of the root fields, in the order the caller supplied the tables.
    result_keys: Tuple[str, ...]

    # Only set for mutations: how to restore the caller's paths from the response.
    flat_paths: Tuple[FlatPathMapping, ...] = ()

    @property
    def operation_name(self) -> str:
        """Return the name of the single operation of the document."""
        return self.document.definitions[-1].name.value

    @property
    def text(self) -> str:
        """Return the document as GraphQL text."""
        return print_ast(self.document)

    @property
    def pretty_text(self) -> str:
        """Return the document as GraphQL text indented with four spaces, for display."""
        return pretty_print_graphql(self.text)


def _resolve_fragment_names(
    builds: Sequence[OperationBuildResult],
) -> Tuple[List[OperationBuildResult], List[FragmentDefinitionNode]]:
    """Return the builds with unambiguous fragment names, and their distinct fragment definitions.

    Builds selecting the same shape of the same table share one fragment. A build without a
    caller-supplied discriminator whose selection differs from an earlier fragment of the same
    name gets a fragment name suffixed with its operation index.

    Returns:
        tuple (builds in the original order, fragment definitions in order of first occurrence)

    Raises:
        BuildError if a caller-supplied discriminator names a fragment that is already bound to a
        different selection
    """
    fragment_text_by_name: Dict[str, str] = {}
    resolved_name_by_fragment: Dict[NamedFragment, str] = {}
    resolved_builds = []
    fragment_definitions = []
    for operation_index, build in enumerate(builds):
        named_fragment = build.named_fragment
        fragment_name, fragment_text = named_fragment

        resolved_name = resolved_name_by_fragment.get(named_fragment)
        is_new_fragment = resolved_name is None
        if resolved_name is None:
            existing_text = fragment_text_by_name.get(fragment_name)
            if existing_text is None:
                resolved_name = fragment_name
            elif build.fragment_discriminator is None:
                resolved_name = make_fragment_name(
                    build.fragment_type_name, operation_index=operation_index
                )
            else:
                raise BuildError(
                    "Fragment {} is defined twice with different selections. Pass a distinct "
                    '"fragment" name for one of them. Selections: {} and {}'.format(
                        fragment_name, existing_text, fragment_text
                    )
                )
            resolved_name_by_fragment[named_fragment] = resolved_name

        if resolved_name != fragment_name:
            build = build.with_fragment_name(resolved_name)
        if is_new_fragment:
            fragment_text_by_name[resolved_name] = build.named_fragment.fragment_text
            fragment_definitions.append(build.fragment_definition)
        resolved_builds.append(build)
    return resolved_builds, fragment_definitions


def compose_document(
    builds: Sequence[OperationBuildResult], operation_type: OperationType
) -> CompiledDocument:
    """Merge the per-table builds into one document of the given operation type.

    The fragments come first, followed by a single operation named after all the builds, with
    all their variables and one root selection per build, in the order of the builds.

    Raises:
        BuildError if there is nothing to compose, or if fragment definitions conflict
    """
    if not builds:
        raise BuildError(
            "Cannot compose a {} document without any operations.".format(operation_type.value)
        )

    builds, fragment_definitions = _resolve_fragment_names(builds)

    variable_definitions = funcy.lcat(build.variable_definitions for build in builds)
    variables: Dict[str, Any] = {}
    for build in builds:
        variables = merge_non_overlapping_dicts(variables, build.variable_bindings)

    operation_name = make_composite_operation_name(build.operation_name for build in builds)
    operation_definition = OperationDefinitionNode(
        operation=operation_type,
        name=make_name_node(operation_name),
        variable_definitions=tuple(variable_definitions),
        directives=(),
        selection_set=SelectionSetNode(selections=tuple(build.root_field for build in builds)),
    )

    result_keys = tuple(build.response_key for build in builds)
    if len(set(result_keys)) != len(result_keys):
        raise AssertionError("Expected unique response keys, got {}".format(result_keys))

    return CompiledDocument(
        operation_type=operation_type,
        document=DocumentNode(definitions=tuple(fragment_definitions) + (operation_definition,)),
        variables=variables,
        result_keys=result_keys,
        flat_paths=tuple(
            build.flat_path_mapping for build in builds if build.flat_path_mapping is not None
        ),
    )


def compose_mutation_document(builds: Sequence[OperationBuildResult]) -> CompiledDocument:
    """Merge the mutation builds, in order, into one mutation document with their flat paths."""
    for build in builds:
        if build.flat_path_mapping is None:
            raise AssertionError(
                "Mutation build {} has no flat path mapping.".format(build.operation_name)
            )
    return compose_document(builds, OperationType.MUTATION)


def compile_read_document(
    catalog: Catalog,
    params_by_table: Mapping[str, Any],
    operation_type: OperationType = OperationType.QUERY,
) -> CompiledDocument:
    """Compile the query or subscription of several tables into a single document.

    Args:
        catalog: finalized Catalog of the tables exposed by the endpoint
        params_by_table: dict of result key -> read parameters. The result key is the table name,
                         unless the parameters name the table explicitly under "table".
        operation_type: OperationType.QUERY or OperationType.SUBSCRIPTION

    Returns:
        CompiledDocument whose root selections follow the order of params_by_table

    Raises:
        - UnknownTableError if a requested table is not in the catalog
        - BuildError if the params are malformed
    """
    if operation_type == OperationType.MUTATION:
        raise AssertionError("Mutations must be compiled with compile_write_document.")
    if not isinstance(params_by_table, Mapping):
        raise BuildError("Expected a dict of tables to query, got {!r}.".format(params_by_table))

    builds = [
        build_read_operation(catalog, parse_read_params(alias, raw_params), operation_index)
        for operation_index, (alias, raw_params) in enumerate(params_by_table.items())
    ]
    compiled = compose_document(builds, operation_type)
    logger.debug("Compiled %s document:\n%s", operation_type.value, compiled.text)
    return compiled


def compile_write_document(
    catalog: Catalog, params_by_table: Mapping[str, Any]
) -> CompiledDocument:
    """Compile the mutations of several tables into a single mutation document.

    Each table may contribute an insert, an update and a delete; all of them become separate
    root selections, ordered by table in the order of params_by_table, then insert, update, delete.

    Raises:
        - UnknownTableError if a requested table is not in the catalog
        - BuildError if the params are malformed
    """
    if not isinstance(params_by_table, Mapping):
        raise BuildError("Expected a dict of tables to mutate, got {!r}.".format(params_by_table))

    builds: List[OperationBuildResult] = []
    for alias, raw_params in params_by_table.items():
        builds.extend(
            build_write_operations(catalog, parse_write_params(alias, raw_params), len(builds))
        )
    compiled = compose_mutation_document(builds)
    logger.debug("Compiled mutation document:\n%s", compiled.text)
    return compiled
