# Copyright 2019-present Kensho Technologies, LLC.
"""Names of the operations, variables and fragments of a composed document.

Every build in a composed document has an operation index: its position among all builds of
the document. Variable names end with "_<operation index>", and the final underscore-separated
segment of a name is unambiguous, so variables of different builds can never collide. Within one
build, the argument names are distinct, so its variable names are distinct as well.

Fragment names are derived from the GraphQL type name of the table and an optional caller-supplied
discriminator, so that identical selections of the same table share one fragment. When a build
without a discriminator selects a different shape than an earlier build of the same table, the
composer suffixes its fragment name with the operation index. Names without a suffix always end in
"_fragment" and suffixed names always end in digits, so the two kinds never collide. The composer
only rejects a document in which a caller-supplied discriminator binds one fragment name to two
different selections.
"""
from typing import Iterable, Optional

from ..exceptions import BuildError
from ..global_utils import is_valid_graphql_name


OPERATION_NAME_SEPARATOR = "_"


def validate_name(name: str, description: str) -> str:
    """Return the name if it may be used as a GraphQL name, raising BuildError otherwise."""
    if not isinstance(name, str) or not is_valid_graphql_name(name):
        raise BuildError(
            "Invalid {}: {!r}. Names must match /[_A-Za-z][_0-9A-Za-z]*/.".format(
                description, name
            )
        )
    return name


def make_operation_name(alias: str, action: Optional[str] = None) -> str:
    """Return the operation name of a single build: the alias, prefixed by the mutation action."""
    if action is None:
        return alias
    return "{}_{}".format(action, alias)


def make_composite_operation_name(operation_names: Iterable[str]) -> str:
    """Return the name of a document made of builds with the given operation names, in order."""
    return OPERATION_NAME_SEPARATOR.join(operation_names)


def make_variable_name(
    alias: str, operation_index: int, argument_name: str, action: Optional[str] = None
) -> str:
    """Return the name of the variable bound to an argument of the build at operation_index."""
    if operation_index < 0:
        raise AssertionError(
            "Expected a non-negative operation index, got {}".format(operation_index)
        )

    # Mutation argument slots such as "_set" would otherwise produce doubled underscores. Read
    # arguments include primary key column names, which must be kept as they are to stay distinct.
    argument_part = argument_name.lstrip("_") if action is not None else argument_name
    parts = [alias] + ([action] if action is not None else []) + [argument_part]
    return "{}_{}".format("_".join(parts), operation_index)


def make_fragment_name(
    type_name: str, discriminator: Optional[str] = None, operation_index: Optional[int] = None
) -> str:
    """Return the name of the fragment holding the selection of a table.

    Args:
        type_name: GraphQL type name of the table
        discriminator: optional caller-supplied name distinguishing selections of the same table
        operation_index: if given, the index of the build whose selection differs from an
                         earlier selection of the same table under the unsuffixed name
    """
    if discriminator is None:
        fragment_name = "{}_fragment".format(type_name)
    else:
        validate_name(discriminator, "fragment discriminator")
        fragment_name = "{}_{}_fragment".format(type_name, discriminator)

    if operation_index is None:
        return fragment_name
    if operation_index < 0:
        raise AssertionError(
            "Expected a non-negative operation index, got {}".format(operation_index)
        )
    return "{}_{}".format(fragment_name, operation_index)
