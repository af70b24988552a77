# Copyright 2017-present Kensho Technologies, LLC.
from graphql import parse, print_ast


def pretty_print_graphql(query: str, use_four_spaces: bool = True) -> str:
    """Take a GraphQL document, pretty print it, and return it."""
    output = print_ast(parse(query, no_location=True))

    # Using four spaces for indentation makes it easier to edit in
    # Python source files.
    if use_four_spaces:
        return fix_indentation_depth(output)
    return output


def fix_indentation_depth(query: str) -> str:
    """Make indentation use 4 spaces, rather than the 2 spaces GraphQL normally uses."""
    lines = query.split("\n")
    final_lines = []

    for line in lines:
        consecutive_spaces = 0
        for char in line:
            if char == " ":
                consecutive_spaces += 1
            else:
                break

        if consecutive_spaces % 2 != 0:
            raise AssertionError(
                "Indentation was not a multiple of two: {}".format(consecutive_spaces)
            )

        final_lines.append(("  " * consecutive_spaces) + line[consecutive_spaces:])

    return "\n".join(final_lines)
