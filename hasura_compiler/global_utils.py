# Copyright 2017-present Kensho Technologies, LLC.
import re
from typing import Dict, TypeVar


# https://spec.graphql.org/June2018/#Name
GRAPHQL_NAME_PATTERN = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")


KT = TypeVar("KT")
VT = TypeVar("VT")


def merge_non_overlapping_dicts(merge_target: Dict[KT, VT], new_data: Dict[KT, VT]) -> Dict[KT, VT]:
    """Produce the merged result of two dicts that are supposed to not overlap."""
    result = dict(merge_target)

    for key, value in new_data.items():
        if key in merge_target:
            raise AssertionError(
                'Overlapping key "{}" found in dicts that are supposed '
                "to not overlap. Values: {} {}".format(key, merge_target[key], value)
            )

        result[key] = value

    return result


def is_valid_graphql_name(name: str) -> bool:
    """Return True if the string may be used as a GraphQL name, e.g. of a field or variable."""
    return bool(GRAPHQL_NAME_PATTERN.match(name))
