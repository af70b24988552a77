# Copyright 2019-present Kensho Technologies, LLC.
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Sequence, Tuple

from ..exceptions import MalformedResponseError


PATH_SEPARATOR = "."

# A path into a nested response object, as the ordered sequence of keys to follow.
ResponsePath = Tuple[str, ...]


def parse_dotted_path(dotted_path: str) -> ResponsePath:
    """Return the path described by the dot-separated string, e.g. "user.insert"."""
    path = tuple(dotted_path.split(PATH_SEPARATOR))
    if not all(path):
        raise AssertionError("Path {!r} contains an empty segment.".format(dotted_path))
    return path


def format_dotted_path(path: ResponsePath) -> str:
    """Return the dot-separated string form of the path."""
    return PATH_SEPARATOR.join(path)


@dataclass(frozen=True)
class FlatPathMapping:
    """Where a mutation result appears in the response, and where the caller expects it."""

    caller_path: ResponsePath  # e.g. ("user", "insert")
    endpoint_path: ResponsePath  # e.g. ("insert_user", "returning")

    @classmethod
    def from_dotted_paths(cls, caller_path: str, endpoint_path: str) -> "FlatPathMapping":
        """Create a FlatPathMapping from dot-separated path strings."""
        return cls(parse_dotted_path(caller_path), parse_dotted_path(endpoint_path))

    def __str__(self) -> str:
        """Return a human-readable representation of the mapping."""
        return "{} <- {}".format(
            format_dotted_path(self.caller_path), format_dotted_path(self.endpoint_path)
        )


def resolve_path(response: Any, path: Sequence[str]) -> Any:
    """Return the value found by following the path from the root of the response.

    Raises:
        MalformedResponseError if any segment of the path is missing from the response
    """
    current = response
    for depth, segment in enumerate(path):
        if not isinstance(current, Mapping) or segment not in current:
            raise MalformedResponseError(
                "Expected the response to contain {!r}, but {!r} was not found under {!r}. "
                "Response: {!r}".format(
                    format_dotted_path(tuple(path)),
                    segment,
                    format_dotted_path(tuple(path[:depth])) or "<root>",
                    response,
                )
            )
        current = current[segment]
    return current


def assign_path(target: MutableMapping[str, Any], path: Sequence[str], value: Any) -> None:
    """Place the value into target at the path, creating intermediate dicts as needed."""
    if not path:
        raise AssertionError("Cannot assign a value to an empty path.")

    current = target
    for segment in path[:-1]:
        current = current.setdefault(segment, {})
        if not isinstance(current, MutableMapping):
            raise AssertionError(
                "Path {!r} passes through the non-dict value {!r}.".format(
                    format_dotted_path(tuple(path)), current
                )
            )
    current[path[-1]] = value


def remap_response(
    flat_paths: Iterable[FlatPathMapping], response: Mapping[str, Any]
) -> Dict[str, Any]:
    """Return a new result object with every endpoint-path value moved to its caller path.

    For example, given the mapping ("user", "insert") <- ("insert_user", "returning") and
    the response {"insert_user": {"returning": [{"id": 1}]}}, the result is
    {"user": {"insert": [{"id": 1}]}}.

    Raises:
        MalformedResponseError if an endpoint path cannot be found in the response
    """
    result: Dict[str, Any] = {}
    for flat_path in flat_paths:
        value = resolve_path(response, flat_path.endpoint_path)
        assign_path(result, flat_path.caller_path, value)
    return result


def flatten_single_result(
    result_keys: Sequence[str], response: Mapping[str, Any], flatten_single: bool = True
) -> Any:
    """Return the value of the only result key, if there is one and flattening is enabled.

    Otherwise, the whole response is returned unchanged.

    Raises:
        MalformedResponseError if the only result key is missing from the response
    """
    if flatten_single and len(result_keys) == 1:
        return resolve_path(response, result_keys)
    return response
