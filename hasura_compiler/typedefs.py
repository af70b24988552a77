# Copyright 2021-present Kensho Technologies, LLC.
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from .exceptions import HasuraCompilerError


# Runs one information_schema query and returns its rows as dicts.
# Implementations signal failure by raising TransportError.
IntrospectionFunc = Callable[[str], List[Mapping[str, Any]]]

# Runs one GraphQL document with its variables and returns the "data" object of the response.
# Implementations signal failure by raising TransportError.
ExecutionFunc = Callable[[str, Dict[str, Any]], Mapping[str, Any]]

# Receives (error, data) for every message of a live subscription. Exactly one is not None.
MessageCallback = Callable[[Optional[Exception], Any], None]

# Tears down a live subscription. Must be safe to call more than once.
CancelFunc = Callable[[], None]

# Opens a live subscription for a GraphQL document with its variables, delivering every message
# to the callback until the returned CancelFunc is called.
SubscriptionFunc = Callable[[str, Dict[str, Any], MessageCallback], CancelFunc]


class OperationResult(NamedTuple):
    """The outcome of a client operation: exactly one of "error" and "data" is meaningful.

    Unpacks as (error, data), so callers can write `error, data = client.query(...)`.
    """

    error: Optional[HasuraCompilerError]
    data: Any

    @property
    def ok(self) -> bool:
        """Return True if the operation succeeded."""
        return self.error is None
