# Copyright 2017-present Kensho Technologies, LLC.
from typing import Any, List, Optional


class HasuraCompilerError(Exception):
    """Generic error when compiling or running batched GraphQL operations."""


class ConfigurationError(HasuraCompilerError):
    """Exception raised when a required client setting is missing or malformed."""


class CatalogNotInitializedError(HasuraCompilerError):
    """Exception raised when the table catalog is used before introspection has completed."""


class NotFoundError(HasuraCompilerError):
    """Exception raised when a catalog lookup names a table that does not exist."""


class BuildError(HasuraCompilerError):
    """Exception raised when the provided parameters cannot be compiled into a GraphQL document.

    This could be due to many reasons, such as:
    - the parameters for a table contain an unexpected key;
    - the fields description contains an unsupported value, or selection text that does not parse;
    - the same fragment name is bound to two different selections within one document;
    - a primary key lookup does not supply exactly the columns of the table's primary key.
    """


class UnknownTableError(NotFoundError, BuildError):
    """Exception raised when the parameters reference a table that is not in the catalog."""


class TransportError(HasuraCompilerError):
    """Exception raised when a transport fails to introspect, execute or subscribe.

    The underlying failure, if any, is available as __cause__. When the GraphQL endpoint itself
    reported errors, they are available unchanged in the "errors" attribute.
    """

    def __init__(self, message: str, errors: Optional[List[Any]] = None) -> None:
        """Create a new TransportError, with the endpoint-reported errors if there were any."""
        super().__init__(message)
        self.errors = list(errors) if errors else []


class MalformedResponseError(HasuraCompilerError):
    """Exception raised when a response does not contain a path the compiled document expects.

    This indicates a mismatch between the compiled document and the shape of the response,
    and is a bug rather than a user error.
    """
