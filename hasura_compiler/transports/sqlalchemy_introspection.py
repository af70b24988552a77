# Copyright 2019-present Kensho Technologies, LLC.
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import TransportError


class SQLAlchemyIntrospectionTransport:
    """Runs introspection SQL directly against the database behind the GraphQL endpoint."""

    def __init__(self, engine: Engine) -> None:
        """Create a transport running queries on connections of the SQLAlchemy Engine."""
        self.engine = engine

    def __call__(self, sql_text: str) -> List[Dict[str, Any]]:
        """Run the SQL, returning its rows as dicts.

        Raises:
            TransportError if the query fails
        """
        try:
            with self.engine.connect() as connection:
                result = connection.execute(text(sql_text))
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            raise TransportError("Introspection query failed: {}".format(e)) from e
