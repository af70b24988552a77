# Copyright 2021-present Kensho Technologies, LLC.
from .http import HasuraSqlTransport, HttpGraphQLTransport  # noqa
from .sqlalchemy_introspection import SQLAlchemyIntrospectionTransport  # noqa
