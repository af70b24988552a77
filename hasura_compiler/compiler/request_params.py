# Copyright 2019-present Kensho Technologies, LLC.
"""The parameters of the reads and writes of a single table.

Callers describe requests as plain dicts keyed by table (or alias); these are parsed into closed
parameter classes, so that the builder can match exhaustively on which arguments and which
sub-operations are present. Absent and None-valued entries are equivalent.
"""
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from ..exceptions import BuildError
from .naming import validate_name
from .selections import FieldsSpec


# Arguments of read operations, in the order in which they appear in the document.
READ_ARGUMENT_NAMES = ("where", "order_by", "limit", "offset", "distinct_on")

INSERT_ACTION = "insert"
UPDATE_ACTION = "update"
DELETE_ACTION = "delete"

# Mutation actions, in the order in which the builds of a single table appear in the document.
MUTATION_ACTIONS = (INSERT_ACTION, UPDATE_ACTION, DELETE_ACTION)

_TABLE_KEY_ALIASES = {"tableName": "table", "table_name": "table"}
_SELECTION_KEYS = frozenset({"fields", "fragment"})

_READ_KEY_ALIASES = dict(_TABLE_KEY_ALIASES, orderBy="order_by", distinctOn="distinct_on")
_READ_KEYS = frozenset(READ_ARGUMENT_NAMES) | _SELECTION_KEYS | {"pk", "table"}

_WRITE_KEYS = frozenset(MUTATION_ACTIONS) | {"table"}

_INSERT_KEYS = frozenset({"objects", "on_conflict"}) | _SELECTION_KEYS
_UPDATE_KEY_ALIASES = {"set": "_set", "inc": "_inc"}
_UPDATE_KEYS = frozenset({"where", "_set", "_inc"}) | _SELECTION_KEYS
_DELETE_KEYS = frozenset({"where"}) | _SELECTION_KEYS

ArgumentList = Tuple[Tuple[str, Any], ...]


@dataclass(frozen=True)
class ReadParams:
    """Parameters of a query or subscription on one table."""

    alias: str  # key of the result in the response, and in the caller's result
    table_name: str
    where: Optional[Mapping[str, Any]] = None
    order_by: Any = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    distinct_on: Any = None
    pk: Optional[Mapping[str, Any]] = None  # column -> value, selects one row by primary key
    fields: Optional[FieldsSpec] = None
    fragment: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate fields."""
        if self.pk is not None:
            if not isinstance(self.pk, Mapping) or not self.pk:
                raise BuildError(
                    "Expected a non-empty dict of primary key column to value for {}, got "
                    "{!r}.".format(self.alias, self.pk)
                )
            if self.arguments:
                raise BuildError(
                    "A primary key lookup on {} cannot be combined with the arguments "
                    "{}.".format(self.alias, [name for name, _ in self.arguments])
                )

    @property
    def arguments(self) -> ArgumentList:
        """Return the (argument name, value) pairs of the present filter and pagination args."""
        return tuple(
            (argument_name, getattr(self, argument_name))
            for argument_name in READ_ARGUMENT_NAMES
            if getattr(self, argument_name) is not None
        )


@dataclass(frozen=True)
class InsertParams:
    """Parameters of an insert into one table."""

    action: ClassVar[str] = INSERT_ACTION

    objects: Tuple[Mapping[str, Any], ...]
    on_conflict: Optional[Mapping[str, Any]] = None
    fields: Optional[FieldsSpec] = None
    fragment: Optional[str] = None

    @property
    def arguments(self) -> ArgumentList:
        """Return the (argument name, value) pairs of the insert."""
        arguments: Tuple[Tuple[str, Any], ...] = (("objects", list(self.objects)),)
        if self.on_conflict is not None:
            arguments += (("on_conflict", self.on_conflict),)
        return arguments


@dataclass(frozen=True)
class UpdateParams:
    """Parameters of an update of the rows of one table matching a filter."""

    action: ClassVar[str] = UPDATE_ACTION

    where: Mapping[str, Any]
    set_values: Optional[Mapping[str, Any]] = None
    inc_values: Optional[Mapping[str, Any]] = None
    fields: Optional[FieldsSpec] = None
    fragment: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate fields."""
        if self.set_values is None and self.inc_values is None:
            raise BuildError("An update requires at least one of _set and _inc.")

    @property
    def arguments(self) -> ArgumentList:
        """Return the (argument name, value) pairs of the update."""
        arguments: Tuple[Tuple[str, Any], ...] = (("where", self.where),)
        if self.set_values is not None:
            arguments += (("_set", self.set_values),)
        if self.inc_values is not None:
            arguments += (("_inc", self.inc_values),)
        return arguments


@dataclass(frozen=True)
class DeleteParams:
    """Parameters of a deletion of the rows of one table matching a filter."""

    action: ClassVar[str] = DELETE_ACTION

    where: Mapping[str, Any]
    fields: Optional[FieldsSpec] = None
    fragment: Optional[str] = None

    @property
    def arguments(self) -> ArgumentList:
        """Return the (argument name, value) pairs of the deletion."""
        return (("where", self.where),)


MutationActionParams = Union[InsertParams, UpdateParams, DeleteParams]


@dataclass(frozen=True)
class WriteParams:
    """Parameters of the mutations of one table: any combination of insert, update and delete."""

    alias: str
    table_name: str
    insert: Optional[InsertParams] = None
    update: Optional[UpdateParams] = None
    delete: Optional[DeleteParams] = None

    @property
    def operations(self) -> Tuple[MutationActionParams, ...]:
        """Return the present sub-operations, in the order insert, update, delete."""
        return tuple(
            operation
            for operation in (self.insert, self.update, self.delete)
            if operation is not None
        )


def _normalize_keys(
    raw_params: Any,
    allowed_keys: FrozenSet[str],
    key_aliases: Mapping[str, str],
    description: str,
) -> Dict[str, Any]:
    """Return the params with aliased keys renamed and None values dropped, validating keys."""
    if not isinstance(raw_params, Mapping):
        raise BuildError(
            "Expected a dict of parameters for {}, got {!r}.".format(description, raw_params)
        )

    normalized: Dict[str, Any] = {}
    for key, value in raw_params.items():
        canonical_key = key_aliases.get(key, key)
        if canonical_key not in allowed_keys:
            raise BuildError(
                "Unexpected parameter {!r} for {}. Allowed parameters: {}.".format(
                    key, description, sorted(allowed_keys)
                )
            )
        if canonical_key in normalized:
            raise BuildError(
                "Parameter {!r} was specified more than once for {}.".format(
                    canonical_key, description
                )
            )
        if value is not None:
            normalized[canonical_key] = value
    return normalized


def _pop_table_name(alias: str, values: Dict[str, Any]) -> str:
    """Return the table named by the params, which defaults to the alias."""
    validate_name(alias, "result key")
    table_name = values.pop("table", alias)
    if not isinstance(table_name, str):
        raise BuildError("Expected a table name for {}, got {!r}.".format(alias, table_name))
    return table_name


def parse_read_params(alias: str, raw_params: Any) -> ReadParams:
    """Parse the query or subscription parameters requested under the given key."""
    values = _normalize_keys(raw_params, _READ_KEYS, _READ_KEY_ALIASES, alias)
    table_name = _pop_table_name(alias, values)
    return ReadParams(alias=alias, table_name=table_name, **values)


def _parse_insert_params(raw_params: Any, description: str) -> InsertParams:
    values = _normalize_keys(raw_params, _INSERT_KEYS, {}, description)
    if "objects" not in values:
        raise BuildError(
            "An insert requires objects, but none were given for {}.".format(description)
        )

    objects = values.pop("objects")
    if isinstance(objects, Mapping):
        objects = (objects,)
    elif isinstance(objects, (list, tuple)):
        objects = tuple(objects)
    else:
        raise BuildError(
            "Expected a dict or a list of dicts as the objects to insert for {}, got "
            "{!r}.".format(description, objects)
        )
    return InsertParams(objects=objects, **values)


def _parse_update_params(raw_params: Any, description: str) -> UpdateParams:
    values = _normalize_keys(raw_params, _UPDATE_KEYS, _UPDATE_KEY_ALIASES, description)
    if "where" not in values:
        raise BuildError(
            "An update requires a where filter, but none was given for {}.".format(description)
        )
    return UpdateParams(
        where=values["where"],
        set_values=values.get("_set"),
        inc_values=values.get("_inc"),
        fields=values.get("fields"),
        fragment=values.get("fragment"),
    )


def _parse_delete_params(raw_params: Any, description: str) -> DeleteParams:
    values = _normalize_keys(raw_params, _DELETE_KEYS, {}, description)
    if "where" not in values:
        raise BuildError(
            "A delete requires a where filter, but none was given for {}.".format(description)
        )
    return DeleteParams(**values)


def parse_write_params(alias: str, raw_params: Any) -> WriteParams:
    """Parse the mutation parameters requested under the given key."""
    values = _normalize_keys(raw_params, _WRITE_KEYS, _TABLE_KEY_ALIASES, alias)
    table_name = _pop_table_name(alias, values)

    insert = update = delete = None
    if INSERT_ACTION in values:
        insert = _parse_insert_params(values[INSERT_ACTION], "{}.{}".format(alias, INSERT_ACTION))
    if UPDATE_ACTION in values:
        update = _parse_update_params(values[UPDATE_ACTION], "{}.{}".format(alias, UPDATE_ACTION))
    if DELETE_ACTION in values:
        delete = _parse_delete_params(values[DELETE_ACTION], "{}.{}".format(alias, DELETE_ACTION))

    return WriteParams(
        alias=alias, table_name=table_name, insert=insert, update=update, delete=delete
    )
