"""
Parameter marshaling for database input (Python → Database direction only).

Arguments are converted in two phases because the server reports the expected
type of each placeholder only after the statement has been prepared:

1. extract_params classifies every call argument by its runtime type into a
   Parameter with the widest matching kind (INT8, FLOAT8, TIMESTAMPTZ,
   NULL_UNTYPED). This needs no round trip.
2. refine_params rewrites those Parameters in place against the statement's
   declared parameter types: integers and floats are narrowed, zoned
   timestamps become naive for `timestamp` columns, and untyped nulls get the
   null kind of the expected type.

bind_params then produces the values handed to the driver.

Usage:
    params = extract_params(args)
    statement = await conn.prepare(sql)
    refine_params(params, [t.oid for t in statement.get_parameters()])
    rows = await statement.fetch(*bind_params(params))
"""
import datetime
import enum
import logging
from collections.abc import Sequence
from typing import Any

from pgbind import types
from pgbind.exceptions import InvalidParameter, TypeConversionError
from pgbind.exceptions import UnsupportedType

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = 'int, float, bool, str, bytes, bytearray, datetime, date, time, timedelta, None'

INT2_RANGE = (-2**15, 2**15 - 1)
INT4_RANGE = (-2**31, 2**31 - 1)
INT8_RANGE = (-2**63, 2**63 - 1)


class ParamKind(enum.Enum):
    """Wire-level kind of a marshaled parameter.
    """
    BOOL = 'bool'
    INT2 = 'int2'
    INT4 = 'int4'
    INT8 = 'int8'
    FLOAT4 = 'float4'
    FLOAT8 = 'float8'
    TEXT = 'text'
    BYTES = 'bytea'
    DATE = 'date'
    TIME = 'time'
    TIMESTAMP = 'timestamp'
    TIMESTAMPTZ = 'timestamptz'
    INTERVAL = 'interval'

    NULL_BOOL = 'null bool'
    NULL_INT2 = 'null int2'
    NULL_INT4 = 'null int4'
    NULL_INT8 = 'null int8'
    NULL_FLOAT4 = 'null float4'
    NULL_FLOAT8 = 'null float8'
    NULL_TEXT = 'null text'
    NULL_BYTES = 'null bytea'
    NULL_DATE = 'null date'
    NULL_TIME = 'null time'
    NULL_TIMESTAMP = 'null timestamp'
    NULL_TIMESTAMPTZ = 'null timestamptz'
    NULL_UUID = 'null uuid'
    NULL_UNTYPED = 'null'

    @property
    def is_null(self) -> bool:
        return self.value.startswith('null')


# Expected parameter type → null kind an untyped null resolves to.
_NULL_KINDS: dict[int, ParamKind] = {
    types.BOOL: ParamKind.NULL_BOOL,
    types.INT2: ParamKind.NULL_INT2,
    types.INT4: ParamKind.NULL_INT4,
    types.INT8: ParamKind.NULL_INT8,
    types.FLOAT4: ParamKind.NULL_FLOAT4,
    types.FLOAT8: ParamKind.NULL_FLOAT8,
    types.BYTEA: ParamKind.NULL_BYTES,
    types.DATE: ParamKind.NULL_DATE,
    types.TIME: ParamKind.NULL_TIME,
    types.TIMESTAMP: ParamKind.NULL_TIMESTAMP,
    types.TIMESTAMPTZ: ParamKind.NULL_TIMESTAMPTZ,
    types.UUID: ParamKind.NULL_UUID,
}

# Kinds the driver would silently coerce into these expected types.
_REJECTED: dict[ParamKind, frozenset[int]] = {
    ParamKind.BOOL: frozenset({types.INT2, types.INT4, types.INT8,
                               types.FLOAT4, types.FLOAT8, types.NUMERIC}),
    ParamKind.TIMESTAMPTZ: frozenset({types.DATE, types.TIME}),
}


class Parameter:
    """One marshaled call argument: a kind tag plus the wire value.
    """

    __slots__ = ('kind', 'value')

    def __init__(self, kind: ParamKind, value: Any = None) -> None:
        self.kind = kind
        self.value = value

    def __repr__(self) -> str:
        return f'Parameter({self.kind.name}, {self.value!r})'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parameter):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value


def interval_literal(value: datetime.timedelta) -> str:
    """Render a timedelta as a PostgreSQL interval input literal.
    """
    return f'{value.days} days {value.seconds} seconds {value.microseconds} microseconds'


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value.astimezone(datetime.UTC)


def extract_param(idx: int, arg: Any) -> Parameter:
    """Classify one call argument. Order matters: bool before int,
    datetime before date.
    """
    if arg is None:
        return Parameter(ParamKind.NULL_UNTYPED)
    if isinstance(arg, bool):
        return Parameter(ParamKind.BOOL, arg)
    if isinstance(arg, int):
        param = Parameter(ParamKind.INT8, int(arg))
        _narrow_int(idx, param, ParamKind.INT8, INT8_RANGE)
        return param
    if isinstance(arg, float):
        return Parameter(ParamKind.FLOAT8, float(arg))
    if isinstance(arg, str):
        return Parameter(ParamKind.TEXT, str(arg))
    if isinstance(arg, bytes | bytearray):
        return Parameter(ParamKind.BYTES, bytes(arg))
    if isinstance(arg, datetime.datetime):
        return Parameter(ParamKind.TIMESTAMPTZ, _as_utc(arg))
    if isinstance(arg, datetime.date):
        return Parameter(ParamKind.DATE, arg)
    if isinstance(arg, datetime.time):
        return Parameter(ParamKind.TIME, arg)
    if isinstance(arg, datetime.timedelta):
        return Parameter(ParamKind.INTERVAL, interval_literal(arg))
    raise UnsupportedType(
        f"Parameter at index {idx} is of type '{type(arg).__name__}', which is not supported. "
        f'Supported types: {SUPPORTED_TYPES}')


def extract_params(args: Sequence[Any]) -> list[Parameter]:
    """Phase 1: classify call arguments without knowing the statement.
    """
    return [extract_param(idx, arg) for idx, arg in enumerate(args)]


def _narrow_int(idx: int, param: Parameter, kind: ParamKind, bounds: tuple[int, int]) -> None:
    lo, hi = bounds
    if not lo <= param.value <= hi:
        raise InvalidParameter(f'Could not fit argument {idx} into {kind.value.upper()}: '
                               f'{param.value} is out of range')
    param.kind = kind


def refine_param(idx: int, param: Parameter, expected: int | None) -> None:
    """Rewrite a single parameter in place for the expected type OID.
    """
    kind = param.kind
    if kind is ParamKind.NULL_UNTYPED:
        param.kind = _NULL_KINDS.get(expected, ParamKind.NULL_TEXT)
    elif expected is None:
        return
    elif expected in _REJECTED.get(kind, ()):
        raise TypeConversionError(
            f'Parameter at index {idx} of kind {kind.name} cannot be bound to '
            f'{types.type_name(expected)}')
    elif kind is ParamKind.INT8:
        if expected == types.INT2:
            _narrow_int(idx, param, ParamKind.INT2, INT2_RANGE)
        elif expected == types.INT4:
            _narrow_int(idx, param, ParamKind.INT4, INT4_RANGE)
    elif kind is ParamKind.FLOAT8 and expected == types.FLOAT4:
        param.kind = ParamKind.FLOAT4
    elif kind is ParamKind.TIMESTAMPTZ and expected == types.TIMESTAMP:
        param.kind = ParamKind.TIMESTAMP
        param.value = param.value.astimezone(datetime.UTC).replace(tzinfo=None)


def refine_params(params: list[Parameter], expected_types: Sequence[int]) -> None:
    """Phase 2: narrow parameters against the statement's parameter OIDs.

    Positions beyond the declared parameter list are left alone except for
    untyped nulls, which become text nulls.
    """
    for idx, param in enumerate(params):
        expected = expected_types[idx] if idx < len(expected_types) else None
        refine_param(idx, param, expected)


def bind_params(params: list[Parameter]) -> list[Any]:
    """Produce driver values. Every null must already carry a type.
    """
    values = []
    for idx, param in enumerate(params):
        if param.kind is ParamKind.NULL_UNTYPED:
            raise TypeConversionError(f'Parameter at index {idx} is an unresolved null')
        values.append(None if param.kind.is_null else param.value)
    return values
