"""
Row decoding for database output (Database → Python direction only).

The driver has already turned wire bytes into Python objects; this module
settles them into the value model callers see. Dispatch happens on the
column's declared type, not on the runtime type of the value:

- numeric is returned as exact decimal text, never as float
- uuid is returned as its canonical text form
- json/jsonb is re-serialized compactly (not byte-identical to the source)
- timestamptz is normalized to UTC

A column whose type is not in the table below fails the whole row.
"""
import datetime
import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

from pgbind import types
from pgbind.exceptions import DataConversionError, UnsupportedType
from pgbind.types import Column

logger = logging.getLogger(__name__)


def _identity(value: Any) -> Any:
    return value


def _to_text(value: Any) -> str:
    return str(value)


def _to_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value.astimezone(datetime.UTC)


def _to_compact_json(value: str | bytes) -> str:
    return json.dumps(json.loads(value), separators=(',', ':'), ensure_ascii=False)


_DECODERS: dict[int, Callable[[Any], Any]] = {
    types.BOOL: bool,
    types.INT2: int,
    types.INT4: int,
    types.INT8: int,
    types.FLOAT4: float,
    types.FLOAT8: float,
    types.NUMERIC: _to_text,
    types.TEXT: _identity,
    types.VARCHAR: _identity,
    types.BPCHAR: _identity,
    types.NAME: _identity,
    types.BYTEA: bytes,
    types.DATE: _identity,
    types.TIME: _identity,
    types.TIMESTAMP: _identity,
    types.TIMESTAMPTZ: _to_utc,
    types.UUID: _to_text,
    types.JSON: _to_compact_json,
    types.JSONB: _to_compact_json,
}


def get_decoder(column: Column) -> Callable[[Any], Any]:
    """Find the decoder for a column or fail with UnsupportedType.
    """
    try:
        return _DECODERS[column.type_code]
    except KeyError:
        raise UnsupportedType(
            f"Unsupported Postgres type '{column.type_name or types.type_name(column.type_code)}' "
            f"(OID {column.type_code}) for column '{column.name}'") from None


def decode_value(column: Column, value: Any) -> Any:
    """Decode one column value. NULL decodes to None at every type.
    """
    decoder = get_decoder(column)
    if value is None:
        return None
    try:
        return decoder(value)
    except (TypeError, ValueError) as exc:
        raise DataConversionError(
            f"Failed to convert {(column.type_name or '').upper()} column '{column.name}': {exc}") from exc


def decode_row(record: Sequence[Any], columns: Sequence[Column]) -> dict[str, Any]:
    """Convert one record into a dict keyed by column name.

    Keys follow server column order; a repeated column name keeps the value
    of the last column carrying it.
    """
    row: dict[str, Any] = {}
    for idx, column in enumerate(columns):
        row[column.name] = decode_value(column, record[idx])
    return row


def decode_rows(records: Sequence[Sequence[Any]], columns: Sequence[Column]) -> list[dict[str, Any]]:
    """Decode every record; any failure aborts the whole result.
    """
    rows = [decode_row(record, columns) for record in records]
    logger.debug(f'Decoded {len(rows)} rows over {len(columns)} columns')
    return rows
