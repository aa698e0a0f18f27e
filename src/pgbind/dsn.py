"""
Connection string handling.

DSNs are parsed with libpq's own URI grammar (through psycopg.conninfo), so
the edge cases follow libpq exactly:

- the password may be omitted (the driver then consults PGPASSWORD/passfile)
- IPv6 hosts are written in brackets: postgresql://u:p@[::1]:5432/db
- a percent-encoded path as host selects a unix socket directory
- multi-host DSNs (h1,h2) use the first host and the first port

Only the URI form with a `postgres://` or `postgresql://` scheme is accepted.
"""
import logging
from typing import Any

import psycopg
from pgbind.exceptions import InvalidDsn, InvalidParameter, MissingParameter
from pgbind.options import DEFAULT_PORT, ConnectOptions
from psycopg.conninfo import conninfo_to_dict, make_conninfo

__all__ = [
    'parse_dsn',
    'make_dsn',
    'options_from_dsn',
]

logger = logging.getLogger(__name__)

SCHEMES = ('postgres://', 'postgresql://')

# libpq keyword → ConnectOptions field
_OPTION_FIELDS = {
    'host': 'host',
    'user': 'user',
    'password': 'password',
    'dbname': 'database',
    'connect_timeout': 'timeout',
    'sslmode': 'sslmode',
    'application_name': 'appname',
}


def _first(value: str) -> str:
    return value.split(',')[0].strip()


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Parse a DSN into ConnectOptions keyword arguments.

    Raises InvalidDsn for a wrong scheme or anything libpq rejects, and
    MissingParameter when host, user or database is absent.
    """
    if not dsn or not dsn.startswith(SCHEMES):
        raise InvalidDsn(f'DSN must start with postgres:// or postgresql://, got {dsn!r}')

    try:
        params = conninfo_to_dict(dsn)
    except psycopg.ProgrammingError as exc:
        raise InvalidDsn(str(exc).strip()) from exc

    fields: dict[str, Any] = {}
    for key, value in params.items():
        if key == 'port':
            continue
        if key not in _OPTION_FIELDS:
            logger.warning(f'Ignoring unsupported connection option {key!r}')
            continue
        fields[_OPTION_FIELDS[key]] = value

    for required, name in (('host', 'host'), ('user', 'user'), ('database', 'database')):
        if not fields.get(required):
            raise MissingParameter(name)

    fields['host'] = _first(fields['host'])

    port = params.get('port')
    if port and _first(port):
        try:
            fields['port'] = int(_first(port))
        except ValueError as exc:
            raise InvalidDsn(f'port must be a number, got {port!r}') from exc
    else:
        fields['port'] = DEFAULT_PORT

    if 'timeout' in fields:
        try:
            fields['timeout'] = float(fields['timeout'])
        except ValueError as exc:
            raise InvalidDsn(f"connect_timeout must be a number, got {fields['timeout']!r}") from exc

    return fields


def options_from_dsn(dsn: str, **kw: Any) -> ConnectOptions:
    """Build ConnectOptions from a DSN; `kw` supplies non-connection options
    such as `data_loader`.
    """
    fields = parse_dsn(dsn)
    for name in kw:
        if name in fields:
            raise InvalidParameter(f'{name!r} is given both in the DSN and as a keyword')
    return ConnectOptions(**fields, **kw)


def make_dsn(options: ConnectOptions, mask_password: bool = True) -> str:
    """Render options as a libpq conninfo string.
    """
    params: dict[str, Any] = {
        'host': options.host,
        'port': options.port,
        'user': options.user,
        'dbname': options.database,
        }
    if options.password is not None:
        params['password'] = '***' if mask_password else options.password
    if options.timeout:
        params['connect_timeout'] = int(options.timeout)
    if options.sslmode:
        params['sslmode'] = options.sslmode
    if options.appname:
        params['application_name'] = options.appname
    return make_conninfo('', **params)
