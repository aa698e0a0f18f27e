from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pandas as pd
import pyarrow as pa
from pgbind.exceptions import InvalidParameter, MissingParameter
from pgbind.types import Column

__all__ = [
    'ConnectOptions',
    'DEFAULT_PORT',
    'DEFAULT_DATABASE',
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
]

DEFAULT_PORT = 5432
DEFAULT_DATABASE = 'postgres'

SSL_MODES = {'disable', 'allow', 'prefer', 'require', 'verify-ca', 'verify-full'}


def iterdict_data_loader(data, columns, **kwargs) -> list[dict]:
    """Default data loader: the decoded rows as a list of dicts.
    """
    if not data:
        return []
    return list(data)


def _empty_dataframe(columns) -> pd.DataFrame:
    """Create empty DataFrame with column metadata."""
    df = pd.DataFrame(columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    Includes type information in the DataFrame.attrs attribute.
    """
    if not data:
        return _empty_dataframe(columns)

    df = pd.DataFrame.from_records(list(data), columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_pyarrow_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """PyArrow-based pandas DataFrame loader.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    """
    if not data:
        return _empty_dataframe(columns)

    column_names = Column.get_names(columns)
    columns_data = [[row[col] for row in data] for col in column_names]
    df = pa.table(columns_data, names=column_names).to_pandas(types_mapper=pd.ArrowDtype)
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


@dataclass
class ConnectOptions:
    """Options

    Required: `host` and `user`. The rest have defaults:

    - password: None defers to the driver (PGPASSWORD, passfile)
    - port: server port (default: 5432)
    - database: database name (default: `postgres`)
    - timeout: connect timeout in seconds, 0 for the driver default
    - appname: reported as `application_name`
    - sslmode: one of the libpq ssl modes, None for the driver default
    - server_settings: extra run-time parameters sent at startup
    - data_loader: shapes `query` results (default: list of dicts)
    """
    host: str = None
    user: str = None
    password: str | None = None
    port: int = DEFAULT_PORT
    database: str = DEFAULT_DATABASE
    timeout: float = 0
    appname: str | None = None
    sslmode: str | None = None
    server_settings: dict[str, str] = field(default_factory=dict)
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        for name in ('host', 'user'):
            if getattr(self, name) is None:
                raise MissingParameter(name)
        if not self.database:
            raise MissingParameter('database')
        if not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise InvalidParameter(f'port must be between 1 and 65535, got {self.port!r}')
        if self.sslmode is not None and self.sslmode not in SSL_MODES:
            raise InvalidParameter(f'sslmode must be one of: {sorted(SSL_MODES)}')
        if self.data_loader is None:
            self.data_loader = iterdict_data_loader

    def __repr__(self) -> str:
        return (f'ConnectOptions(host={self.host!r}, port={self.port}, '
                f'database={self.database!r}, user={self.user!r})')

    def to_connect_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for the driver's connect call.
        """
        kwargs: dict[str, Any] = {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            }
        if self.timeout:
            kwargs['timeout'] = self.timeout
        if self.sslmode is not None:
            kwargs['ssl'] = self.sslmode
        server_settings = dict(self.server_settings)
        if self.appname:
            server_settings['application_name'] = self.appname
        if server_settings:
            kwargs['server_settings'] = server_settings
        return kwargs
