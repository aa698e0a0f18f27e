"""
Exception classes for connection, execution and value-conversion failures.

Callers branch on the exception class, never on the message text:

- ConfigurationError: missing or contradictory connect arguments, bad DSN
- ConnectionFailure: handshake, authentication or transport failure
- RuntimeFailed: the background event loop could not be started
- ExecutionError: prepare or execute failed on the server
- TypeConversionError: a value could not be marshaled or decoded
"""
import re

RETRYABLE_PATTERNS = [
    # SSL/TLS errors
    r'ssl',
    r'tls',
    # Connection drops
    r'connection.*(closed|reset|refused|lost|terminated|broken)',
    r'server closed',
    r'eof detected',
    r'broken pipe',
    r'connection reset',
    # Timeouts
    r'timeout',
    r'timed out',
    # Network issues
    r'could not connect',
    r'no route to host',
    r'network.*(unreachable|error)',
    r'host.*(unreachable|down)',
    # Database unavailable
    r'database.*unavailable',
    r'too many connections',
]

_RETRYABLE_REGEX = re.compile('|'.join(RETRYABLE_PATTERNS), re.IGNORECASE)


def is_retryable_error(exc: BaseException) -> bool:
    """Check if an exception represents a transient error worth retrying.

    Nothing in this package retries on its own; this helper lets callers
    write their own retry policy around `Connection.query` and friends.

    Connection failures and execution errors caused by dropped sockets,
    timeouts or an overloaded server are considered transient. Syntax errors,
    constraint violations and type conversion errors are not.

    :param exc: The exception to check.
    :returns: True if the error is likely transient and worth retrying.
    """
    if isinstance(exc, (ConfigurationError, TypeConversionError)):
        return False
    error_msg = str(exc).lower()
    if exc.__cause__ is not None:
        error_msg = f'{error_msg} {exc.__cause__}'.lower()
    return bool(_RETRYABLE_REGEX.search(error_msg))


class DatabaseError(Exception):
    """Base class for all pgbind errors.
    """


class ConfigurationError(DatabaseError, ValueError):
    """Invalid connection configuration. No network attempt was made.
    """


class MissingParameter(ConfigurationError):
    """A required connection parameter was not supplied.
    """

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f'Missing required parameter: {field}')


class InvalidParameter(ConfigurationError):
    """A supplied parameter value is contradictory or does not fit.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f'Invalid parameter value: {detail}')


class InvalidDsn(ConfigurationError):
    """The connection string could not be parsed.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f'Invalid DSN: {detail}')


class ConnectionFailure(DatabaseError, ConnectionError):
    """Error establishing the database connection.
    """


class RuntimeFailed(DatabaseError, RuntimeError):
    """The background execution context could not be created.
    """


class ExecutionError(DatabaseError):
    """Prepare or execute failed at the server.

    Prepare-time failures (syntax errors, unknown relations) and execute-time
    failures (constraint violations, runtime errors) share this class.
    """


QueryError = ExecutionError


class TypeConversionError(DatabaseError, TypeError):
    """Error converting values between Python and the database.
    """


class UnsupportedType(TypeConversionError):
    """A parameter or column type outside the supported set.
    """


class DataConversionError(TypeConversionError):
    """A value of a supported type failed to convert.
    """
