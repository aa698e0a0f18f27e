"""
Value adapters between Python and PostgreSQL.

- params: call arguments → typed wire parameters (extract, refine, bind)
- rows: driver records → dicts of Python values

Type conversion principles:
1. Python → Database: arguments are classified eagerly and narrowed only once
   the prepared statement reports its parameter types.
2. Database → Python: values are settled by declared column type; anything
   outside the supported set is rejected rather than passed through.
"""

from pgbind.adapters.params import Parameter, ParamKind, bind_params
from pgbind.adapters.params import extract_params, refine_params
from pgbind.adapters.rows import decode_row, decode_rows

__all__ = [
    'Parameter',
    'ParamKind',
    'extract_params',
    'refine_params',
    'bind_params',
    'decode_row',
    'decode_rows',
]
