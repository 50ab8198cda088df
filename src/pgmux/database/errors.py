"""Driver error translation.

asyncpg and the network layer raise their own exception types; pgmux
operations never let those escape raw. They are wrapped in ``QueryError``
(or a more specific pgmux class) with the driver exception kept as ``cause``.
"""

import asyncio
from typing import Any, Type

import asyncpg

from ..core.exceptions import ErrorCodes, PgMuxException, QueryError

# Exceptions a pool operation can raise on its own
DRIVER_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


def wrap_driver_error(
    exc: BaseException,
    message: str,
    *,
    error_class: Type[PgMuxException] = QueryError,
    code: str = ErrorCodes.QUERY_EXECUTION_FAILED,
    **context: Any,
) -> PgMuxException:
    """Build a pgmux exception for a driver failure.

    The driver's own message is appended, e.g.
    ``"failed to get WAL activity: connection reset by peer"``.
    """
    detail = str(exc) or type(exc).__name__
    return error_class(
        f"{message}: {detail}",
        code=code,
        context=context,
        cause=exc,
    )
