from functools import wraps
from typing import Awaitable, Callable, ParamSpec, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

P = ParamSpec('P')
T = TypeVar('T')


def transactional(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """Run the wrapped coroutine as one unit of work.

    Commits when the coroutine returns and rolls back when it raises. If the
    session is already inside a transaction, a savepoint is used instead.
    """
    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        session = _extract_session(args, kwargs)

        if session.in_transaction():
            async with session.begin_nested():
                return await func(*args, **kwargs)
        async with session.begin():
            return await func(*args, **kwargs)
    return wrapper


def _extract_session(args, kwargs) -> AsyncSession:
    if args and isinstance(args[0], AsyncSession):
        return args[0]
    if 'db' in kwargs:
        return kwargs['db']
    if 'session' in kwargs:
        return kwargs['session']
    if args and isinstance(getattr(args[0], '_session', None), AsyncSession):
        return args[0]._session
    raise ValueError("No session found in function arguments")
