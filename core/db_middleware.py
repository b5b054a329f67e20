import asyncio

from starlette.middleware.base import BaseHTTPMiddleware

from db.base import db


class DatabaseMiddleware(BaseHTTPMiddleware):
    """
    Request-scoped connection for the run audit and snapshot tables.

    Only a connection opened here is closed here; one that was already
    open (e.g. held by a test) is left alone.
    """

    async def dispatch(self, request, call_next):
        opened = False
        if db.obj is not None and db.is_closed():
            await asyncio.to_thread(db.connect)
            opened = True

        try:
            return await call_next(request)
        finally:
            if opened and not db.is_closed():
                await asyncio.to_thread(db.close)
