"""Decorators for route handlers."""

import functools
from typing import Awaitable, Callable

from aiohttp import web

from notekeep.server.exceptions import NotekeepError

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def public_route(handler: Handler) -> Handler:
    """Decorator to mark a route handler as public (no session required)."""
    handler.is_public = True  # type: ignore[attr-defined]
    return handler


def verified_route(handler: Handler) -> Handler:
    """Decorator rejecting callers whose account is not verified.

    The check uses the verification state loaded for this request, not the
    state at login time.
    """

    @functools.wraps(handler)
    async def wrapper(request: web.Request) -> web.StreamResponse:
        try:
            request["caller"].require_verified()
        except NotekeepError as err:
            return err.to_response()
        return await handler(request)

    return wrapper
