"""Frontend — session cookie assignment.

Every request reaching a handler carries a session id on
``request.state.session_id``: the one from the ``shop_session-id`` cookie, or
a freshly minted one that is also set on the response.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

SHARED_SESSION_ID = "12345678-1234-1234-1234-123456789123"


@dataclass(frozen=True)
class CookieSettings:
    """Names and lifetime of the storefront cookies."""

    prefix: str = "shop_"
    max_age: int = 60 * 60 * 48
    single_shared_session: bool = False

    @property
    def session_id(self) -> str:
        return f"{self.prefix}session-id"

    @property
    def currency(self) -> str:
        return f"{self.prefix}currency"


class SessionIDMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, cookies: CookieSettings | None = None) -> None:
        super().__init__(app)
        self._cookies = cookies or CookieSettings()

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session_id = request.cookies.get(self._cookies.session_id)
        minted = not session_id
        if minted:
            session_id = self._new_session_id()

        request.state.session_id = session_id
        response = await call_next(request)

        if minted:
            response.set_cookie(
                self._cookies.session_id,
                session_id,
                max_age=self._cookies.max_age,
            )
        return response

    def _new_session_id(self) -> str:
        if self._cookies.single_shared_session:
            # Every visitor shares one cart; used for load testing
            return SHARED_SESSION_ID
        return str(uuid.uuid4())


def session_id(request: Request) -> str:
    """The session id assigned by ``SessionIDMiddleware``."""
    return request.state.session_id
