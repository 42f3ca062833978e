"""CORS for the API, except paths that answer preflights themselves.

The n8n proxy keeps the open CORS policy of the edge function it replaces:
every OPTIONS gets a 200 and every response allows any origin. Other routes
follow CORS_ORIGINS through Starlette's CORSMiddleware.
"""
from __future__ import annotations

from typing import Sequence

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


class ScopedCORSMiddleware(CORSMiddleware):
    def __init__(self, app: ASGIApp, exempt_suffixes: Sequence[str] = (), **options) -> None:
        super().__init__(app, **options)
        self.exempt_suffixes = tuple(exempt_suffixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].rstrip("/").endswith(self.exempt_suffixes):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)
