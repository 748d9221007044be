from __future__ import annotations

from typing import Protocol

from fastapi import Request

from .errors import Unauthenticated

Principal = str


class IdentityProvider(Protocol):
    def resolve(self, call_context: Request) -> Principal: ...


class HeaderIdentityProvider:
    """Reads an already authenticated principal from a request header.

    The gateway in front of the service is expected to strip any client
    supplied copy of the header and set it from the verified session.
    """

    def __init__(self, header_name: str = "X-Principal") -> None:
        self.header_name = header_name

    def resolve(self, call_context: Request) -> Principal:
        value = call_context.headers.get(self.header_name, "").strip()
        if not value:
            raise Unauthenticated(f"Missing {self.header_name} header")
        return value
