"""
HTTP transport: sends one AssembledRequest, returns one InvocationResult.
httpx does pooling, TLS and redirects. Socket-level failures surface as
TransportError and are never retried here.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from hooktrigger.core.errors import TransportError
from hooktrigger.core.models import InvocationResult
from hooktrigger.request.assembler import AssembledRequest

TIMEOUT = 30


class Transport(ABC):
    """Opaque client. Implement send(); open/close are optional hooks."""

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        return None

    @abstractmethod
    async def send(self, request: AssembledRequest, read_body: bool) -> InvocationResult:
        """Dispatch once. When read_body is False the body is never consumed."""


def _header_lists(headers: httpx.Headers) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for key in headers.keys():
        out.setdefault(key, headers.get_list(key))
    return out


class HttpxTransport(Transport):
    def __init__(
        self,
        timeout: float = TIMEOUT,
        follow_redirects: bool = True,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=follow_redirects,
            verify=verify,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, request: AssembledRequest, read_body: bool) -> InvocationResult:
        http_request = self._client.build_request(
            request.method.value,
            request.url,
            headers=dict(request.headers),
            content=request.content,
        )
        try:
            resp = await self._client.send(http_request, stream=True)
        except httpx.TransportError as exc:
            raise TransportError(f"{request.method.value} {request.url} failed: {exc}") from exc

        try:
            raw = None
            if read_body:
                try:
                    raw = await resp.aread()
                except httpx.TransportError as exc:
                    raise TransportError(f"Reading response from {request.url} failed: {exc}") from exc
            return InvocationResult(
                status_code=resp.status_code,
                raw_body=raw,
                headers=_header_lists(resp.headers),
                content_type=resp.headers.get("content-type"),
            )
        finally:
            await resp.aclose()
