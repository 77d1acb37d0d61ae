"""
Request assembly: URI + query, headers (caller, content type, auth), body.
Inputs are read-only; every call builds fresh structures. The only I/O is a
single storage read when the body comes from an external reference.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from hooktrigger.auth.strategy import resolve
from hooktrigger.core.errors import ConfigurationError
from hooktrigger.core.models import AuthSpec, HttpMethod, NoAuth, RequestSpec
from hooktrigger.request.encoder import encode
from hooktrigger.storage.local import Storage

CONTENT_TYPE = "Content-Type"
JSON_MIME = "application/json"


@dataclass(frozen=True)
class AssembledRequest:
    method: HttpMethod
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes | str | None = None

    def header(self, name: str) -> str | None:
        lname = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lname:
                return value
        return None


def _query_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_url(uri: str, query_parameters: Mapping[str, Any]) -> str:
    """Append query parameters in insertion order, keeping any existing query."""
    try:
        url = httpx.URL(uri)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"Invalid URL {uri!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"Invalid URL {uri!r}: expected an absolute http(s) URL")
    for key, value in query_parameters.items():
        url = url.copy_add_param(str(key), _query_value(value))
    return str(url)


def merge_headers(*layers: Mapping[str, str]) -> dict[str, str]:
    """Later layers replace earlier ones, comparing names case-insensitively."""
    merged: dict[str, str] = {}
    for layer in layers:
        for name, value in layer.items():
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
    return merged


def assemble(spec: RequestSpec, auth: AuthSpec | None = None,
             storage: Storage | None = None) -> AssembledRequest:
    if spec.has_body and spec.has_source:
        raise ConfigurationError("cannot set both a structured body and a file reference")
    auth_headers = resolve(auth or NoAuth())

    url = build_url(spec.uri, spec.query_parameters)
    caller = {str(k): str(v) for k, v in spec.headers.items()}

    content: bytes | str | None = None
    body_type: dict[str, str] = {}
    if spec.has_body:
        content = json.dumps(dict(spec.body), ensure_ascii=False, default=str).encode("utf-8")
        body_type = {CONTENT_TYPE: JSON_MIME}
    elif spec.has_source:
        if storage is None:
            raise ConfigurationError("A file reference was given but no storage is configured")
        encoded = encode(spec.content_type, storage.open(spec.source))
        content = encoded.content
        body_type = {CONTENT_TYPE: encoded.content_type}

    if any(k.lower() == CONTENT_TYPE.lower() for k in caller):
        body_type = {}

    return AssembledRequest(
        method=spec.method,
        url=url,
        headers=merge_headers(caller, body_type, auth_headers),
        content=content,
    )
