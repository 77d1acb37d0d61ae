"""
Authentication strategies: AuthSpec -> header mutations.

Task configuration arrives as a plain mapping with a ``type`` discriminator
(``BasicAuth``, ``HeaderAuth``, ``JWTAuth``) or as an untagged custom-headers
form. parse_auth() decodes it once into a typed AuthSpec; resolve() is a pure
switch over the closed set of variants.
"""
from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import Any

from hooktrigger.core.errors import ConfigurationError
from hooktrigger.core.models import (
    AuthSpec,
    BasicAuth,
    CustomAuth,
    HeaderAuth,
    JWTAuth,
    NoAuth,
)

AUTHORIZATION = "Authorization"

# discriminator -> variant; enum spellings are accepted as aliases
_TYPES: dict[str, type] = {
    "none": NoAuth,
    "basicauth": BasicAuth,
    "basic_auth": BasicAuth,
    "headerauth": HeaderAuth,
    "header_auth": HeaderAuth,
    "jwtauth": JWTAuth,
    "jwt": JWTAuth,
    "customauth": CustomAuth,
    "custom": CustomAuth,
}


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _headers_map(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Custom authentication headers must be a mapping, got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items()}


def parse_auth(data: Mapping[str, Any] | AuthSpec | None) -> AuthSpec:
    """Decode an untyped authentication mapping into an AuthSpec."""
    if isinstance(data, (NoAuth, BasicAuth, HeaderAuth, JWTAuth, CustomAuth)):
        return data
    if not data:
        return NoAuth()
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Authentication must be a mapping, got {type(data).__name__}")

    discriminator = data.get("type")
    if discriminator is None:
        headers = _first(data, "headers", "customHeaders")
        if headers is None:
            raise ConfigurationError("Authentication is missing its 'type' field")
        return CustomAuth(_headers_map(headers))

    variant = _TYPES.get(str(discriminator).lower())
    if variant is None:
        raise ConfigurationError(f"Unknown authentication type: {discriminator!r}")

    if variant is NoAuth:
        return NoAuth()
    if variant is BasicAuth:
        return BasicAuth(username=data.get("username"), password=data.get("password"))
    if variant is HeaderAuth:
        return HeaderAuth(
            name=_first(data, "name", "headerName"),
            value=_first(data, "value", "headerValue"),
        )
    if variant is JWTAuth:
        return JWTAuth(token=_first(data, "token", "jwt", "jwtToken"))
    return CustomAuth(_headers_map(_first(data, "headers", "customHeaders")))


def _require(spec: AuthSpec, **fields: Any) -> None:
    missing = [name for name, value in fields.items() if value is None]
    if missing:
        raise ConfigurationError(
            f"{type(spec).__name__} requires {', '.join(repr(m) for m in missing)}"
        )


def resolve(spec: AuthSpec) -> dict[str, str]:
    """Return the headers an AuthSpec adds to a request. Pure and idempotent."""
    if isinstance(spec, NoAuth):
        return {}
    if isinstance(spec, BasicAuth):
        _require(spec, username=spec.username, password=spec.password)
        token = base64.b64encode(f"{spec.username}:{spec.password}".encode("utf-8")).decode("ascii")
        return {AUTHORIZATION: f"Basic {token}"}
    if isinstance(spec, HeaderAuth):
        _require(spec, name=spec.name, value=spec.value)
        return {str(spec.name): str(spec.value)}
    if isinstance(spec, JWTAuth):
        _require(spec, token=spec.token)
        return {AUTHORIZATION: f"Bearer {spec.token}"}
    if isinstance(spec, CustomAuth):
        return dict(spec.headers)
    raise ConfigurationError(f"Unsupported authentication: {type(spec).__name__}")
