"""
Value objects for one webhook invocation.
All are frozen; inbound mappings are copied into read-only views so a request
can never be mutated after construction.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union

from hooktrigger.core.errors import ConfigurationError
from hooktrigger.utils.durations import to_millis

DEFAULT_POLL_INTERVAL = timedelta(seconds=2)
DEFAULT_TIMEOUT = timedelta(minutes=5)
SUCCESS_STATUS = 200


def _frozen(mapping: Mapping | None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


# ── Authentication ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NoAuth:
    pass


@dataclass(frozen=True)
class BasicAuth:
    username: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class HeaderAuth:
    name: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class JWTAuth:
    token: str | None = None


@dataclass(frozen=True)
class CustomAuth:
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _frozen(self.headers))


AuthSpec = Union[NoAuth, BasicAuth, HeaderAuth, JWTAuth, CustomAuth]


# ── Enums ─────────────────────────────────────────────────────────────────────

class ContentType(str, Enum):
    JSON = "JSON"
    XML = "XML"
    TEXT = "TEXT"
    BINARY = "BINARY"

    @classmethod
    def parse(cls, value: Any) -> "ContentType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ConfigurationError(f"Unknown content type: {value!r}") from None


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"

    @classmethod
    def parse(cls, value: Any) -> "HttpMethod":
        if isinstance(value, cls):
            return value
        if value is None:
            raise ConfigurationError("HTTP method cannot be null")
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ConfigurationError(f"Unsupported HTTP method: {value!r}") from None


# ── Request / policy ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RequestSpec:
    uri: str
    method: HttpMethod
    query_parameters: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, Any] | None = None
    source: str | None = None
    content_type: ContentType = ContentType.BINARY

    def __post_init__(self) -> None:
        if not self.uri:
            raise ConfigurationError("URL cannot be null")
        if self.method is None:
            raise ConfigurationError("HTTP method cannot be null")
        object.__setattr__(self, "method", HttpMethod.parse(self.method))
        object.__setattr__(self, "content_type", ContentType.parse(self.content_type))
        object.__setattr__(self, "query_parameters", _frozen(self.query_parameters))
        object.__setattr__(self, "headers", _frozen(self.headers))
        # an empty inline body counts as absent
        if self.body is not None:
            object.__setattr__(self, "body", _frozen(self.body) if self.body else None)
        if self.source is not None and self.body is not None:
            raise ConfigurationError("cannot set both a structured body and a file reference")

    @property
    def has_body(self) -> bool:
        return self.body is not None

    @property
    def has_source(self) -> bool:
        return self.source is not None


@dataclass(frozen=True)
class CompletionPolicy:
    wait: bool = True
    poll_interval: timedelta = DEFAULT_POLL_INTERVAL
    overall_timeout: timedelta = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if self.poll_interval <= timedelta(0):
            raise ConfigurationError(f"Poll interval must be positive, got {self.poll_interval}")
        if self.overall_timeout < timedelta(0):
            raise ConfigurationError(f"Timeout must not be negative, got {self.overall_timeout}")

    @property
    def max_attempts(self) -> int:
        """Total dispatches allowed while waiting, the initial one included."""
        interval_ms = max(1, to_millis(self.poll_interval))
        timeout_ms = to_millis(self.overall_timeout)
        return max(1, timeout_ms // interval_ms)


# ── Results ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InvocationResult:
    status_code: int
    raw_body: bytes | None = None
    headers: Mapping[str, list[str]] = field(default_factory=dict)
    content_type: str | None = None
    attempts: int = 1
    elapsed: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status_code == SUCCESS_STATUS


@dataclass(frozen=True)
class Output:
    status_code: int
    body: Any = None
    headers: Mapping[str, list[str]] = field(default_factory=dict, compare=False)
    workflow_url: str = field(default="", compare=False)
    attempts: int = field(default=1, compare=False)
    duration: float = field(default=0.0, compare=False)

    def to_dict(self) -> dict:
        return {
            "statusCode": self.status_code,
            "body": self.body,
            "headers": {k: list(v) for k, v in self.headers.items()},
            "workflowUrl": self.workflow_url,
            "attempts": self.attempts,
            "durationMs": int(self.duration * 1000),
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
