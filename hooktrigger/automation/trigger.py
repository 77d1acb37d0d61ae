"""
TriggerWorkflow: renders an untyped task mapping into typed specs, then runs
assemble -> invoke -> decode. The run is synchronous for the caller even
though the transport is async.
"""
from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from hooktrigger.auth.strategy import parse_auth
from hooktrigger.config import HookConfig, get_config
from hooktrigger.core.decoder import decode
from hooktrigger.core.errors import ConfigurationError
from hooktrigger.core.invoker import WebhookInvoker
from hooktrigger.core.models import (
    AuthSpec,
    CompletionPolicy,
    ContentType,
    NoAuth,
    Output,
    RequestSpec,
)
from hooktrigger.core.transport import HttpxTransport, Transport
from hooktrigger.request.assembler import assemble
from hooktrigger.storage.local import LocalStorage, Storage
from hooktrigger.utils.durations import parse_duration
from hooktrigger.utils.logger import get_logger

log = get_logger("trigger")

# camelCase task keys -> snake_case aliases
_ALIASES = {
    "uri": ("uri", "url"),
    "method": ("method",),
    "contentType": ("contentType", "content_type"),
    "body": ("body",),
    "queryParameters": ("queryParameters", "query_parameters", "query"),
    "headers": ("headers",),
    "from": ("from", "source"),
    "wait": ("wait",),
    "authentication": ("authentication", "auth"),
    "pollFrequency": ("pollFrequency", "poll_frequency"),
    "requestTimeout": ("requestTimeout", "request_timeout", "timeout"),
}


def _get(data: Mapping[str, Any], key: str) -> Any:
    for alias in _ALIASES[key]:
        if data.get(alias) is not None:
            return data[alias]
    return None


def _mapping(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = _get(data, key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return dict(value)


def _duration(data: Mapping[str, Any], key: str, default):
    value = _get(data, key)
    if value is None:
        return default
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise ConfigurationError(f"'{key}': {exc}") from exc


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        if value.strip().lower() in ("true", "yes", "1", "on"):
            return True
        if value.strip().lower() in ("false", "no", "0", "off"):
            return False
        raise ConfigurationError(f"'wait' must be a boolean, got {value!r}")
    return bool(value)


@dataclass(frozen=True)
class TriggerWorkflow:
    request: RequestSpec
    policy: CompletionPolicy = field(default_factory=CompletionPolicy)
    auth: AuthSpec = field(default_factory=NoAuth)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], config: HookConfig | None = None) -> "TriggerWorkflow":
        """Build a task from already-rendered configuration values."""
        cfg = config or get_config()
        defaults = cfg.defaults

        content_type = _get(data, "contentType")
        source = _get(data, "from")
        if isinstance(source, (list, tuple)):
            if len(source) != 1:
                raise ConfigurationError("'from' accepts exactly one file reference")
            source = source[0]

        request = RequestSpec(
            uri=_get(data, "uri"),
            method=_get(data, "method"),
            query_parameters=_mapping(data, "queryParameters"),
            headers={k: str(v) for k, v in _mapping(data, "headers").items()},
            body=_mapping(data, "body") or None,
            source=str(source) if source is not None else None,
            content_type=ContentType.parse(content_type) if content_type else defaults.content_type,
        )
        wait = _get(data, "wait")
        policy = CompletionPolicy(
            wait=defaults.wait if wait is None else _flag(wait),
            poll_interval=_duration(data, "pollFrequency", defaults.poll_frequency),
            overall_timeout=_duration(data, "requestTimeout", defaults.request_timeout),
        )
        return cls(request=request, policy=policy, auth=parse_auth(_get(data, "authentication")))

    async def arun(
        self,
        config: HookConfig | None = None,
        transport: Transport | None = None,
        storage: Storage | None = None,
        sleep: Callable | None = None,
    ) -> Output:
        cfg = config or get_config()
        if storage is None:
            storage = LocalStorage(cfg.storage_root)
        assembled = assemble(self.request, self.auth, storage)
        log.debug("Assembled request headers: %s", sorted(assembled.headers))

        if transport is None:
            transport = HttpxTransport(
                timeout=cfg.http.timeout_seconds,
                follow_redirects=cfg.http.follow_redirects,
                verify=cfg.http.verify_tls,
            )
        kwargs = {"sleep": sleep} if sleep is not None else {}
        async with transport:
            result = await WebhookInvoker(transport, **kwargs).invoke(assembled, self.policy)
        return decode(result, workflow_url=assembled.url)

    def run(self, **kwargs: Any) -> Output:
        """Blocking entry point; do not call from inside a running event loop."""
        return asyncio.run(self.arun(**kwargs))


def load_task(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"Cannot read task file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid task YAML {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Task file {path} must contain a mapping")
    return data


def trigger_workflow(data: Mapping[str, Any], config: HookConfig | None = None, **kwargs: Any) -> Output:
    """One-shot helper: mapping in, Output out."""
    cfg = config or get_config()
    return TriggerWorkflow.from_mapping(data, cfg).run(config=cfg, **kwargs)
