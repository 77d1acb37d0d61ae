"""ResponseDecoder: InvocationResult -> Output, driven by the declared content type."""
from __future__ import annotations

import json
from typing import Any

from hooktrigger.core.errors import DecodingError
from hooktrigger.core.models import InvocationResult, Output

JSON_MIME = "application/json"


def decode_body(raw: bytes | None, content_type: str | None) -> Any:
    if raw is None:
        return None
    if content_type and JSON_MIME in content_type.lower():
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise DecodingError(f"Response declared {content_type} but is not valid JSON: {exc}") from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodingError(f"Response body is not valid UTF-8 text: {exc}") from exc


def decode(result: InvocationResult, workflow_url: str = "") -> Output:
    """Never raises on a non-2xx status; classifying it is the caller's job."""
    return Output(
        status_code=result.status_code,
        body=decode_body(result.raw_body, result.content_type),
        headers=result.headers,
        workflow_url=workflow_url,
        attempts=result.attempts,
        duration=result.elapsed,
    )
