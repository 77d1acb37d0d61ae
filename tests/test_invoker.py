"""Tests for hooktrigger.core.invoker — completion state machine with a scripted transport."""
from datetime import timedelta

import pytest
from pathlib import Path
from unittest.mock import AsyncMock

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from hooktrigger.core.models import CompletionPolicy, HttpMethod, InvocationResult  # noqa: E402
from hooktrigger.core.transport import Transport  # noqa: E402
from hooktrigger.request.assembler import AssembledRequest  # noqa: E402

REQUEST = AssembledRequest(HttpMethod.POST, "http://n8n.local/webhook/abc",
                           {"Content-Type": "application/json"}, b'{"a": 1}')


class ScriptedTransport(Transport):
    """Returns the queued responses in order; repeats the last one when exhausted."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def send(self, request, read_body):
        self.calls.append((request, read_body))
        status, body, ctype = self.responses[min(len(self.calls), len(self.responses)) - 1]
        return InvocationResult(
            status_code=status,
            raw_body=body if read_body else None,
            headers={"content-type": [ctype]} if ctype else {},
            content_type=ctype,
        )


def _policy(wait=True, poll=1.0, timeout=10.0):
    return CompletionPolicy(wait=wait, poll_interval=timedelta(seconds=poll),
                            overall_timeout=timedelta(seconds=timeout))


def _invoker(transport, sleep=None):
    from hooktrigger.core.invoker import WebhookInvoker
    return WebhookInvoker(transport, sleep=sleep or AsyncMock(), clock=lambda: 0.0)


# ── Fire and forget ──────────────────────────────────────────────────────────

class TestFireAndForget:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 202, 404, 500])
    async def test_any_status_returned_without_body(self, status):
        transport = ScriptedTransport((status, b"ignored", "text/plain"))
        sleep = AsyncMock()
        result = await _invoker(transport, sleep).invoke(REQUEST, _policy(wait=False))
        assert result.status_code == status
        assert result.raw_body is None
        assert len(transport.calls) == 1
        assert transport.calls[0][1] is False
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_headers_kept(self):
        transport = ScriptedTransport((202, None, "application/json"))
        result = await _invoker(transport).invoke(REQUEST, _policy(wait=False))
        assert result.headers == {"content-type": ["application/json"]}


# ── Awaiting terminal ────────────────────────────────────────────────────────

class TestAwaitingTerminal:
    @pytest.mark.asyncio
    async def test_first_response_success_is_terminal(self):
        transport = ScriptedTransport((200, b"ok", "text/plain"))
        sleep = AsyncMock()
        result = await _invoker(transport, sleep).invoke(REQUEST, _policy())
        assert result.status_code == 200
        assert result.raw_body == b"ok"
        assert result.attempts == 1
        assert len(transport.calls) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_poll_until_success(self):
        transport = ScriptedTransport((202, b"", None), (200, b'{"x": 1}', "application/json"))
        sleep = AsyncMock()
        result = await _invoker(transport, sleep).invoke(REQUEST, _policy(poll=1.5, timeout=10))
        assert result.status_code == 200
        assert result.raw_body == b'{"x": 1}'
        assert result.attempts == 2
        assert len(transport.calls) == 2
        sleep.assert_awaited_once_with(1.5)

    @pytest.mark.asyncio
    async def test_polls_identical_request(self):
        transport = ScriptedTransport((500, b"", None), (404, b"", None), (200, b"done", None))
        await _invoker(transport).invoke(REQUEST, _policy())
        assert [call[0] for call in transport.calls] == [REQUEST, REQUEST, REQUEST]
        assert all(call[1] for call in transport.calls)

    @pytest.mark.asyncio
    async def test_error_statuses_are_not_fatal_while_polling(self):
        transport = ScriptedTransport((500, b"", None), (401, b"", None), (503, b"", None),
                                      (200, b"late", None))
        result = await _invoker(transport).invoke(REQUEST, _policy())
        assert result.raw_body == b"late"
        assert result.attempts == 4

    @pytest.mark.asyncio
    async def test_timeout_after_floor_attempts(self):
        from hooktrigger.core.errors import WebhookTimeoutError
        transport = ScriptedTransport((500, b"", None))
        sleep = AsyncMock()
        with pytest.raises(WebhookTimeoutError) as exc_info:
            await _invoker(transport, sleep).invoke(REQUEST, _policy(poll=2, timeout=10))
        assert len(transport.calls) == 5
        assert sleep.await_count == 4
        assert exc_info.value.attempts == 5
        assert exc_info.value.last_status == 500

    @pytest.mark.asyncio
    async def test_timeout_is_builtin_timeout_error(self):
        transport = ScriptedTransport((500, b"", None))
        with pytest.raises(TimeoutError):
            await _invoker(transport).invoke(REQUEST, _policy(poll=1, timeout=3))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout,expected", [
        (9.999, 4),   # just under a multiple of the interval
        (10.0, 5),    # exact multiple
        (10.001, 5),  # just over
    ])
    async def test_attempt_budget_boundary(self, timeout, expected):
        from hooktrigger.core.errors import WebhookTimeoutError
        transport = ScriptedTransport((500, b"", None))
        with pytest.raises(WebhookTimeoutError):
            await _invoker(transport).invoke(REQUEST, _policy(poll=2, timeout=timeout))
        assert len(transport.calls) == expected

    @pytest.mark.asyncio
    async def test_success_on_last_allowed_attempt(self):
        transport = ScriptedTransport(*[(500, b"", None)] * 4, (200, b"just in time", None))
        result = await _invoker(transport).invoke(REQUEST, _policy(poll=2, timeout=10))
        assert result.raw_body == b"just in time"
        assert len(transport.calls) == 5

    @pytest.mark.asyncio
    async def test_timeout_shorter_than_interval_dispatches_once(self):
        from hooktrigger.core.errors import WebhookTimeoutError
        transport = ScriptedTransport((202, b"", None))
        with pytest.raises(WebhookTimeoutError):
            await _invoker(transport).invoke(REQUEST, _policy(poll=5, timeout=1))
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_monotonic_deadline_stops_polling(self):
        from hooktrigger.core.errors import WebhookTimeoutError
        from hooktrigger.core.invoker import WebhookInvoker
        ticks = iter([0.0, 4.0, 11.0, 11.0, 11.0])
        transport = ScriptedTransport((500, b"", None))
        invoker = WebhookInvoker(transport, sleep=AsyncMock(), clock=lambda: next(ticks))
        with pytest.raises(WebhookTimeoutError):
            await invoker.invoke(REQUEST, _policy(poll=1, timeout=10))
        assert len(transport.calls) == 2


# ── Transport failures ───────────────────────────────────────────────────────

class TestTransportFailures:
    @pytest.mark.asyncio
    async def test_initial_failure_propagates(self):
        from hooktrigger.core.errors import TransportError
        transport = ScriptedTransport()
        transport.send = AsyncMock(side_effect=TransportError("connection refused"))
        with pytest.raises(TransportError):
            await _invoker(transport).invoke(REQUEST, _policy())
        assert transport.send.await_count == 1

    @pytest.mark.asyncio
    async def test_failure_during_polling_is_not_retried(self):
        from hooktrigger.core.errors import TransportError
        transport = ScriptedTransport()
        transport.send = AsyncMock(side_effect=[
            InvocationResult(status_code=202),
            TransportError("dns failure"),
        ])
        with pytest.raises(TransportError, match="dns"):
            await _invoker(transport).invoke(REQUEST, _policy())
        assert transport.send.await_count == 2
