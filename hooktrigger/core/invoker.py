"""
WebhookInvoker: dispatch + completion strategy.

    wait=False  dispatch once, never read the body
    wait=True   dispatch once; a 200 is terminal. Otherwise sleep poll_interval,
                re-send the identical request and repeat until a 200 arrives or
                the attempt budget / monotonic deadline is spent.

Any non-200 while polling means "not done yet". Only running out of budget is
fatal (WebhookTimeoutError). Transport failures propagate immediately.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Awaitable, Callable

from hooktrigger.core.errors import WebhookTimeoutError
from hooktrigger.core.models import CompletionPolicy, InvocationResult
from hooktrigger.core.transport import Transport
from hooktrigger.request.assembler import AssembledRequest
from hooktrigger.utils.logger import get_logger

log = get_logger("invoker")

Sleeper = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


class WebhookInvoker:
    def __init__(
        self,
        transport: Transport,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self.transport = transport
        self._sleep = sleep
        self._clock = clock

    async def invoke(self, request: AssembledRequest, policy: CompletionPolicy) -> InvocationResult:
        started = self._clock()
        log.info("Triggering webhook: %s %s", request.method.value, request.url)

        if not policy.wait:
            result = await self.transport.send(request, read_body=False)
            log.info("Received response with status %d (not waiting)", result.status_code)
            return replace(result, raw_body=None, attempts=1,
                           elapsed=self._clock() - started)

        result = await self.transport.send(request, read_body=True)
        log.info("Received response with status %d", result.status_code)
        if result.is_success:
            return replace(result, attempts=1, elapsed=self._clock() - started)

        return await self._poll(request, policy, result, started)

    async def _poll(self, request: AssembledRequest, policy: CompletionPolicy,
                    last: InvocationResult, started: float) -> InvocationResult:
        interval = policy.poll_interval.total_seconds()
        timeout = policy.overall_timeout.total_seconds()
        max_attempts = policy.max_attempts
        attempts = 1

        while attempts < max_attempts and self._clock() - started < timeout:
            await self._sleep(interval)
            attempts += 1
            last = await self.transport.send(request, read_body=True)
            log.debug("Poll %d/%d: status %d", attempts, max_attempts, last.status_code)
            if last.is_success:
                log.info("Workflow completed after %d attempts", attempts)
                return replace(last, attempts=attempts, elapsed=self._clock() - started)

        log.warning("Workflow did not complete after %d attempts (last status %d)",
                    attempts, last.status_code)
        raise WebhookTimeoutError(
            f"Workflow did not complete within {timeout:g}s "
            f"({attempts} attempts, last status {last.status_code})",
            attempts=attempts,
            last_status=last.status_code,
        )
