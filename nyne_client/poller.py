import asyncio
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from nyne_client.config import NyneConfig
from nyne_client.errors import PollTimeoutError
from nyne_client.log import NyneLogger
from nyne_client.models import JobKind, JobResult, PollPolicy, is_in_flight
from nyne_client.transport import NyneTransport


class JobPoller:
    def __init__(
        self,
        transport: NyneTransport,
        config: NyneConfig,
        log: NyneLogger,
        on_status_change: Optional[Callable[[JobResult], Awaitable[Any]]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.transport = transport
        self.config = config
        self.log = log
        self.on_status_change = on_status_change
        self.sleep = sleep

    def resolve_policy(self, policy: Optional[PollPolicy] = None) -> PollPolicy:
        return (policy or PollPolicy()).resolve(self.config.poll_timeout_ms)

    async def _handle_status_change(
        self, result: JobResult, last_status: Optional[str]
    ) -> None:
        """Invoke the status change callback if the status has changed"""
        if result.status != last_status and self.on_status_change is not None:
            await self.on_status_change(result)

    async def wait_for_result(
        self,
        session: aiohttp.ClientSession,
        request_id: str,
        kind: JobKind,
        policy: Optional[PollPolicy] = None,
    ) -> JobResult:
        """Poll the kind's endpoint until the job leaves the in-flight states.

        Any status other than queued/processing/pending ends the loop,
        including a missing one; a "failed" job is returned like any other.
        """
        policy = self.resolve_policy(policy)
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        last_status = None

        for attempt in range(1, policy.max_attempts + 1):
            response = await self.transport.request(
                session, kind.endpoint, "GET", params={"request_id": request_id}
            )
            result = JobResult.from_response(
                kind,
                response,
                request_id=request_id,
                attempts=attempt,
                elapsed_time=loop.time() - start_time,
            )
            await self._handle_status_change(result, last_status)
            status = last_status = result.status

            if not is_in_flight(status):
                return result

            self.log.debug(
                f"polling {kind.value} (attempt {attempt}/{policy.max_attempts}): "
                f"status={status}"
            )
            await self.sleep(policy.interval_ms / 1000)

        raise PollTimeoutError(kind.value, request_id)
