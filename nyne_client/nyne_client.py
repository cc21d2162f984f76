import asyncio
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from nyne_client.config import NyneConfig
from nyne_client.errors import ApiError, NonJsonResponseError
from nyne_client.log import NyneLogger
from nyne_client.models import (
    USAGE_ENDPOINT,
    ArticleSearchParams,
    CompetitorEngagementsParams,
    DeepResearchParams,
    EnrichmentParams,
    InteractionsParams,
    InterestsParams,
    JobKind,
    JobParams,
    JobResult,
    SearchParams,
    UsageResult,
)
from nyne_client.poller import JobPoller
from nyne_client.transport import API_BASE, NyneTransport


class NyneClient:
    """One coroutine per Nyne job kind, each hiding the submit + poll steps.

    Every call opens its own session and polling loop; nothing is shared
    between concurrent calls.
    """

    def __init__(
        self,
        config: NyneConfig,
        base_url: str = API_BASE,
        logger: Optional[Any] = None,
        on_status_change: Optional[Callable[[JobResult], Awaitable[Any]]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        self.config = config
        self.log = NyneLogger(logger, debug=config.debug)
        self.transport = NyneTransport(config, self.log, base_url=base_url)
        poller_kwargs = {"sleep": sleep} if sleep is not None else {}
        self.poller = JobPoller(
            self.transport,
            config,
            self.log,
            on_status_change=on_status_change,
            **poller_kwargs,
        )
        self.log.info("client initialized")

    async def _submit_and_wait(self, kind: JobKind, params: JobParams) -> JobResult:
        async with aiohttp.ClientSession() as session:
            response = await self.transport.request(
                session, kind.endpoint, "POST", body=params.to_body()
            )
            submitted = JobResult.from_response(kind, response)

            # Resolved synchronously, nothing to poll
            if not submitted.request_id:
                return submitted

            self.log.debug(f"{kind.value} submitted: request_id={submitted.request_id}")
            return await self.poller.wait_for_result(
                session, submitted.request_id, kind, kind.poll_policy
            )

    async def search_people(self, **params: Any) -> JobResult:
        return await self._submit_and_wait(JobKind.search, SearchParams(**params))

    async def enrich_person(self, **params: Any) -> JobResult:
        """Enrich a profile from an email, phone, LinkedIn or social media URL.

        `linkedin_url` is sent as `social_media_url` unless that is also given.
        """
        return await self._submit_and_wait(
            JobKind.enrichment, EnrichmentParams(**params)
        )

    async def get_person_interests(self, **params: Any) -> JobResult:
        return await self._submit_and_wait(JobKind.interests, InterestsParams(**params))

    async def search_articles(self, **params: Any) -> JobResult:
        return await self._submit_and_wait(
            JobKind.article_search, ArticleSearchParams(**params)
        )

    async def deep_research(self, **params: Any) -> JobResult:
        """Run a deep research job. Polls every 5s for up to 10 minutes."""
        return await self._submit_and_wait(
            JobKind.deep_research, DeepResearchParams(**params)
        )

    async def competitor_engagements(self, **params: Any) -> JobResult:
        return await self._submit_and_wait(
            JobKind.competitor_engagements, CompetitorEngagementsParams(**params)
        )

    async def get_interactions(self, **params: Any) -> JobResult:
        return await self._submit_and_wait(
            JobKind.interactions, InteractionsParams(**params)
        )

    async def get_usage(
        self, month: Optional[int] = None, year: Optional[int] = None
    ) -> UsageResult:
        query = {}
        if month:
            query["month"] = month
        if year:
            query["year"] = year

        async with aiohttp.ClientSession() as session:
            response = await self.transport.request(
                session, USAGE_ENDPOINT, "GET", params=query or None
            )
        return UsageResult.from_response(response)

    async def check_connection(self) -> bool:
        """Verify the credentials with a usage read"""
        try:
            await self.get_usage()
        except (
            ApiError,
            NonJsonResponseError,
            aiohttp.ClientError,
            asyncio.TimeoutError,
        ) as e:
            self.log.warning(f"connection check failed: {e}")
            return False
        return True
