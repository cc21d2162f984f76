import math
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

IN_FLIGHT_STATUSES = frozenset({"queued", "processing", "pending"})


def is_in_flight(status: Optional[str]) -> bool:
    return status in IN_FLIGHT_STATUSES


class PollPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    interval_ms: int = Field(default=2000, gt=0)
    max_attempts: Optional[int] = Field(default=None, gt=0)

    def resolve(self, poll_timeout_ms: int) -> "PollPolicy":
        """Fill in max_attempts so interval * attempts covers the timeout"""
        if self.max_attempts is not None:
            return self
        return PollPolicy(
            interval_ms=self.interval_ms,
            max_attempts=max(1, math.ceil(poll_timeout_ms / self.interval_ms)),
        )


class JobKind(str, Enum):
    enrichment = "enrichment"
    search = "search"
    interests = "interests"
    article_search = "articlesearch"
    deep_research = "deep-research"
    competitor_engagements = "competitor-engagements"
    interactions = "interactions"

    @property
    def endpoint(self) -> str:
        # Submission and polling share the path; only method and query differ
        return f"/person/{self.value}"

    @property
    def poll_policy(self) -> Optional[PollPolicy]:
        return _POLICY_OVERRIDES.get(self)


# Deep research runs 2-5 minutes server-side, so it gets a 10 minute ceiling
_POLICY_OVERRIDES = {
    JobKind.deep_research: PollPolicy(interval_ms=5000, max_attempts=120),
}

USAGE_ENDPOINT = "/usage"


class JobData(BaseModel):
    model_config = ConfigDict(extra="allow")

    request_id: Optional[str] = None
    status: Optional[str] = None

    @field_validator("request_id", "status", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)


class JobEnvelope(BaseModel):
    """The `{data: {request_id, status, ...}}` shape every job endpoint returns"""

    model_config = ConfigDict(extra="allow")

    data: Optional[JobData] = None

    @field_validator("data", mode="before")
    @classmethod
    def _mapping_only(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @property
    def request_id(self) -> Optional[str]:
        return self.data.request_id if self.data else None

    @property
    def status(self) -> Optional[str]:
        return self.data.status if self.data else None


class JobResult(BaseModel):
    kind: JobKind
    request_id: Optional[str] = None
    status: Optional[str] = None
    data: dict = Field(default_factory=dict)
    raw_response: dict
    attempts: int = 0
    elapsed_time: float = 0.0

    @classmethod
    def from_response(
        cls,
        kind: JobKind,
        raw_response: dict,
        request_id: Optional[str] = None,
        attempts: int = 0,
        elapsed_time: float = 0.0,
    ) -> "JobResult":
        envelope = JobEnvelope.model_validate(raw_response)
        data = raw_response.get("data")
        return cls(
            kind=kind,
            request_id=request_id or envelope.request_id,
            status=envelope.status,
            data=data if isinstance(data, dict) else {},
            raw_response=raw_response,
            attempts=attempts,
            elapsed_time=elapsed_time,
        )

    @property
    def result(self) -> Any:
        """The job payload, falling back to the whole data mapping"""
        return self.data.get("result", self.data)


class UsageResult(BaseModel):
    data: dict = Field(default_factory=dict)
    raw_response: dict

    @classmethod
    def from_response(cls, raw_response: dict) -> "UsageResult":
        data = raw_response.get("data")
        return cls(
            data=data if isinstance(data, dict) else {},
            raw_response=raw_response,
        )


class JobParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_body(self) -> dict:
        return self.model_dump(exclude_none=True)


class SearchParams(JobParams):
    company_name: Optional[str] = None
    role: Optional[str] = None
    geography: Optional[str] = None
    person_name: Optional[str] = None
    college: Optional[str] = None
    tenure: Optional[int] = None
    keywords: Optional[str] = None
    high_connection_count: Optional[bool] = None
    limit: Optional[int] = None
    page: Optional[int] = None
    exact_match: Optional[bool] = None
    enrich_results: Optional[bool] = None

    @model_validator(mode="after")
    def _require_criteria(self) -> "SearchParams":
        if not (self.company_name or self.role or self.geography or self.person_name):
            raise ValueError(
                "At least one of company_name, role, geography, or person_name is required"
            )
        return self


class EnrichmentParams(JobParams):
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    phone: Optional[str] = None
    social_media_url: Optional[str] = None
    newsfeed: Optional[Union[str, List[str]]] = None
    lite_enrich: Optional[bool] = None

    @model_validator(mode="after")
    def _require_identifier(self) -> "EnrichmentParams":
        if not (self.email or self.linkedin_url or self.phone or self.social_media_url):
            raise ValueError(
                "Provide at least one of: email, linkedin_url, phone, or social_media_url"
            )
        return self

    def to_body(self) -> dict:
        body = super().to_body()
        # The wire API only knows social_media_url
        if self.linkedin_url and not self.social_media_url:
            body["social_media_url"] = body.pop("linkedin_url")
        return body


class InterestsParams(JobParams):
    social_media_url: str = Field(min_length=1)


class ArticleSearchParams(JobParams):
    person_name: str = Field(min_length=1)
    company_name: Optional[str] = None
    sort: Optional[Literal["recent", "relevance"]] = None
    limit: Optional[int] = None


class DeepResearchParams(JobParams):
    email: Optional[str] = None
    phone: Optional[str] = None
    social_media_url: Optional[Union[str, List[str]]] = None
    name: Optional[str] = None
    company: Optional[str] = None
    city: Optional[str] = None

    @model_validator(mode="after")
    def _require_identifier(self) -> "DeepResearchParams":
        if not (self.email or self.phone or self.social_media_url or self.name):
            raise ValueError(
                "Provide at least one of: email, phone, social_media_url, "
                "or name (with company or city)"
            )
        if self.name and not (self.company or self.city):
            raise ValueError(
                "When using name, you must also provide company or city for disambiguation"
            )
        return self


class CompetitorEngagementsParams(JobParams):
    linkedin_urls: List[str] = Field(min_length=1, max_length=50)
    max_items: Optional[int] = None


class InteractionsParams(JobParams):
    type: Literal["replies", "followers", "following", "followers,following"]
    social_media_url: str = Field(min_length=1)
    max_results: Optional[int] = None
