from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field

from internfinder.schemas.external_jobs import SourceJob
from internfinder.services.sources.base import (
    DEFAULT_COMPANY,
    DEFAULT_DESCRIPTION,
    DEFAULT_TITLE,
    JobSource,
    SourceResult,
    dedupe_by_id,
    detect_job_type,
    first_text,
    parse_timestamp,
    strip_html,
    validate_items,
)

logger = logging.getLogger(__name__)

REMOTIVE_URL = "https://remotive.com/api/remote-jobs"
DEFAULT_CATEGORIES = ("software-dev", "design", "marketing", "sales", "product", "data", "business")


class RemotiveJob(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str
    url: str | None = None
    title: str | None = None
    company_name: str | None = None
    candidate_required_location: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    publication_date: str | None = None


def map_remotive_job(job: RemotiveJob, *, fetched_at: datetime) -> SourceJob:
    return SourceJob(
        id=f"remotive-{job.id}",
        title=first_text(job.title) or DEFAULT_TITLE,
        company=first_text(job.company_name) or DEFAULT_COMPANY,
        location=first_text(job.candidate_required_location) or "Remote",
        type=detect_job_type(job.title, job.description, tags=job.tags),
        description=strip_html(job.description) or DEFAULT_DESCRIPTION,
        apply_url=first_text(job.url) or "#",
        source_name=RemotiveSource.name,
        published_date=parse_timestamp(job.publication_date) or fetched_at,
    )


class RemotiveSource(JobSource):
    """Remotive public API, queried once per category to widen coverage."""

    name = "Remotive"

    def __init__(self, categories: Sequence[str] = DEFAULT_CATEGORIES, limit: int = 50) -> None:
        self.categories = tuple(categories)
        self.limit = limit

    async def _fetch(self, client: httpx.AsyncClient) -> SourceResult:
        outcomes = await asyncio.gather(
            *(self._fetch_category(client, category) for category in self.categories),
            return_exceptions=True,
        )

        jobs: list[SourceJob] = []
        failed: list[str] = []
        for category, outcome in zip(self.categories, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("remotive category failed category=%s error=%r", category, outcome)
                failed.append(category)
                continue
            jobs.extend(outcome)

        if self.categories and len(failed) == len(self.categories):
            return SourceResult.failed(self.name, f"all categories failed: {', '.join(failed)}")

        unique = dedupe_by_id(jobs)
        logger.info(
            "remotive categories merged categories=%s failed=%s fetched=%s unique=%s",
            len(self.categories),
            len(failed),
            len(jobs),
            len(unique),
        )
        return SourceResult(source_name=self.name, jobs=unique)

    async def _fetch_category(self, client: httpx.AsyncClient, category: str) -> list[SourceJob]:
        response = await client.get(REMOTIVE_URL, params={"limit": self.limit, "category": category})
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("remotive payload is not an object")
        fetched_at = self._now()
        return [
            map_remotive_job(job, fetched_at=fetched_at)
            for job in validate_items(RemotiveJob, payload.get("jobs", []), source_name=self.name)
        ]
