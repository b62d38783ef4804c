from __future__ import annotations

from datetime import datetime
from typing import Any

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

ARBEITNOW_URL = "https://www.arbeitnow.com/api/job-board-api"


class ArbeitnowJob(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slug: str | None = None
    company_name: str | None = None
    title: str | None = None
    description: str | None = None
    remote: bool = False
    url: str | None = None
    tags: list[str] = Field(default_factory=list)
    job_types: list[str] = Field(default_factory=list)
    location: str | None = None
    created_at: int | float | str | None = None


def map_arbeitnow_job(job: ArbeitnowJob, *, index: int, fetched_at: datetime) -> SourceJob:
    local_id = first_text(job.slug) or str(index)
    location = first_text(job.location) or ("Remote" if job.remote else "Not specified")
    return SourceJob(
        id=f"arbeitnow-{local_id}",
        title=first_text(job.title) or DEFAULT_TITLE,
        company=first_text(job.company_name) or DEFAULT_COMPANY,
        location=location,
        type=detect_job_type(job.title, job.description, tags=[*job.tags, *job.job_types]),
        description=strip_html(job.description) or DEFAULT_DESCRIPTION,
        apply_url=first_text(job.url) or "#",
        source_name=ArbeitnowSource.name,
        published_date=parse_timestamp(job.created_at) or fetched_at,
    )


class ArbeitnowSource(JobSource):
    name = "Arbeitnow"

    async def _fetch(self, client: httpx.AsyncClient) -> SourceResult:
        response = await client.get(ARBEITNOW_URL)
        response.raise_for_status()
        payload: Any = response.json()
        if not isinstance(payload, dict):
            raise ValueError("arbeitnow payload is not an object")

        fetched_at = self._now()
        items = validate_items(ArbeitnowJob, payload.get("data", []), source_name=self.name)
        jobs = [map_arbeitnow_job(job, index=index, fetched_at=fetched_at) for index, job in enumerate(items)]
        return SourceResult(source_name=self.name, jobs=dedupe_by_id(jobs))
