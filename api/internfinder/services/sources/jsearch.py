from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

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

JSEARCH_URL = "https://jsearch.p.rapidapi.com/search"
JSEARCH_HOST = "jsearch.p.rapidapi.com"
COUNTRY_NAMES = {"IN": "India"}


class JSearchJob(BaseModel):
    model_config = ConfigDict(extra="ignore")

    job_id: str
    job_title: str | None = None
    employer_name: str | None = None
    job_city: str | None = None
    job_state: str | None = None
    job_country: str | None = None
    job_is_remote: bool | None = None
    job_employment_type: str | None = None
    job_description: str | None = None
    job_highlights: dict[str, list[str]] | None = None
    job_apply_link: str | None = None
    job_posted_at_datetime_utc: str | None = None


def _jsearch_location(job: JSearchJob) -> str:
    country = first_text(job.job_country)
    if country is not None:
        country = COUNTRY_NAMES.get(country.upper(), country)
    parts = [part for part in (first_text(job.job_city), first_text(job.job_state), country) if part]
    if job.job_is_remote:
        parts.insert(0, "Remote")
    return ", ".join(parts) or "Remote"


def _highlight_text(job: JSearchJob) -> str | None:
    if not job.job_highlights:
        return None
    return " ".join(item for items in job.job_highlights.values() for item in items) or None


def map_jsearch_job(job: JSearchJob, *, fetched_at: datetime) -> SourceJob:
    description = first_text(job.job_description) or _highlight_text(job)
    return SourceJob(
        id=f"jsearch-{job.job_id}",
        title=first_text(job.job_title) or DEFAULT_TITLE,
        company=first_text(job.employer_name) or DEFAULT_COMPANY,
        location=_jsearch_location(job),
        type=detect_job_type(job.job_title, description, job.job_employment_type),
        description=strip_html(description) or DEFAULT_DESCRIPTION,
        apply_url=first_text(job.job_apply_link) or "#",
        source_name=JSearchSource.name,
        published_date=parse_timestamp(job.job_posted_at_datetime_utc) or fetched_at,
    )


class JSearchSource(JobSource):
    """JSearch via RapidAPI; a permanent no-op while no API key is configured."""

    name = "JSearch"

    def __init__(self, api_key: str | None, query: str, num_pages: int = 3) -> None:
        self.api_key = api_key
        self.query = query
        self.num_pages = num_pages

    async def fetch_jobs(self, client: httpx.AsyncClient) -> SourceResult:
        if not self.api_key:
            return SourceResult(source_name=self.name, skipped=True)
        return await super().fetch_jobs(client)

    async def _fetch(self, client: httpx.AsyncClient) -> SourceResult:
        response = await client.get(
            JSEARCH_URL,
            params={
                "query": self.query,
                "page": "1",
                "num_pages": str(self.num_pages),
                "employment_types": "FULLTIME,INTERN",
            },
            headers={"X-RapidAPI-Key": self.api_key or "", "X-RapidAPI-Host": JSEARCH_HOST},
        )
        response.raise_for_status()
        payload: Any = response.json()
        if not isinstance(payload, dict):
            raise ValueError("jsearch payload is not an object")

        fetched_at = self._now()
        items = validate_items(JSearchJob, payload.get("data", []), source_name=self.name)
        jobs = [map_jsearch_job(job, fetched_at=fetched_at) for job in items]
        return SourceResult(source_name=self.name, jobs=dedupe_by_id(jobs))
