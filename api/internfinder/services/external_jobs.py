from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
import logging

import httpx

from internfinder.core.config import get_settings
from internfinder.core.locale import is_india_location, normalize_city
from internfinder.core.telemetry import annotate_refresh_span, refresh_span
from internfinder.core.urls import APPLY_URL_SENTINEL, detect_apply_platform
from internfinder.schemas.external_jobs import ExternalJobOut, SourceJob
from internfinder.services.sources.arbeitnow import ArbeitnowSource
from internfinder.services.sources.base import JobSource, SourceResult
from internfinder.services.sources.jsearch import JSearchSource
from internfinder.services.sources.remotive import RemotiveSource

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = timedelta(minutes=20)
USER_AGENT = "internfinder-external-jobs/1.0"


@dataclass(slots=True)
class ExternalJobsCache:
    data: list[ExternalJobOut]
    fetched_at: datetime
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass(slots=True)
class AggregationReport:
    started_at: datetime
    sources: list[SourceResult] = field(default_factory=list)
    fetched: int = 0
    kept: int = 0
    dropped: int = 0
    served_stale: bool = False
    error: str | None = None

    @property
    def failed_sources(self) -> list[str]:
        return [result.source_name for result in self.sources if not result.ok]


def normalize_external_job(job: SourceJob) -> ExternalJobOut | None:
    """Canonical record for an India-located adapter job, or None when it is out of scope."""
    if not is_india_location(job.location):
        return None

    apply_url = job.apply_url or APPLY_URL_SENTINEL
    apply_platform = detect_apply_platform(apply_url)
    return ExternalJobOut(
        id=job.id,
        title=job.title,
        company=job.company,
        city=normalize_city(job.location),
        type="Internship" if job.type == "Internship" else "Job",
        description=job.description,
        apply_url=apply_url,
        apply_platform=apply_platform,
        is_verified=apply_platform is not None,
        source_name=job.source_name or "External",
        published_date=job.published_date,
    )


class ExternalJobsService:
    """Fans out to every job source and keeps the merged India-only result for ``cache_ttl``."""

    def __init__(
        self,
        sources: Sequence[JobSource],
        *,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.sources = list(sources)
        self.cache_ttl = cache_ttl
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._cache: ExternalJobsCache | None = None
        self.last_report: AggregationReport | None = None

    @property
    def cache(self) -> ExternalJobsCache | None:
        return self._cache

    def cache_is_fresh(self) -> bool:
        return self._cache is not None and self._cache.is_fresh(self._now())

    def clear_cache(self) -> None:
        self._cache = None
        logger.info("external jobs cache cleared")

    async def fetch_external_jobs(self, use_cache: bool = True) -> list[ExternalJobOut]:
        now = self._now()
        cached = self._cache
        if use_cache and cached is not None and cached.is_fresh(now):
            logger.debug("serving cached external jobs count=%s", len(cached.data))
            return cached.data

        report = AggregationReport(started_at=now)
        self.last_report = report
        try:
            with refresh_span(source_names=[source.name for source in self.sources], use_cache=use_cache) as span:
                jobs = await self._refresh(report)
                annotate_refresh_span(
                    span,
                    fetched=report.fetched,
                    kept=report.kept,
                    dropped=report.dropped,
                    failed_sources=report.failed_sources,
                    source_counts={result.source_name: len(result.jobs) for result in report.sources},
                )
        except Exception as exc:
            report.error = str(exc) or exc.__class__.__name__
            logger.exception("external jobs refresh failed")
            # Stale data is served even when already expired.
            if self._cache is not None:
                report.served_stale = True
                logger.info("serving stale external jobs count=%s", len(self._cache.data))
                return self._cache.data
            return []

        fetched_at = self._now()
        self._cache = ExternalJobsCache(
            data=jobs,
            fetched_at=fetched_at,
            expires_at=fetched_at + self.cache_ttl,
        )
        logger.info(
            "external jobs refreshed fetched=%s kept=%s dropped=%s failed_sources=%s",
            report.fetched,
            report.kept,
            report.dropped,
            report.failed_sources,
        )
        return jobs

    async def _refresh(self, report: AggregationReport) -> list[ExternalJobOut]:
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            outcomes = await asyncio.gather(
                *(source.fetch_jobs(client) for source in self.sources),
                return_exceptions=True,
            )

        merged: list[SourceJob] = []
        for source, outcome in zip(self.sources, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("external source raised source=%s error=%r", source.name, outcome)
                outcome = SourceResult.failed(source.name, str(outcome) or outcome.__class__.__name__)
            report.sources.append(outcome)
            merged.extend(outcome.jobs)
        report.fetched = len(merged)

        seen: set[str] = set()
        normalized: list[ExternalJobOut] = []
        for job in merged:
            record = normalize_external_job(job)
            if record is None or record.id in seen:
                continue
            seen.add(record.id)
            normalized.append(record)

        report.kept = len(normalized)
        report.dropped = report.fetched - report.kept
        return normalized

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)


def build_default_sources() -> list[JobSource]:
    settings = get_settings()
    return [
        RemotiveSource(categories=settings.remotive_categories, limit=settings.remotive_limit),
        ArbeitnowSource(),
        JSearchSource(
            api_key=settings.rapidapi_key,
            query=settings.jsearch_query,
            num_pages=settings.jsearch_num_pages,
        ),
    ]


@lru_cache
def get_external_jobs_service() -> ExternalJobsService:
    settings = get_settings()
    return ExternalJobsService(
        build_default_sources(),
        cache_ttl=timedelta(seconds=settings.external_jobs_cache_ttl_seconds),
        timeout_seconds=settings.external_jobs_timeout_seconds,
    )
