from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
import logging
import re
from typing import Any, Literal

from internfinder.core.locale import REMOTE_INDIA, is_india_location, normalize_city
from internfinder.core.urls import company_slug
from internfinder.schemas.companies import CompanyJobOut, CompanyOut
from internfinder.schemas.external_jobs import ExternalJobOut
from internfinder.services.external_jobs import ExternalJobsService

logger = logging.getLogger(__name__)

JobOrigin = Literal["Internal", "External"]


@dataclass(frozen=True, slots=True)
class CompanyEntry:
    name: str
    industry: str
    logo: str | None = None
    is_verified: bool = True

    @property
    def slug(self) -> str:
        return company_slug(self.name)


def _company(name: str, industry: str) -> CompanyEntry:
    logo_name = re.sub(r"[^a-z0-9-]", "", company_slug(name))
    return CompanyEntry(name=name, industry=industry, logo=f"/logos/{logo_name}.png")


INDIA_COMPANIES: tuple[CompanyEntry, ...] = (
    _company("TCS", "IT & Software"),
    _company("Infosys", "IT & Software"),
    _company("Wipro", "IT & Software"),
    _company("Accenture India", "IT & Software"),
    _company("Cognizant India", "IT & Software"),
    _company("Capgemini India", "IT & Software"),
    _company("Tech Mahindra", "IT & Software"),
    _company("HCL Technologies", "IT & Software"),
    _company("Zoho", "IT & Software"),
    _company("Paytm", "FinTech"),
    _company("Flipkart", "E-commerce"),
    _company("Razorpay", "FinTech"),
    _company("Swiggy", "E-commerce"),
    _company("Zomato", "E-commerce"),
    _company("Byju's", "EdTech"),
    _company("Internshala", "EdTech"),
    _company("Unstop", "EdTech"),
    _company("Microsoft India", "IT & Software"),
    _company("Amazon India", "E-commerce"),
    _company("Google India", "IT & Software"),
)


@dataclass(slots=True)
class PooledJob:
    id: str
    title: str
    company: str
    location: str
    type: str
    origin: JobOrigin
    apply_url: str | None = None
    apply_platform: str | None = None


@dataclass(slots=True)
class JobPool:
    """Internal and external jobs side by side, with whichever side failed recorded."""

    jobs: list[PooledJob] = field(default_factory=list)
    internal_error: str | None = None
    external_error: str | None = None

    @property
    def partial(self) -> bool:
        return self.internal_error is not None or self.external_error is not None


def pool_internal_job(row: dict[str, Any]) -> PooledJob:
    return PooledJob(
        id=str(row.get("id") or ""),
        title=row.get("title") or "",
        company=row.get("company") or "Unknown Company",
        location=row.get("city") or row.get("location") or "",
        type=row.get("type") or "Job",
        origin="Internal",
        apply_url=row.get("apply_url"),
        apply_platform=row.get("platform") or "Internal",
    )


def pool_external_job(job: ExternalJobOut) -> PooledJob:
    return PooledJob(
        id=job.id,
        title=job.title,
        company=job.company or "Unknown Company",
        location=job.city,
        type=job.type,
        origin="External",
        apply_url=job.apply_url,
        apply_platform=job.apply_platform,
    )


async def load_job_pool(repository: Any, external_jobs: ExternalJobsService) -> JobPool:
    internal, external = await asyncio.gather(
        repository.list_jobs(),
        external_jobs.fetch_external_jobs(use_cache=True),
        return_exceptions=True,
    )

    pool = JobPool()
    if isinstance(internal, BaseException):
        pool.internal_error = str(internal) or internal.__class__.__name__
        logger.warning("internal jobs unavailable for aggregation error=%r", internal)
    else:
        pool.jobs.extend(pool_internal_job(row) for row in internal)

    if isinstance(external, BaseException):
        pool.external_error = str(external) or external.__class__.__name__
        logger.warning("external jobs unavailable for aggregation error=%r", external)
    else:
        pool.jobs.extend(pool_external_job(job) for job in external)

    return pool


def india_jobs(jobs: list[PooledJob]) -> list[PooledJob]:
    return [job for job in jobs if is_india_location(job.location)]


def find_company(company_id: str) -> CompanyEntry | None:
    return next((entry for entry in INDIA_COMPANIES if entry.slug == company_id), None)


def matches_company(job: PooledJob, entry: CompanyEntry) -> bool:
    return entry.name.lower() in (job.company or "").lower()


def representative_city(jobs: list[PooledJob]) -> str:
    counts = Counter(normalize_city(job.location) or REMOTE_INDIA for job in jobs)
    if not counts:
        return REMOTE_INDIA
    # Counter keeps first-seen order; the stable sort makes the earliest city win ties.
    return sorted(counts, key=counts.__getitem__, reverse=True)[0]


def aggregate_companies(jobs: list[PooledJob]) -> list[CompanyOut]:
    scoped = india_jobs(jobs)
    companies: list[CompanyOut] = []
    for entry in INDIA_COMPANIES:
        matched = [job for job in scoped if matches_company(job, entry)]
        if not matched:
            continue
        companies.append(
            CompanyOut(
                id=entry.slug,
                name=entry.name,
                industry=entry.industry,
                city=representative_city(matched),
                country="India",
                total_jobs=len(matched),
                logo=entry.logo,
                is_verified=entry.is_verified,
            )
        )
    companies.sort(key=lambda company: company.total_jobs, reverse=True)
    return companies


def jobs_for_company(entry: CompanyEntry, jobs: list[PooledJob]) -> list[CompanyJobOut]:
    return [
        CompanyJobOut(
            id=job.id,
            title=job.title,
            company=job.company,
            city=normalize_city(job.location),
            type="Internship" if job.type == "Internship" else "Job",
            apply_platform=job.apply_platform,
            apply_url=job.apply_url,
            source=job.origin,
        )
        for job in india_jobs(jobs)
        if matches_company(job, entry)
    ]
