import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from internfinder.core.auth import CurrentUser
from internfinder.core.locale import is_india_location, normalize_city
from internfinder.core.security import get_current_user
from internfinder.schemas.jobs import JobCreateRequest, JobEnvelope, JobListEnvelope, JobOut
from internfinder.services.repository import (
    JOB_TYPES,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def filter_jobs(
    jobs: list[JobOut],
    *,
    country: str | None = None,
    platform: str | None = None,
    city: str | None = None,
    job_type: str | None = None,
) -> list[JobOut]:
    if country and country.lower() == "india":
        jobs = [
            job
            for job in jobs
            if (job.country or "").lower() == "india" or "india" in (job.location or job.city or "").lower()
        ]
    if platform:
        jobs = [job for job in jobs if (job.platform or "").lower() == platform.lower()]
    if city:
        jobs = [job for job in jobs if city.lower() in (job.city or "").lower()]
    if job_type:
        jobs = [job for job in jobs if job.type.lower() == job_type.lower()]
    return jobs


@router.get("", response_model=JobListEnvelope)
async def list_jobs(
    country: str | None = Query(default=None, min_length=1),
    platform: str | None = Query(default=None, min_length=1),
    city: str | None = Query(default=None, min_length=1),
    job_type: str | None = Query(default=None, alias="type", min_length=1),
    repository=Depends(get_repository),
) -> JobListEnvelope:
    try:
        rows = await repository.list_jobs()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    jobs = [JobOut(**row) for row in rows]
    jobs = filter_jobs(jobs, country=country, platform=platform, city=city, job_type=job_type)
    return JobListEnvelope(success=True, count=len(jobs), data=jobs)


@router.get("/{job_id}", response_model=JobEnvelope)
async def get_job(job_id: str, repository=Depends(get_repository)) -> JobEnvelope:
    try:
        row = await repository.get_job(job_id=job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobEnvelope(success=True, data=JobOut(**row))


@router.post("/add", response_model=JobEnvelope, status_code=status.HTTP_201_CREATED)
async def add_job(
    payload: JobCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    repository=Depends(get_repository),
) -> JobEnvelope:
    missing = payload.missing_fields()
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide all fields: title, company, location, type, description",
        )
    if payload.type not in JOB_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Type must be either "Job" or "Internship"')

    location = payload.location or ""
    city = normalize_city(location) if is_india_location(location) else None
    try:
        row = await repository.create_job(
            title=payload.title or "",
            company=payload.company or "",
            location=location,
            job_type=payload.type,
            description=payload.description or "",
            city=city,
            apply_type="external" if payload.apply_url else "internal",
            apply_url=payload.apply_url,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info("job created id=%s by user_id=%s role=%s", row["id"], user.user_id, user.role)
    return JobEnvelope(success=True, message="Job added successfully", data=JobOut(**row))


@router.delete("/{job_id}", response_model=JobEnvelope)
async def delete_job(
    job_id: str,
    user: CurrentUser = Depends(get_current_user),
    repository=Depends(get_repository),
) -> JobEnvelope:
    try:
        await repository.delete_job(job_id=job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    logger.info("job deleted id=%s by user_id=%s", job_id, user.user_id)
    return JobEnvelope(success=True, message="Job deleted successfully", data={})
