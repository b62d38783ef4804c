from fastapi import APIRouter, Depends

from internfinder.schemas.external_jobs import ExternalJobsHealthOut, SourceStatusOut
from internfinder.services.external_jobs import ExternalJobsService, get_external_jobs_service

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz/external-jobs", response_model=ExternalJobsHealthOut)
async def external_jobs_health(
    service: ExternalJobsService = Depends(get_external_jobs_service),
) -> ExternalJobsHealthOut:
    cache = service.cache
    report = service.last_report
    health = ExternalJobsHealthOut(
        cached=cache is not None,
        fresh=service.cache_is_fresh(),
        count=len(cache.data) if cache is not None else 0,
        fetched_at=cache.fetched_at if cache is not None else None,
        expires_at=cache.expires_at if cache is not None else None,
    )
    if report is not None:
        health.sources = [
            SourceStatusOut(
                source_name=result.source_name,
                ok=result.ok,
                skipped=result.skipped,
                job_count=len(result.jobs),
                error=result.error,
            )
            for result in report.sources
        ]
        health.kept = report.kept
        health.dropped = report.dropped
        health.served_stale = report.served_stale
        health.refresh_error = report.error
    return health
