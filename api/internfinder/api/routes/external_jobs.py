import logging

from fastapi import APIRouter, Depends

from internfinder.core.auth import CurrentUser
from internfinder.core.security import get_current_user
from internfinder.schemas.external_jobs import ExternalJobsEnvelope
from internfinder.services.external_jobs import ExternalJobsService, get_external_jobs_service

router = APIRouter()
logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Unable to fetch external jobs at the moment"


async def _external_jobs_envelope(service: ExternalJobsService, *, use_cache: bool) -> ExternalJobsEnvelope:
    # Listings are supplementary: failures degrade to an empty 200 payload.
    try:
        jobs = await service.fetch_external_jobs(use_cache=use_cache)
    except Exception as exc:
        logger.exception("external jobs endpoint failed")
        return ExternalJobsEnvelope(
            success=False,
            count=0,
            data=[],
            message=UNAVAILABLE_MESSAGE,
            error=str(exc) or exc.__class__.__name__,
        )
    return ExternalJobsEnvelope(
        success=True,
        count=len(jobs),
        data=jobs,
        message="External jobs fetched successfully",
    )


@router.get("", response_model=ExternalJobsEnvelope)
async def list_external_jobs(
    service: ExternalJobsService = Depends(get_external_jobs_service),
) -> ExternalJobsEnvelope:
    return await _external_jobs_envelope(service, use_cache=True)


@router.post("/refresh", response_model=ExternalJobsEnvelope)
async def refresh_external_jobs(
    user: CurrentUser = Depends(get_current_user),
    service: ExternalJobsService = Depends(get_external_jobs_service),
) -> ExternalJobsEnvelope:
    logger.info("external jobs refresh requested user_id=%s", user.user_id)
    service.clear_cache()
    return await _external_jobs_envelope(service, use_cache=False)
