import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from internfinder.core.auth import CurrentUser
from internfinder.core.security import get_current_user
from internfinder.schemas.applications import (
    ApplicationCreateRequest,
    ApplicationEnvelope,
    ApplicationListEnvelope,
    ApplicationOut,
)
from internfinder.services import applications as application_service
from internfinder.services.repository import (
    RepositoryConflictError,
    RepositoryError,
    RepositoryForbiddenError,
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _http_error(exc: RepositoryError) -> HTTPException:
    if isinstance(exc, RepositoryNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, RepositoryForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    # Duplicate applications share the 400 status of other rejected submissions.
    if isinstance(exc, (RepositoryValidationError, RepositoryConflictError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


async def _list_for(repository, user_id: str) -> list[ApplicationOut]:
    rows = await repository.list_applications(user_id=user_id)
    return [ApplicationOut(**row) for row in rows]


@router.post(
    "/apply",
    response_model=ApplicationEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"description": "Cancelled application re-submitted"}},
)
async def apply(
    payload: ApplicationCreateRequest,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    repository=Depends(get_repository),
) -> ApplicationEnvelope:
    if payload.missing_fields():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="jobId, fullName and email are required",
        )

    try:
        submission = await application_service.submit_application(
            repository,
            user_id=user.user_id,
            job_id=(payload.job_id or "").strip(),
            applicant=payload.applicant(),
        )
        applications = await _list_for(repository, user.user_id)
    except RepositoryError as exc:
        raise _http_error(exc) from exc

    if submission.resubmitted:
        response.status_code = status.HTTP_200_OK
    return ApplicationEnvelope(
        message="Application re-submitted" if submission.resubmitted else "Application submitted",
        application=ApplicationOut(**submission.application),
        data=applications,
    )


@router.get("/my", response_model=ApplicationListEnvelope)
async def my_applications(
    user: CurrentUser = Depends(get_current_user),
    repository=Depends(get_repository),
) -> ApplicationListEnvelope:
    try:
        applications = await _list_for(repository, user.user_id)
    except RepositoryError as exc:
        raise _http_error(exc) from exc
    return ApplicationListEnvelope(count=len(applications), data=applications)


@router.patch("/cancel/{application_id}", response_model=ApplicationEnvelope)
async def cancel_application(
    application_id: str,
    user: CurrentUser = Depends(get_current_user),
    repository=Depends(get_repository),
) -> ApplicationEnvelope:
    try:
        updated = await application_service.cancel_application(
            repository,
            user_id=user.user_id,
            application_id=application_id,
        )
        applications = await _list_for(repository, user.user_id)
    except RepositoryError as exc:
        raise _http_error(exc) from exc

    logger.info("application cancelled id=%s user_id=%s", application_id, user.user_id)
    return ApplicationEnvelope(
        message="Application cancelled",
        application=ApplicationOut(**updated),
        data=applications,
    )


async def _cancel_for_job(job_id: str, user: CurrentUser, repository) -> ApplicationEnvelope:
    try:
        updated = await application_service.cancel_application_for_job(
            repository,
            user_id=user.user_id,
            job_id=job_id,
        )
        applications = await _list_for(repository, user.user_id)
    except RepositoryError as exc:
        raise _http_error(exc) from exc

    logger.info("application cancelled job_id=%s user_id=%s", job_id, user.user_id)
    return ApplicationEnvelope(
        message="Application cancelled",
        application=ApplicationOut(**updated),
        data=applications,
    )


@router.patch("/{job_id}/cancel", response_model=ApplicationEnvelope)
async def cancel_application_by_job(
    job_id: str,
    user: CurrentUser = Depends(get_current_user),
    repository=Depends(get_repository),
) -> ApplicationEnvelope:
    return await _cancel_for_job(job_id, user, repository)


@router.delete("/{job_id}", response_model=ApplicationEnvelope)
async def withdraw_application(
    job_id: str,
    user: CurrentUser = Depends(get_current_user),
    repository=Depends(get_repository),
) -> ApplicationEnvelope:
    # Withdrawing keeps the row as Cancelled so the user can re-apply later.
    return await _cancel_for_job(job_id, user, repository)
