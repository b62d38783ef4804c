from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from internfinder.services.repository import (
    RepositoryConflictError,
    RepositoryForbiddenError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)

logger = logging.getLogger(__name__)

ACTIVE = "Applied"
CANCELLED = "Cancelled"
EXTERNAL_APPLY_MESSAGE = "Cannot apply here. Please use external platform link."
DUPLICATE_MESSAGE = "You have already applied for this job"


@dataclass(slots=True)
class Submission:
    application: dict[str, Any]
    resubmitted: bool = False


async def submit_application(
    repository: Any,
    *,
    user_id: str,
    job_id: str,
    applicant: dict[str, Any],
) -> Submission:
    """Apply to an internal job, reviving a cancelled application instead of adding a second row."""
    job = await repository.get_job(job_id=job_id)
    if (job.get("apply_type") or "internal") != "internal":
        raise RepositoryValidationError(EXTERNAL_APPLY_MESSAGE)

    existing = await repository.find_application(user_id=user_id, job_id=job_id)
    if existing is not None and existing["status"] == ACTIVE:
        raise RepositoryConflictError(DUPLICATE_MESSAGE)

    if existing is not None:
        application = await repository.reapply_application(application_id=existing["id"], applicant=applicant)
        logger.info("application resubmitted id=%s job_id=%s user_id=%s", application["id"], job_id, user_id)
        return Submission(application=application, resubmitted=True)

    application = await repository.create_application(user_id=user_id, job_id=job_id, applicant=applicant)
    logger.info("application created id=%s job_id=%s user_id=%s", application["id"], job_id, user_id)
    return Submission(application=application)


async def cancel_application(repository: Any, *, user_id: str, application_id: str) -> dict[str, Any]:
    application = await repository.get_application(application_id=application_id)
    if application["user_id"] != user_id:
        raise RepositoryForbiddenError("Not authorized")
    return await repository.cancel_application(application_id=application_id)


async def cancel_application_for_job(repository: Any, *, user_id: str, job_id: str) -> dict[str, Any]:
    existing = await repository.find_application(user_id=user_id, job_id=job_id)
    if existing is None:
        raise RepositoryNotFoundError("Application not found for this job")
    return await repository.cancel_application(application_id=existing["id"])
