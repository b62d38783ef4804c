import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from internfinder.schemas.companies import CompaniesEnvelope, CompanyJobsEnvelope
from internfinder.services.companies import aggregate_companies, find_company, jobs_for_company, load_job_pool
from internfinder.services.external_jobs import ExternalJobsService, get_external_jobs_service
from internfinder.services.repository import get_repository

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=CompaniesEnvelope)
async def list_companies(
    repository=Depends(get_repository),
    external_jobs: ExternalJobsService = Depends(get_external_jobs_service),
) -> CompaniesEnvelope:
    pool = await load_job_pool(repository, external_jobs)
    companies = aggregate_companies(pool.jobs)
    logger.info(
        "aggregated companies count=%s jobs=%s internal_error=%s external_error=%s",
        len(companies),
        len(pool.jobs),
        pool.internal_error,
        pool.external_error,
    )
    return CompaniesEnvelope(success=True, count=len(companies), data=companies)


@router.get(
    "/{company_id}/jobs",
    response_model=CompanyJobsEnvelope,
    responses={404: {"description": "Company not found"}},
)
async def list_company_jobs(
    company_id: str,
    repository=Depends(get_repository),
    external_jobs: ExternalJobsService = Depends(get_external_jobs_service),
):
    entry = find_company(company_id)
    if entry is None:
        return JSONResponse(status_code=404, content={"success": False, "message": "Company not found"})

    pool = await load_job_pool(repository, external_jobs)
    jobs = jobs_for_company(entry, pool.jobs)
    return CompanyJobsEnvelope(success=True, count=len(jobs), data=jobs)
