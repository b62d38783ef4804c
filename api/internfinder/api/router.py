from fastapi import APIRouter

from internfinder.api.routes import applications, companies, external_jobs, health, jobs

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
api_router.include_router(applications.router, prefix="/api/applications", tags=["applications"])
api_router.include_router(external_jobs.router, prefix="/api/external-jobs", tags=["external-jobs"])
api_router.include_router(companies.router, prefix="/api/companies", tags=["companies"])
