from typing import Literal

from pydantic import Field

from internfinder.schemas.external_jobs import CamelModel, JobType


class CompanyOut(CamelModel):
    id: str
    name: str
    industry: str
    city: str
    country: str = "India"
    total_jobs: int
    logo: str | None = None
    is_verified: bool = False


class CompanyJobOut(CamelModel):
    id: str
    title: str
    company: str
    city: str
    type: JobType = "Job"
    apply_platform: str | None = None
    apply_url: str | None = None
    source: Literal["Internal", "External"]


class CompaniesEnvelope(CamelModel):
    success: bool = True
    count: int
    data: list[CompanyOut] = Field(default_factory=list)


class CompanyJobsEnvelope(CamelModel):
    success: bool = True
    count: int
    data: list[CompanyJobOut] = Field(default_factory=list)
