from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from internfinder.schemas.external_jobs import CamelModel, JobType


class JobCreateRequest(CamelModel):
    title: str | None = None
    company: str | None = None
    location: str | None = None
    type: str | None = None
    description: str | None = None
    apply_url: str | None = None

    def missing_fields(self) -> list[str]:
        required = ("title", "company", "location", "type", "description")
        return [name for name in required if not (getattr(self, name) or "").strip()]


class JobOut(CamelModel):
    id: str
    title: str
    company: str
    location: str
    city: str | None = None
    country: str = "India"
    type: JobType
    job_type: Literal["Internal", "Platform", "ExternalAPI"] = "Internal"
    apply_type: Literal["internal", "external"] = "internal"
    apply_url: str | None = None
    platform: str | None = None
    is_verified: bool = False
    description: str | None = None
    created_at: datetime


class JobListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: list[JobOut] = Field(default_factory=list)


class JobEnvelope(CamelModel):
    success: bool = True
    message: str | None = None
    data: JobOut | dict[str, Any]
