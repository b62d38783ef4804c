from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

JobType = Literal["Job", "Internship"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourceJob(BaseModel):
    """Adapter output before locale filtering and platform tagging."""

    id: str
    title: str
    company: str
    location: str
    type: JobType = "Job"
    description: str
    apply_url: str
    source_name: str
    published_date: datetime


class ExternalJobOut(CamelModel):
    id: str
    title: str
    company: str
    city: str
    type: JobType = "Job"
    description: str
    apply_url: str
    apply_platform: str | None = None
    is_verified: bool = False
    source: Literal["External"] = "External"
    source_name: str
    published_date: datetime


class ExternalJobsEnvelope(CamelModel):
    success: bool
    count: int
    data: list[ExternalJobOut] = Field(default_factory=list)
    message: str
    error: str | None = None


class SourceStatusOut(CamelModel):
    source_name: str
    ok: bool
    skipped: bool = False
    job_count: int = 0
    error: str | None = None


class ExternalJobsHealthOut(CamelModel):
    cached: bool
    fresh: bool
    count: int = 0
    fetched_at: datetime | None = None
    expires_at: datetime | None = None
    sources: list[SourceStatusOut] = Field(default_factory=list)
    kept: int = 0
    dropped: int = 0
    served_stale: bool = False
    refresh_error: str | None = None
