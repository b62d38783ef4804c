from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from internfinder.schemas.external_jobs import CamelModel

ApplicationStatus = Literal["Applied", "Cancelled"]


class ApplicationCreateRequest(CamelModel):
    job_id: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    college: str | None = None
    degree: str | None = None
    current_year: str | None = None
    skills: list[str] | str | None = None
    message: str | None = None
    # Path of an already-stored resume; uploads are handled outside this API.
    resume_url: str | None = None

    def missing_fields(self) -> list[str]:
        required = ("job_id", "full_name", "email")
        return [name for name in required if not (getattr(self, name) or "").strip()]

    def skill_list(self) -> list[str]:
        if not self.skills:
            return []
        raw = self.skills.split(",") if isinstance(self.skills, str) else self.skills
        return [skill.strip() for skill in raw if skill.strip()]

    def applicant(self) -> dict[str, Any]:
        return {
            "full_name": (self.full_name or "").strip(),
            "email": (self.email or "").strip(),
            "phone": self.phone,
            "college": self.college,
            "degree": self.degree,
            "current_year": self.current_year,
            "skills": self.skill_list(),
            "message": self.message,
            "resume_url": self.resume_url,
        }


class ApplicationJobOut(CamelModel):
    id: str
    title: str
    company: str
    city: str | None = None
    country: str = "India"
    type: str
    job_type: str = "Internal"
    apply_type: str = "internal"
    apply_url: str | None = None


class ApplicationOut(CamelModel):
    id: str
    user_id: str
    job_id: str
    full_name: str
    email: str
    phone: str | None = None
    college: str | None = None
    degree: str | None = None
    current_year: str | None = None
    skills: list[str] = Field(default_factory=list)
    message: str | None = None
    resume_url: str | None = None
    status: ApplicationStatus = "Applied"
    applied_at: datetime
    job: ApplicationJobOut | None = None


class ApplicationListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: list[ApplicationOut] = Field(default_factory=list)


class ApplicationEnvelope(CamelModel):
    """One changed application plus the caller's refreshed list."""

    success: bool = True
    message: str
    application: ApplicationOut
    data: list[ApplicationOut] = Field(default_factory=list)
