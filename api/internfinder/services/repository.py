from __future__ import annotations

from functools import lru_cache
from typing import Any
from uuid import UUID

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc  # type: ignore[import-untyped]

from internfinder.core.config import get_settings

JOB_TYPES = {"Job", "Internship"}
JOB_SOURCE_KINDS = {"Internal", "Platform", "ExternalAPI"}
APPLY_TYPES = {"internal", "external"}
APPLICATION_STATUSES = {"Applied", "Cancelled"}
APPLICANT_FIELDS = (
    "full_name",
    "email",
    "phone",
    "college",
    "degree",
    "current_year",
    "skills",
    "message",
    "resume_url",
)

_JOB_COLUMNS = """
  id::text as id,
  title,
  company,
  location,
  city,
  country,
  type,
  job_type,
  apply_type,
  apply_url,
  platform,
  is_verified,
  description,
  created_at
"""

_APPLICATION_COLUMNS = """
  a.id::text as id,
  a.user_id,
  a.job_id::text as job_id,
  a.full_name,
  a.email,
  a.phone,
  a.college,
  a.degree,
  a.current_year,
  a.skills,
  a.message,
  a.resume_url,
  a.status,
  a.applied_at,
  j.title as job_title,
  j.company as job_company,
  j.city as job_city,
  j.country as job_country,
  j.type as job_kind,
  j.job_type as job_source_kind,
  j.apply_type as job_apply_type,
  j.apply_url as job_apply_url
"""


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an operation violates state transition rules."""


class RepositoryForbiddenError(RepositoryError):
    """Raised when an operation is not permitted for the actor."""


class RepositoryValidationError(RepositoryError):
    """Raised when payload validation fails before persistence."""


class PostgresRepository:
    def __init__(self, database_url: str | None, min_pool_size: int, max_pool_size: int) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def list_jobs(self) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        try:
            rows = await pool.fetch(f"select {_JOB_COLUMNS} from jobs order by created_at desc, id asc")
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to load jobs") from exc
        return [self._job_row_to_dict(row) for row in rows]

    async def get_job(self, *, job_id: str) -> dict[str, Any]:
        if not self._is_uuid(job_id):
            raise RepositoryValidationError("invalid job id format")
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(f"select {_JOB_COLUMNS} from jobs where id = $1::uuid", job_id)
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to load job") from exc
        if row is None:
            raise RepositoryNotFoundError("job not found")
        return self._job_row_to_dict(row)

    async def create_job(
        self,
        *,
        title: str,
        company: str,
        location: str,
        job_type: str,
        description: str,
        city: str | None = None,
        country: str = "India",
        source_kind: str = "Internal",
        apply_type: str = "internal",
        apply_url: str | None = None,
        platform: str | None = None,
        is_verified: bool = False,
    ) -> dict[str, Any]:
        if job_type not in JOB_TYPES:
            raise RepositoryValidationError('type must be either "Job" or "Internship"')
        if source_kind not in JOB_SOURCE_KINDS:
            raise RepositoryValidationError(f"unsupported job source kind: {source_kind}")
        if apply_type not in APPLY_TYPES:
            raise RepositoryValidationError(f"unsupported apply type: {apply_type}")

        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into jobs (
                  title, company, location, city, country, type,
                  job_type, apply_type, apply_url, platform, is_verified, description
                )
                values ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
                returning {_JOB_COLUMNS}
                """,
                title.strip(),
                company.strip(),
                location.strip(),
                city,
                country,
                job_type,
                source_kind,
                apply_type,
                apply_url,
                platform,
                is_verified,
                description.strip(),
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to insert job") from exc
        return self._job_row_to_dict(row)

    async def delete_job(self, *, job_id: str) -> None:
        if not self._is_uuid(job_id):
            raise RepositoryValidationError("invalid job id format")
        pool = await self._get_pool()
        try:
            deleted = await pool.fetchval("delete from jobs where id = $1::uuid returning id", job_id)
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to delete job") from exc
        if deleted is None:
            raise RepositoryNotFoundError("job not found")

    async def list_applications(self, *, user_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        try:
            rows = await pool.fetch(
                f"""
                select {_APPLICATION_COLUMNS}
                from applications a
                left join jobs j on j.id = a.job_id
                where a.user_id = $1
                order by a.applied_at desc, a.id asc
                """,
                user_id,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to load applications") from exc
        return [self._application_row_to_dict(row) for row in rows]

    async def get_application(self, *, application_id: str) -> dict[str, Any]:
        if not self._is_uuid(application_id):
            raise RepositoryValidationError("invalid application id format")
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                select {_APPLICATION_COLUMNS}
                from applications a
                left join jobs j on j.id = a.job_id
                where a.id = $1::uuid
                """,
                application_id,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to load application") from exc
        if row is None:
            raise RepositoryNotFoundError("Application not found")
        return self._application_row_to_dict(row)

    async def find_application(self, *, user_id: str, job_id: str) -> dict[str, Any] | None:
        """Latest application by ``user_id`` for ``job_id``, active or cancelled."""
        if not self._is_uuid(job_id):
            raise RepositoryValidationError("invalid job id format")
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                select {_APPLICATION_COLUMNS}
                from applications a
                left join jobs j on j.id = a.job_id
                where a.user_id = $1 and a.job_id = $2::uuid
                order by (a.status = 'Applied') desc, a.applied_at desc
                limit 1
                """,
                user_id,
                job_id,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to load application") from exc
        return self._application_row_to_dict(row) if row is not None else None

    async def create_application(
        self,
        *,
        user_id: str,
        job_id: str,
        applicant: dict[str, Any],
    ) -> dict[str, Any]:
        if not self._is_uuid(job_id):
            raise RepositoryValidationError("invalid job id format")
        values = [applicant.get(name) for name in APPLICANT_FIELDS]
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                with a as (
                  insert into applications (
                    user_id, job_id, full_name, email, phone, college,
                    degree, current_year, skills, message, resume_url
                  )
                  values ($1, $2::uuid, $3, $4, $5, $6, $7, $8, coalesce($9::text[], '{{}}'), $10, $11)
                  returning *
                )
                select {_APPLICATION_COLUMNS}
                from a
                left join jobs j on j.id = a.job_id
                """,
                user_id,
                job_id,
                *values,
            )
        except pg_exc.UniqueViolationError as exc:
            # Partial unique index on (user_id, job_id) where status = 'Applied'.
            raise RepositoryConflictError("You have already applied for this job") from exc
        except pg_exc.ForeignKeyViolationError as exc:
            raise RepositoryNotFoundError("job not found") from exc
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to insert application") from exc
        return self._application_row_to_dict(row)

    async def reapply_application(self, *, application_id: str, applicant: dict[str, Any]) -> dict[str, Any]:
        values = [applicant.get(name) for name in APPLICANT_FIELDS]
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                with a as (
                  update applications
                  set full_name = $2,
                      email = $3,
                      phone = $4,
                      college = $5,
                      degree = $6,
                      current_year = $7,
                      skills = coalesce($8::text[], '{{}}'),
                      message = $9,
                      resume_url = coalesce($10, resume_url),
                      status = 'Applied',
                      applied_at = now(),
                      updated_at = now()
                  where id = $1::uuid and status = 'Cancelled'
                  returning *
                )
                select {_APPLICATION_COLUMNS}
                from a
                left join jobs j on j.id = a.job_id
                """,
                application_id,
                *values,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError("You have already applied for this job") from exc
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to update application") from exc
        if row is None:
            raise RepositoryConflictError("application is not cancelled")
        return self._application_row_to_dict(row)

    async def cancel_application(self, *, application_id: str) -> dict[str, Any]:
        if not self._is_uuid(application_id):
            raise RepositoryValidationError("invalid application id format")
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                with a as (
                  update applications
                  set status = 'Cancelled', updated_at = now()
                  where id = $1::uuid
                  returning *
                )
                select {_APPLICATION_COLUMNS}
                from a
                left join jobs j on j.id = a.job_id
                """,
                application_id,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise RepositoryUnavailableError("failed to cancel application") from exc
        if row is None:
            raise RepositoryNotFoundError("Application not found")
        return self._application_row_to_dict(row)

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("IF_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _is_uuid(value: str) -> bool:
        try:
            UUID(value)
        except (TypeError, ValueError):
            return False
        return True

    @staticmethod
    def _job_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "company": row["company"],
            "location": row["location"],
            "city": row["city"],
            "country": row["country"] or "India",
            "type": row["type"],
            "job_type": row["job_type"] or "Internal",
            "apply_type": row["apply_type"] or "internal",
            "apply_url": row["apply_url"],
            "platform": row["platform"],
            "is_verified": bool(row["is_verified"]),
            "description": row["description"],
            "created_at": row["created_at"],
        }

    @staticmethod
    def _application_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        job = None
        if row["job_title"] is not None:
            job = {
                "id": row["job_id"],
                "title": row["job_title"],
                "company": row["job_company"],
                "city": row["job_city"],
                "country": row["job_country"] or "India",
                "type": row["job_kind"],
                "job_type": row["job_source_kind"] or "Internal",
                "apply_type": row["job_apply_type"] or "internal",
                "apply_url": row["job_apply_url"],
            }
        return {
            "id": row["id"],
            "user_id": row["user_id"],
            "job_id": row["job_id"],
            "full_name": row["full_name"],
            "email": row["email"],
            "phone": row["phone"],
            "college": row["college"],
            "degree": row["degree"],
            "current_year": row["current_year"],
            "skills": list(row["skills"] or []),
            "message": row["message"],
            "resume_url": row["resume_url"],
            "status": row["status"],
            "applied_at": row["applied_at"],
            "job": job,
        }


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
    )
