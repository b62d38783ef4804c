from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
import html
import logging
import re
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from internfinder.schemas.external_jobs import JobType, SourceJob

logger = logging.getLogger(__name__)
ModelT = TypeVar("ModelT", bound=BaseModel)

DESCRIPTION_MAX_CHARS = 500
DEFAULT_TITLE = "Untitled Position"
DEFAULT_COMPANY = "Company Not Specified"
DEFAULT_DESCRIPTION = "No description available"

_TAG_RE = re.compile(r"<[^>]*>")
_ANGLE_RE = re.compile(r"[<>]")
_WHITESPACE_RE = re.compile(r"\s+")
_INTERN_RE = re.compile(r"intern", re.IGNORECASE)


def strip_html(raw: str | None, *, max_chars: int = DESCRIPTION_MAX_CHARS) -> str:
    """Plain-text rendition of an upstream HTML description, capped at ``max_chars``."""
    if not raw:
        return ""
    text = html.unescape(_TAG_RE.sub(" ", raw))
    # Decoded &lt;/&gt; and unbalanced fragments such as "a < b" survive the tag pass.
    text = _ANGLE_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text[:max_chars].rstrip()


def detect_job_type(*texts: str | None, tags: Iterable[str] = ()) -> JobType:
    for text in texts:
        if text and _INTERN_RE.search(text):
            return "Internship"
    if any(_INTERN_RE.search(tag) for tag in tags if isinstance(tag, str)):
        return "Internship"
    return "Job"


def first_text(*values: Any) -> str | None:
    for value in values:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped:
                return stripped
    return None


@dataclass(slots=True)
class SourceResult:
    source_name: str
    jobs: list[SourceJob] = field(default_factory=list)
    error: str | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, source_name: str, error: str) -> SourceResult:
        return cls(source_name=source_name, jobs=[], error=error)


def dedupe_by_id(jobs: Iterable[SourceJob]) -> list[SourceJob]:
    seen: set[str] = set()
    unique: list[SourceJob] = []
    for job in jobs:
        if job.id in seen:
            continue
        seen.add(job.id)
        unique.append(job)
    return unique


class JobSource:
    """One upstream job-listing API.

    Subclasses implement ``_fetch``; ``fetch_jobs`` turns every failure into a
    failed ``SourceResult`` so one broken upstream never affects the others.
    """

    name: str = "External"

    async def fetch_jobs(self, client: httpx.AsyncClient) -> SourceResult:
        try:
            result = await self._fetch(client)
        except httpx.TimeoutException as exc:
            logger.warning("external source timed out source=%s error=%s", self.name, exc)
            return SourceResult.failed(self.name, f"timeout: {exc}")
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "external source returned error status source=%s status=%s",
                self.name,
                exc.response.status_code,
            )
            return SourceResult.failed(self.name, f"http {exc.response.status_code}")
        except Exception as exc:
            logger.warning("external source failed source=%s error=%r", self.name, exc)
            return SourceResult.failed(self.name, str(exc) or exc.__class__.__name__)

        logger.info("fetched external jobs source=%s count=%s", self.name, len(result.jobs))
        return result

    async def _fetch(self, client: httpx.AsyncClient) -> SourceResult:
        raise NotImplementedError

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_items(model: type[ModelT], items: Any, *, source_name: str) -> list[ModelT]:
    """Validate upstream items one at a time so a single malformed entry is skipped, not fatal."""
    if not isinstance(items, list):
        raise ValueError(f"{source_name} payload is not a list")
    parsed: list[ModelT] = []
    skipped = 0
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError:
            skipped += 1
    if skipped:
        logger.info("skipped malformed upstream items source=%s skipped=%s", source_name, skipped)
    return parsed
