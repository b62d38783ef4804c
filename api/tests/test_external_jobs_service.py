from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from internfinder.core.locale import is_india_location
from internfinder.schemas.external_jobs import SourceJob
from internfinder.services import external_jobs as external_jobs_module
from internfinder.services.external_jobs import ExternalJobsService, normalize_external_job
from internfinder.services.sources.arbeitnow import ArbeitnowSource
from internfinder.services.sources.base import JobSource, SourceResult
from internfinder.services.sources.jsearch import JSearchSource
from internfinder.services.sources.remotive import RemotiveSource


def _source_job(**overrides: Any) -> SourceJob:
    payload: dict[str, Any] = {
        "id": "static-1",
        "title": "Engineer",
        "company": "Acme",
        "location": "India",
        "type": "Job",
        "description": "Build things",
        "apply_url": "#",
        "source_name": "Static",
        "published_date": datetime(2024, 5, 1, tzinfo=timezone.utc),
    }
    payload.update(overrides)
    return SourceJob(**payload)


class StaticSource(JobSource):
    def __init__(self, name: str, jobs: list[SourceJob]) -> None:
        self.name = name
        self.jobs = jobs
        self.calls = 0

    async def _fetch(self, client: httpx.AsyncClient) -> SourceResult:
        self.calls += 1
        return SourceResult(source_name=self.name, jobs=list(self.jobs))


class ExplodingSource(JobSource):
    """Raises past the adapter boundary to exercise the aggregator's tolerant join."""

    name = "Exploding"

    async def fetch_jobs(self, client: httpx.AsyncClient) -> SourceResult:
        raise RuntimeError("adapter bug")


def _upstream_handler(calls: list[str]):
    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.host)
        if request.url.host == "remotive.com":
            return httpx.Response(
                200,
                json={
                    "jobs": [
                        {
                            "id": 11,
                            "title": "Frontend Intern",
                            "company_name": "Swiggy",
                            "candidate_required_location": "Bangalore, India",
                            "url": "https://internshala.com/internship/11",
                            "description": "<p>React &amp; CSS</p>",
                        },
                        {
                            "id": 12,
                            "title": "Account Executive",
                            "company_name": "Globex",
                            "candidate_required_location": "USA Only",
                            "url": "https://remotive.com/remote-jobs/12",
                        },
                    ]
                },
                request=request,
            )
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "slug": "ops-lead",
                        "company_name": "Zomato",
                        "title": "Ops Lead",
                        "description": "<b>" + "long " * 200 + "</b>",
                        "url": "https://www.arbeitnow.com/view/ops-lead",
                        "location": "Gurugram",
                    }
                ]
            },
            request=request,
        )

    return handler


def _http_service(calls: list[str], **kwargs: Any) -> ExternalJobsService:
    return ExternalJobsService(
        [RemotiveSource(categories=["software-dev"]), ArbeitnowSource(), JSearchSource(api_key=None, query="x")],
        transport=httpx.MockTransport(_upstream_handler(calls)),
        **kwargs,
    )


def test_second_call_within_ttl_is_served_from_cache() -> None:
    calls: list[str] = []
    service = _http_service(calls)

    async def run() -> tuple[list[Any], list[Any]]:
        first = await service.fetch_external_jobs(True)
        upstream_calls = len(calls)
        second = await service.fetch_external_jobs(True)
        assert len(calls) == upstream_calls
        return first, second

    first, second = asyncio.run(run())
    assert sorted(calls) == ["remotive.com", "www.arbeitnow.com"]
    assert first == second
    assert service.cache_is_fresh()


def test_clear_cache_forces_a_fresh_fan_out() -> None:
    calls: list[str] = []
    service = _http_service(calls)

    async def run() -> None:
        await service.fetch_external_jobs(True)
        service.clear_cache()
        assert service.cache is None
        await service.fetch_external_jobs(True)

    asyncio.run(run())
    assert sorted(calls) == ["remotive.com", "remotive.com", "www.arbeitnow.com", "www.arbeitnow.com"]


def test_use_cache_false_bypasses_a_fresh_cache() -> None:
    calls: list[str] = []
    service = _http_service(calls)

    async def run() -> None:
        await service.fetch_external_jobs(True)
        await service.fetch_external_jobs(False)

    asyncio.run(run())
    assert len(calls) == 4


def test_records_are_india_only_plain_text_and_tagged() -> None:
    service = _http_service([])

    jobs = asyncio.run(service.fetch_external_jobs())

    by_id = {job.id: job for job in jobs}
    assert set(by_id) == {"remotive-11", "arbeitnow-ops-lead"}
    for job in jobs:
        assert len(job.description) <= 500
        assert "<" not in job.description and ">" not in job.description
        assert job.title and job.company
        assert job.source == "External"

    intern = by_id["remotive-11"]
    assert intern.city == "Bangalore"
    assert intern.type == "Internship"
    assert intern.apply_platform == "Internshala"
    assert intern.is_verified is True
    assert intern.description == "React & CSS"

    ops = by_id["arbeitnow-ops-lead"]
    assert ops.city == "Gurugram"
    assert ops.apply_platform is None
    assert ops.is_verified is False


def test_end_to_end_two_adapters_keeps_only_the_india_record() -> None:
    india = StaticSource(
        "First",
        [
            _source_job(
                id="a1",
                title="Intern SWE",
                type="Internship",
                location="Bangalore, India",
                apply_url="https://internshala.com/x",
            )
        ],
    )
    berlin = StaticSource("Second", [_source_job(id="b1", title="Sales Rep", location="Berlin")])
    service = ExternalJobsService([india, berlin])

    jobs = asyncio.run(service.fetch_external_jobs())

    assert len(jobs) == 1
    (job,) = jobs
    assert job.id == "a1"
    assert job.type == "Internship"
    assert job.city == "Bangalore"
    assert job.apply_platform == "Internshala"
    assert job.is_verified is True
    assert service.last_report is not None
    assert service.last_report.kept == 1
    assert service.last_report.dropped == 1


def test_one_failing_adapter_does_not_affect_the_others() -> None:
    healthy = StaticSource("Healthy", [_source_job(id="h1", location="Pune")])
    service = ExternalJobsService([ExplodingSource(), healthy])

    jobs = asyncio.run(service.fetch_external_jobs())

    assert [job.id for job in jobs] == ["h1"]
    report = service.last_report
    assert report is not None
    assert report.failed_sources == ["Exploding"]
    assert report.error is None


def test_duplicate_ids_across_sources_are_collapsed() -> None:
    first = StaticSource("First", [_source_job(id="dup", company="First Co")])
    second = StaticSource("Second", [_source_job(id="dup", company="Second Co")])
    service = ExternalJobsService([first, second])

    jobs = asyncio.run(service.fetch_external_jobs())

    assert [job.id for job in jobs] == ["dup"]


def test_refresh_failure_serves_stale_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    source = StaticSource("Static", [_source_job(id="s1", location="Mumbai")])
    service = ExternalJobsService([source], cache_ttl=timedelta(0))

    first = asyncio.run(service.fetch_external_jobs())
    assert [job.id for job in first] == ["s1"]

    def broken_normalize(job: SourceJob) -> None:
        raise RuntimeError("merge bug")

    monkeypatch.setattr(external_jobs_module, "normalize_external_job", broken_normalize)
    second = asyncio.run(service.fetch_external_jobs())

    assert [job.id for job in second] == ["s1"]
    assert source.calls == 2
    assert service.last_report is not None
    assert service.last_report.served_stale is True
    assert service.last_report.error == "merge bug"


def test_refresh_failure_without_cache_returns_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_normalize(job: SourceJob) -> None:
        raise RuntimeError("merge bug")

    monkeypatch.setattr(external_jobs_module, "normalize_external_job", broken_normalize)
    service = ExternalJobsService([StaticSource("Static", [_source_job()])])

    assert asyncio.run(service.fetch_external_jobs()) == []
    assert service.cache is None


def test_expired_cache_triggers_refresh() -> None:
    source = StaticSource("Static", [_source_job()])
    service = ExternalJobsService([source], cache_ttl=timedelta(minutes=20))

    asyncio.run(service.fetch_external_jobs())
    later = datetime.now(timezone.utc) + timedelta(minutes=21)
    service._now = lambda: later  # type: ignore[method-assign]
    asyncio.run(service.fetch_external_jobs())

    assert source.calls == 2


def test_normalize_external_job_drops_non_india_and_defaults_apply_url() -> None:
    assert normalize_external_job(_source_job(location="Berlin, Germany")) is None

    record = normalize_external_job(_source_job(location="Remote - India", apply_url=""))
    assert record is not None
    assert record.city == "Remote India"
    assert record.apply_url == "#"
    assert record.is_verified is False
    assert is_india_location("Remote - India")


def test_canonical_record_serializes_with_camel_case_keys() -> None:
    record = normalize_external_job(_source_job(apply_url="https://unstop.com/o/1"))
    assert record is not None

    body = record.model_dump(by_alias=True, mode="json")

    assert body["applyUrl"] == "https://unstop.com/o/1"
    assert body["applyPlatform"] == "Unstop"
    assert body["isVerified"] is True
    assert body["sourceName"] == "Static"
    assert body["publishedDate"].startswith("2024-05-01")
