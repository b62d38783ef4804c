from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import httpx

from internfinder.services.sources.arbeitnow import ArbeitnowSource
from internfinder.services.sources.base import SourceResult, detect_job_type, strip_html
from internfinder.services.sources.jsearch import JSearchSource
from internfinder.services.sources.remotive import RemotiveSource


def _run(source: Any, handler: Any) -> SourceResult:
    async def run() -> SourceResult:
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            return await source.fetch_jobs(client)

    return asyncio.run(run())


def test_strip_html_removes_tags_entities_and_caps_length() -> None:
    text = strip_html("<p>Build&nbsp;APIs &amp; <b>ship</b> &lt;fast&gt;</p>" + "x" * 800)
    assert text.startswith("Build APIs & ship fast")
    assert "<" not in text and ">" not in text
    assert len(text) <= 500


def test_strip_html_decodes_numeric_and_named_entities() -> None:
    text = strip_html("<p>We&#8217;re hiring&rsquo;s best &mdash; apply&nbsp;now &#60;today&#62;</p>")
    assert text == "We\u2019re hiring\u2019s best \u2014 apply now today"


def test_strip_html_handles_missing_input() -> None:
    assert strip_html(None) == ""
    assert strip_html("   ") == ""


def test_detect_job_type_matches_intern_anywhere() -> None:
    assert detect_job_type("Software INTERN") == "Internship"
    assert detect_job_type("Engineer", "Summer internship programme") == "Internship"
    assert detect_job_type("Engineer", None, tags=["internship"]) == "Internship"
    assert detect_job_type("Engineer", "Full time") == "Job"


def test_remotive_fans_out_per_category_and_dedupes_by_id() -> None:
    requested: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        category = request.url.params["category"]
        requested.append(category)
        jobs = [
            {
                "id": 1,
                "url": "https://remotive.com/remote-jobs/1",
                "title": "Python Intern",
                "company_name": "Acme",
                "candidate_required_location": "India",
                "description": "<p>Shared listing</p>",
                "publication_date": "2024-05-01T10:00:00",
            },
            {
                "id": f"{category}-2",
                "title": "",
                "company_name": None,
                "candidate_required_location": "",
                "description": "",
            },
        ]
        return httpx.Response(200, json={"jobs": jobs}, request=request)

    before = datetime.now(timezone.utc)
    result = _run(RemotiveSource(categories=["design", "data"], limit=10), handler)

    assert sorted(requested) == ["data", "design"]
    assert result.ok
    ids = [job.id for job in result.jobs]
    assert len(ids) == len(set(ids)) == 3
    shared = next(job for job in result.jobs if job.id == "remotive-1")
    assert shared.type == "Internship"
    assert shared.description == "Shared listing"
    assert shared.source_name == "Remotive"
    assert shared.published_date.tzinfo is not None

    placeholder = next(job for job in result.jobs if job.id == "remotive-design-2")
    assert placeholder.title == "Untitled Position"
    assert placeholder.company == "Company Not Specified"
    assert placeholder.location == "Remote"
    assert placeholder.apply_url == "#"
    assert placeholder.description == "No description available"
    assert placeholder.published_date >= before


def test_remotive_tolerates_a_failing_category() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["category"] == "sales":
            return httpx.Response(502, request=request)
        return httpx.Response(
            200,
            json={"jobs": [{"id": 7, "title": "Designer", "candidate_required_location": "Pune"}]},
            request=request,
        )

    result = _run(RemotiveSource(categories=["sales", "design"]), handler)

    assert result.ok
    assert [job.id for job in result.jobs] == ["remotive-7"]


def test_remotive_reports_failure_when_every_category_fails() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    result = _run(RemotiveSource(categories=["sales", "design"]), handler)

    assert not result.ok
    assert result.jobs == []
    assert "all categories failed" in (result.error or "")


def test_arbeitnow_maps_schema_and_skips_malformed_items() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "slug": "backend-engineer-zoho",
                        "company_name": "Zoho",
                        "title": "Backend Engineer",
                        "description": "<div>Scale services</div>",
                        "remote": False,
                        "url": "https://www.arbeitnow.com/view/backend-engineer-zoho",
                        "tags": ["Internship"],
                        "location": "Chennai, India",
                        "created_at": 1714557600,
                    },
                    {"slug": None, "title": "Remote Dev", "remote": True},
                    {"slug": "bad", "tags": "not-a-list"},
                ]
            },
            request=request,
        )

    before = datetime.now(timezone.utc)
    result = _run(ArbeitnowSource(), handler)

    assert result.ok
    assert [job.id for job in result.jobs] == ["arbeitnow-backend-engineer-zoho", "arbeitnow-1"]
    first, second = result.jobs
    assert first.type == "Internship"
    assert first.description == "Scale services"
    assert first.published_date.year == 2024
    assert second.location == "Remote"
    assert second.published_date >= before


def test_adapter_swallows_http_errors_into_failed_result() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, request=request)

    result = _run(ArbeitnowSource(), handler)

    assert not result.ok
    assert result.error == "http 500"
    assert result.jobs == []


def test_adapter_swallows_malformed_json() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not json</html>", request=request)

    result = _run(ArbeitnowSource(), handler)

    assert not result.ok
    assert result.jobs == []


def test_adapter_swallows_timeouts() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    result = _run(ArbeitnowSource(), handler)

    assert not result.ok
    assert (result.error or "").startswith("timeout")


def test_jsearch_without_key_is_a_skipped_no_op() -> None:
    calls: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"data": []}, request=request)

    result = _run(JSearchSource(api_key=None, query="developer"), handler)

    assert calls == []
    assert result.ok
    assert result.skipped
    assert result.jobs == []


def test_jsearch_with_key_sends_rapidapi_headers_and_maps_country_code() -> None:
    captured: dict[str, Any] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        captured["headers"] = request.headers
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "job_id": "abc",
                        "job_title": "Data Engineer",
                        "employer_name": "Razorpay",
                        "job_city": "Bengaluru",
                        "job_country": "IN",
                        "job_employment_type": "INTERN",
                        "job_highlights": {"Qualifications": ["SQL", "Python"]},
                        "job_apply_link": "https://unstop.com/jobs/abc",
                        "job_posted_at_datetime_utc": "2024-05-02T08:00:00.000Z",
                    }
                ]
            },
            request=request,
        )

    result = _run(JSearchSource(api_key="secret", query="developer"), handler)

    assert captured["headers"]["X-RapidAPI-Key"] == "secret"
    assert captured["headers"]["X-RapidAPI-Host"] == "jsearch.p.rapidapi.com"
    assert result.ok
    (job,) = result.jobs
    assert job.id == "jsearch-abc"
    assert job.location == "Bengaluru, India"
    assert job.type == "Internship"
    assert job.description == "SQL Python"


def test_jsearch_item_without_posting_date_is_stamped_with_fetch_time() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"data": [{"job_id": "xyz", "job_title": "Analyst", "job_country": "IN"}]},
            request=request,
        )

    before = datetime.now(timezone.utc)
    result = _run(JSearchSource(api_key="secret", query="analyst", num_pages=1), handler)

    (job,) = result.jobs
    assert job.location == "India"
    assert before <= job.published_date <= datetime.now(timezone.utc)
