from __future__ import annotations

import subprocess
import sys
from pathlib import Path


SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "seed_jobs.py"


def _run_script(*args: str) -> str:
    completed = subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout


def test_seed_script_emits_schema_and_sample_rows() -> None:
    output = _run_script()

    assert "create table if not exists jobs (" in output
    assert "check (type in ('Job', 'Internship'))" in output
    assert "insert into jobs (title, company, location, city, type, description, is_verified)" in output
    assert "('Software Engineer', 'Zoho', 'Chennai, India', 'Chennai', 'Job'" in output
    assert "delete from jobs;" not in output


def test_seed_script_escapes_quotes_in_values() -> None:
    output = _run_script()

    assert "Zoho''s suite of business applications" in output


def test_seed_script_reset_deletes_before_inserting() -> None:
    output = _run_script("--reset")

    assert output.index("delete from jobs;") < output.index("insert into jobs")


def test_seed_script_schema_only_skips_inserts() -> None:
    output = _run_script("--schema-only")

    assert "create table if not exists jobs (" in output
    assert "insert into jobs" not in output


def test_seed_script_creates_applications_with_one_active_row_per_job() -> None:
    output = _run_script("--schema-only")

    assert "create table if not exists applications (" in output
    assert "references jobs (id) on delete cascade" in output
    assert "on applications (user_id, job_id) where status = 'Applied';" in output
