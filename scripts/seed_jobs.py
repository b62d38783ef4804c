#!/usr/bin/env python3
"""Emit deterministic SQL that creates the jobs and applications tables and seeds sample India listings."""

from __future__ import annotations

import argparse

SCHEMA_SQL = """create extension if not exists pgcrypto;

create table if not exists jobs (
  id uuid primary key default gen_random_uuid(),
  title text not null,
  company text not null,
  location text not null,
  city text,
  country text not null default 'India',
  type text not null check (type in ('Job', 'Internship')),
  job_type text not null default 'Internal' check (job_type in ('Internal', 'Platform', 'ExternalAPI')),
  apply_type text not null default 'internal' check (apply_type in ('internal', 'external')),
  apply_url text,
  platform text,
  is_verified boolean not null default false,
  description text not null,
  created_at timestamptz not null default now(),
  updated_at timestamptz not null default now()
);

create index if not exists jobs_created_at_idx on jobs (created_at desc);

create table if not exists applications (
  id uuid primary key default gen_random_uuid(),
  user_id text not null,
  job_id uuid not null references jobs (id) on delete cascade,
  full_name text not null,
  email text not null,
  phone text,
  college text,
  degree text,
  current_year text,
  skills text[] not null default '{}',
  message text,
  resume_url text,
  status text not null default 'Applied' check (status in ('Applied', 'Cancelled')),
  applied_at timestamptz not null default now(),
  created_at timestamptz not null default now(),
  updated_at timestamptz not null default now()
);

create unique index if not exists applications_active_uidx
  on applications (user_id, job_id) where status = 'Applied';
create index if not exists applications_user_applied_idx on applications (user_id, applied_at desc);
"""

SAMPLE_JOBS: tuple[dict[str, str], ...] = (
    {
        "title": "Frontend Developer Intern",
        "company": "TechCorp India",
        "location": "Bangalore, India",
        "city": "Bangalore",
        "type": "Internship",
        "description": "Build UI components with React and collaborate with designers on new features.",
    },
    {
        "title": "Full Stack Developer",
        "company": "StartupXYZ",
        "location": "Mumbai, India",
        "city": "Mumbai",
        "type": "Job",
        "description": "Develop scalable web applications across the React and Node.js stack.",
    },
    {
        "title": "Backend Developer Intern",
        "company": "DataFlow Solutions",
        "location": "Hyderabad, India",
        "city": "Hyderabad",
        "type": "Internship",
        "description": "Design REST APIs and work with relational databases under senior mentorship.",
    },
    {
        "title": "Software Engineer",
        "company": "Zoho",
        "location": "Chennai, India",
        "city": "Chennai",
        "type": "Job",
        "description": "Work on product engineering for Zoho's suite of business applications.",
    },
    {
        "title": "Data Analyst Intern",
        "company": "Flipkart",
        "location": "Remote, India",
        "city": "Remote India",
        "type": "Internship",
        "description": "Analyse marketplace metrics and prepare weekly dashboards for the category team.",
    },
)


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, reset: bool, schema_only: bool) -> str:
    statements = ["-- InternFinder jobs table bootstrap", SCHEMA_SQL]
    if schema_only:
        return "\n".join(statements)

    if reset:
        statements.append("delete from jobs;\n")

    rows = []
    for job in SAMPLE_JOBS:
        values = ", ".join(
            _quote_sql(job[key]) for key in ("title", "company", "location", "city", "type", "description")
        )
        rows.append(f"  ({values}, true)")
    statements.append(
        "insert into jobs (title, company, location, city, type, description, is_verified)\nvalues\n"
        + ",\n".join(rows)
        + ";\n"
    )
    return "\n".join(statements)


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to create the InternFinder tables and seed sample jobs.")
    parser.add_argument("--reset", action="store_true", help="Delete existing jobs before inserting samples")
    parser.add_argument("--schema-only", action="store_true", help="Only emit the table definitions")
    args = parser.parse_args()

    print(render_sql(reset=args.reset, schema_only=args.schema_only))


if __name__ == "__main__":
    main()
