from datetime import datetime, timedelta
from types import SimpleNamespace

from schoolconnect.schemas.schemas import DatePosted
from schoolconnect.services.job_filter_service import (
    JobFilter, apply_filters, filter_options, hourly_rate
)

NOW = datetime(2026, 5, 1, 12, 0, 0)


def _job(title, company="Acme", salary="$20/hour", job_type="part-time",
         location="Boston, MA", description="", age_days=0):
    return SimpleNamespace(
        title=title, company=company, salary=salary, job_type=job_type,
        location=location, description=description,
        created_at=NOW - timedelta(days=age_days)
    )


JOBS = [
    _job("Barista", company="Bean Co", salary="$15/hour", location="Cambridge, MA", age_days=0),
    _job("Data Intern", salary="$25 per hour", job_type="internship", age_days=3,
         description="Work with Python and SQL"),
    _job("Analyst", company="Big Corp", salary="$52,000 per year", job_type="full-time",
         location="New York, NY", age_days=10),
    _job("Volunteer Helper", salary="Unpaid", location="Remote", age_days=45),
]


def _titles(jobs):
    return [j.title for j in jobs]


def test_hourly_rate_parsing():
    assert hourly_rate("$18-22/hour") == 18
    assert hourly_rate("$52,000 per year") == 25
    assert hourly_rate("45000 annual") == 22
    assert hourly_rate("Competitive") is None
    assert hourly_rate("") is None


def test_no_criteria_keeps_everything_in_order():
    assert _titles(apply_filters(JOBS, JobFilter(), now=NOW)) == _titles(JOBS)
    assert JobFilter().active_count() == 0


def test_search_is_case_insensitive_across_fields():
    assert _titles(apply_filters(JOBS, JobFilter(search="python"), now=NOW)) == ["Data Intern"]
    assert _titles(apply_filters(JOBS, JobFilter(search="big corp"), now=NOW)) == ["Analyst"]
    assert _titles(apply_filters(JOBS, JobFilter(search="   "), now=NOW)) == _titles(JOBS)


def test_job_type_location_and_company():
    assert _titles(apply_filters(JOBS, JobFilter(job_types=["internship", "full-time"]), now=NOW)) == \
        ["Data Intern", "Analyst"]
    assert _titles(apply_filters(JOBS, JobFilter(location="ma"), now=NOW)) == \
        ["Barista", "Data Intern"]
    assert len(apply_filters(JOBS, JobFilter(location="Any"), now=NOW)) == len(JOBS)
    assert _titles(apply_filters(JOBS, JobFilter(companies=["Bean Co"]), now=NOW)) == ["Barista"]


def test_rate_range_keeps_jobs_without_a_number():
    criteria = JobFilter(min_hourly_rate=20, max_hourly_rate=30)
    assert criteria.rate_active
    assert _titles(apply_filters(JOBS, criteria, now=NOW)) == ["Data Intern", "Analyst", "Volunteer Helper"]


def test_date_posted_windows():
    assert _titles(apply_filters(JOBS, JobFilter(date_posted=DatePosted.last_24h), now=NOW)) == ["Barista"]
    assert _titles(apply_filters(JOBS, JobFilter(date_posted=DatePosted.last_7d), now=NOW)) == \
        ["Barista", "Data Intern"]
    assert len(apply_filters(JOBS, JobFilter(date_posted=DatePosted.last_30d), now=NOW)) == 3


def test_active_count():
    criteria = JobFilter(search="x", job_types=["contract"], location="any",
                         max_hourly_rate=50, date_posted=DatePosted.last_7d)
    assert criteria.active_count() == 4


def test_filter_options_are_distinct_and_sorted():
    options = filter_options(JOBS)
    assert options["companies"] == ["Acme", "Bean Co", "Big Corp"]
    assert options["job_types"] == ["full-time", "internship", "part-time"]
    assert "Remote" in options["locations"]
