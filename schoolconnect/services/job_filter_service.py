"""
Job Filter Service - narrows the approved job listing for students.

Criteria (each applied only when it carries a meaningful value):
- search        : substring of title, company, description or location
- job_types     : any of the selected types
- location      : substring of the location ('any' or blank = no filter)
- companies     : any of the selected companies
- hourly rate   : min/max range; only active when narrowed from 0-100
- date_posted   : 24h / 7d / 30d window on created_at

Salary is free text ("$18-22/hour", "$45,000 per year"). The first number
is taken as the rate; yearly figures are converted at 40h x 52 weeks.
Jobs whose salary has no number are never filtered out by rate.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from schoolconnect.schemas.schemas import DatePosted

DEFAULT_MIN_RATE = 0
DEFAULT_MAX_RATE = 100
HOURS_PER_YEAR = 40 * 52

DATE_WINDOWS = {
    DatePosted.last_24h: timedelta(days=1),
    DatePosted.last_7d: timedelta(days=7),
    DatePosted.last_30d: timedelta(days=30),
}

_NUMBER = re.compile(r"\d[\d,]*")


@dataclass
class JobFilter:
    search: str = ""
    job_types: List[str] = field(default_factory=list)
    location: str = "any"
    companies: List[str] = field(default_factory=list)
    min_hourly_rate: float = DEFAULT_MIN_RATE
    max_hourly_rate: float = DEFAULT_MAX_RATE
    date_posted: DatePosted = DatePosted.all

    @property
    def rate_active(self) -> bool:
        return self.min_hourly_rate > DEFAULT_MIN_RATE or self.max_hourly_rate < DEFAULT_MAX_RATE

    def active_count(self) -> int:
        """Number of criteria in effect (shown as a badge next to the filters)."""
        return sum([
            bool(self.search.strip()),
            bool(self.job_types),
            bool(self.location.strip()) and self.location.lower() != "any",
            bool(self.companies),
            self.rate_active,
            self.date_posted != DatePosted.all,
        ])


def hourly_rate(salary: str) -> Optional[int]:
    """Hourly rate implied by a salary string, None if it has no number."""
    match = _NUMBER.search(salary or "")
    if not match:
        return None
    rate = int(match.group().replace(",", ""))
    lowered = salary.lower()
    if "year" in lowered or "annual" in lowered:
        rate = math.floor(rate / HOURS_PER_YEAR + 0.5)
    return rate


def matches_search(job, term: str) -> bool:
    term = term.lower().strip()
    return any(term in (value or "").lower()
               for value in (job.title, job.company, job.description, job.location))


def apply_filters(jobs: Iterable, criteria: JobFilter, now: Optional[datetime] = None) -> list:
    """Return the jobs matching every active criterion, order preserved."""
    filtered = list(jobs)

    if criteria.search.strip():
        filtered = [job for job in filtered if matches_search(job, criteria.search)]

    if criteria.job_types:
        filtered = [job for job in filtered if job.job_type in criteria.job_types]

    location = criteria.location.strip().lower()
    if location and location != "any":
        filtered = [job for job in filtered if location in job.location.lower()]

    if criteria.companies:
        filtered = [job for job in filtered if job.company in criteria.companies]

    if criteria.rate_active:
        def in_range(job) -> bool:
            rate = hourly_rate(job.salary)
            if rate is None:
                return True
            return criteria.min_hourly_rate <= rate <= criteria.max_hourly_rate
        filtered = [job for job in filtered if in_range(job)]

    window = DATE_WINDOWS.get(criteria.date_posted)
    if window is not None:
        cutoff = (now or datetime.utcnow()) - window
        filtered = [job for job in filtered if job.created_at >= cutoff]

    return filtered


def filter_options(jobs: Iterable) -> dict:
    """Distinct values to offer in the filter panel."""
    jobs = list(jobs)
    return {
        "companies": sorted({job.company for job in jobs}),
        "locations": sorted({job.location for job in jobs}),
        "job_types": sorted({job.job_type for job in jobs}),
    }
