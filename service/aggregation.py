"""Sums and group-bys over timesheet records.

Input rows are already filtered by role and period. Hours are summed with
plain float addition; rounding is left to whoever displays the numbers. A row
whose related user, project or task is missing fails the whole aggregation.
"""

from collections import OrderedDict
from math import floor
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from Schema.report_schema import (
    DateBucket,
    HoursSummary,
    ProjectBucket,
    StatusBucket,
    UserBucket,
)
from Schema.timesheet_schema import TimesheetResponse
from utils.exceptions import ReportRenderError


def require_relations(row: TimesheetResponse, *relations: str) -> None:
    for relation in relations:
        if getattr(row, relation) is None:
            raise ReportRenderError(f"Timesheet {row.id} is missing its related {relation}")


def summarize(rows: Sequence[TimesheetResponse]) -> HoursSummary:
    total_hours = sum(float(row.hours) for row in rows)
    billable_hours = sum(float(row.hours) for row in rows if row.is_billable)
    return HoursSummary(
        total_hours=total_hours,
        billable_hours=billable_hours,
        non_billable_hours=total_hours - billable_hours,
        total_entries=len(rows),
    )


def _group(
    rows: Iterable[TimesheetResponse],
    key: Callable[[TimesheetResponse], object],
    make_bucket: Callable[[TimesheetResponse], object],
    keep_rows: bool,
) -> List:
    buckets: "OrderedDict[object, object]" = OrderedDict()
    for row in rows:
        bucket_key = key(row)
        bucket = buckets.get(bucket_key)
        if bucket is None:
            bucket = make_bucket(row)
            if keep_rows:
                bucket.timesheets = []
            buckets[bucket_key] = bucket
        hours = float(row.hours)
        bucket.total_hours += hours
        if row.is_billable:
            bucket.billable_hours += hours
        bucket.entries += 1
        if keep_rows:
            bucket.timesheets.append(row)
    return list(buckets.values())


def group_by_project(rows: Sequence[TimesheetResponse], keep_rows: bool = False) -> List[ProjectBucket]:
    for row in rows:
        require_relations(row, "project")
    return _group(rows, lambda r: r.project_id, lambda r: ProjectBucket(project=r.project), keep_rows)


def group_by_user(rows: Sequence[TimesheetResponse], keep_rows: bool = False) -> List[UserBucket]:
    for row in rows:
        require_relations(row, "user")
    return _group(rows, lambda r: r.user_id, lambda r: UserBucket(user=r.user), keep_rows)


def group_by_date(rows: Sequence[TimesheetResponse], keep_rows: bool = True) -> List[DateBucket]:
    ordered = sorted(rows, key=lambda r: r.date)
    return _group(ordered, lambda r: r.date, lambda r: DateBucket(date=r.date), keep_rows)


def group_by_status(rows: Sequence[TimesheetResponse]) -> Dict[str, StatusBucket]:
    stats: Dict[str, StatusBucket] = {}
    for row in rows:
        bucket = stats.setdefault(row.status.value, StatusBucket())
        bucket.count += 1
        bucket.hours += float(row.hours)
    return stats


def percentage(part: float, whole: float, cap: Optional[int] = None) -> int:
    """Whole-number percentage, halves rounded up; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    value = int(floor(float(part) / float(whole) * 100 + 0.5))
    return min(value, cap) if cap is not None else value
