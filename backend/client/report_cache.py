"""
Client-side cache of the dashboard's report lists.

Four views are kept: every report, reports assigned to the current user,
and the assigned ones split into open and closed. After a mutation the
views are re-partitioned locally from the server's response instead of
being refetched. All functions return a new ReportLists and leave their
input untouched.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List

Report = Dict[str, Any]

CLOSED_STATUSES = ("resolved", "closed")


@dataclass
class ReportLists:
    """The four cached views, each ordered newest first."""
    all_reports: List[Report] = field(default_factory=list)
    assigned: List[Report] = field(default_factory=list)
    open: List[Report] = field(default_factory=list)
    closed: List[Report] = field(default_factory=list)


def _contains(reports: List[Report], report_id) -> bool:
    return any(r.get("id") == report_id for r in reports)


def _replace(reports: List[Report], report: Report) -> List[Report]:
    report_id = report.get("id")
    return [report if r.get("id") == report_id else r for r in reports]


def _remove(reports: List[Report], report_id) -> List[Report]:
    return [r for r in reports if r.get("id") != report_id]


def _upsert(reports: List[Report], report: Report) -> List[Report]:
    """Replace in place if present, else prepend."""
    if _contains(reports, report.get("id")):
        return _replace(reports, report)
    return [report] + list(reports)


def is_closed(report: Report) -> bool:
    return report.get("status") in CLOSED_STATUSES


def apply_update(lists: ReportLists, report: Report) -> ReportLists:
    """
    Merge an updated report into the cached views.

    The report replaces its old copy in `all_reports` and `assigned` (it is
    never inserted there). It then lives in exactly one of `open`/`closed`
    according to its status.
    """
    report_id = report.get("id")
    all_reports = _replace(lists.all_reports, report)
    assigned = _replace(lists.assigned, report) if _contains(lists.assigned, report_id) else list(lists.assigned)

    if is_closed(report):
        open_reports = _remove(lists.open, report_id)
        closed_reports = _upsert(lists.closed, report)
    else:
        closed_reports = _remove(lists.closed, report_id)
        open_reports = _upsert(lists.open, report)

    return ReportLists(
        all_reports=all_reports,
        assigned=assigned,
        open=open_reports,
        closed=closed_reports,
    )


def apply_create(lists: ReportLists, report: Report) -> ReportLists:
    """A newly created report goes to the front of `all_reports` only."""
    return replace(lists, all_reports=[report] + _remove(lists.all_reports, report.get("id")))


def apply_delete(lists: ReportLists, report_id) -> ReportLists:
    return ReportLists(
        all_reports=_remove(lists.all_reports, report_id),
        assigned=_remove(lists.assigned, report_id),
        open=_remove(lists.open, report_id),
        closed=_remove(lists.closed, report_id),
    )


def filter_reports(reports: List[Report], term: str) -> List[Report]:
    """Case-insensitive substring search over title and description."""
    if not term:
        return reports
    needle = term.lower()
    return [
        r for r in reports
        if needle in (r.get("title") or "").lower() or needle in (r.get("description") or "").lower()
    ]


def tab_counts(lists: ReportLists) -> Dict[str, int]:
    return {
        "all": len(lists.all_reports),
        "assigned": len(lists.assigned),
        "open": len(lists.open),
        "closed": len(lists.closed),
    }
