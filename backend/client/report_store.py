"""
Dashboard report store.

Owns the cached report views for a signed-in client and keeps them in step
with the server after each mutation. Every operation records a failure on
`error` instead of raising, and signals it through its return value.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from client import report_cache
from client.api_client import ApiError, TrackerClient
from client.report_cache import ReportLists

logger = logging.getLogger(__name__)


class ReportStore:

    def __init__(self, client: TrackerClient):
        self.client = client
        self.lists = ReportLists()
        self.loading = False
        self.error: Optional[str] = None

    # ---- views ----

    @property
    def all_reports(self) -> List[Dict[str, Any]]:
        return self.lists.all_reports

    @property
    def assigned(self) -> List[Dict[str, Any]]:
        return self.lists.assigned

    @property
    def open(self) -> List[Dict[str, Any]]:
        return self.lists.open

    @property
    def closed(self) -> List[Dict[str, Any]]:
        return self.lists.closed

    def tab_counts(self) -> Dict[str, int]:
        return report_cache.tab_counts(self.lists)

    def search(self, view: str, term: str) -> List[Dict[str, Any]]:
        reports = {
            "all": self.all_reports,
            "assigned": self.assigned,
            "open": self.open,
            "closed": self.closed,
        }[view]
        return report_cache.filter_reports(reports, term)

    def _fail(self, e: ApiError, fallback: str) -> None:
        self.error = e.message or fallback
        logger.warning(f"{fallback}: {self.error}")

    # ---- loading ----

    async def load(self) -> bool:
        """
        Fetch the four views concurrently.

        Each view is replaced only if its own request succeeded; a failed
        request keeps that view's previous contents and sets `error`.
        Returns True when all four succeeded.
        """
        self.loading = True
        try:
            results = await asyncio.gather(
                self.client.list_reports(),
                self.client.list_assigned_reports(),
                self.client.list_assigned_open_reports(),
                self.client.list_assigned_closed_reports(),
                return_exceptions=True,
            )
        finally:
            self.loading = False

        views = ("all_reports", "assigned", "open", "closed")
        fresh = {}
        failure = None
        for view, result in zip(views, results):
            if isinstance(result, ApiError):
                logger.warning(f"Loading {view} failed: {result.message}")
                failure = failure or result
            elif isinstance(result, BaseException):
                raise result
            else:
                fresh[view] = result

        self.lists = ReportLists(**{view: fresh.get(view, getattr(self.lists, view)) for view in views})
        if failure is not None:
            self.error = failure.message or "Failed to fetch bug reports"
            return False
        self.error = None
        return True

    # ---- reports ----

    async def get_report(self, report_id) -> Optional[Dict[str, Any]]:
        try:
            report = await self.client.get_report(report_id)
        except ApiError as e:
            self._fail(e, "Failed to fetch bug report")
            return None
        self.error = None
        return report

    async def create_report(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            report = await self.client.create_report(data)
        except ApiError as e:
            self._fail(e, "Failed to create bug report")
            return None
        self.lists = report_cache.apply_create(self.lists, report)
        self.error = None
        return report

    async def update_report(self, report_id, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            report = await self.client.update_report(report_id, data)
        except ApiError as e:
            self._fail(e, "Failed to update bug report")
            return None
        self.lists = report_cache.apply_update(self.lists, report)
        self.error = None
        return report

    async def delete_report(self, report_id) -> bool:
        try:
            await self.client.delete_report(report_id)
        except ApiError as e:
            self._fail(e, "Failed to delete bug report")
            return False
        # Cached ids are ints; route parameters may arrive as strings
        cached_id = int(report_id) if str(report_id).isdigit() else report_id
        self.lists = report_cache.apply_delete(self.lists, cached_id)
        self.error = None
        return True

    # ---- comments ----

    async def list_comments(self, report_id) -> List[Dict[str, Any]]:
        try:
            comments = await self.client.list_comments(report_id)
        except ApiError as e:
            self._fail(e, "Failed to fetch comments")
            return []
        self.error = None
        return comments

    async def add_comment(self, report_id, text: str) -> Optional[Dict[str, Any]]:
        try:
            comment = await self.client.add_comment(report_id, text)
        except ApiError as e:
            self._fail(e, "Failed to add comment")
            return None
        self.error = None
        return comment

    async def delete_comment(self, comment_id) -> bool:
        try:
            await self.client.delete_comment(comment_id)
        except ApiError as e:
            self._fail(e, "Failed to delete comment")
            return False
        self.error = None
        return True
