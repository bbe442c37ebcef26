"""
Report Service - CRUD operations for bug reports.

This service owns:
- Field validation for create and partial update
- closedTimeStamp stamping on resolve/close
- The assigned-to-caller list queries (all / open / closed)
- Expansion of assignedUser for responses (selectinload)

There is no ownership check on update or delete: any authenticated user
may edit or remove any report.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from typing import Optional, List, Any, Sequence, Tuple
from datetime import datetime
from fastapi import Depends
from email_validator import validate_email, EmailNotValidError
import logging
import math

from models import (
    Report, User, ReportStatus, Severity,
    CLOSED_STATUSES, OPEN_STATUSES,
)
from schemas.report import ReportCreate, ReportUpdate
from database import get_async_db
from exceptions import ValidationError, ReportNotFoundError, ServerError, FieldError
from utils.id_utils import parse_id

logger = logging.getLogger(__name__)

STATUS_VALUES = [s.value for s in ReportStatus]
SEVERITY_VALUES = [s.value for s in Severity]


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _check_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class ReportService:
    """Service for bug report CRUD operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Validation ====================

    async def _resolve_assignee(self, raw: Any, errors: List[FieldError]) -> Optional[User]:
        """Look up the user an assignedUser value points at, recording an error if it can't."""
        user_id = parse_id(raw)
        user = None
        if user_id is not None:
            result = await self.db.execute(select(User).where(User.user_id == user_id))
            user = result.scalars().first()
        if user is None:
            errors.append({"field": "assignedUser", "msg": "Assigned user not found"})
        return user

    @staticmethod
    def _check_enums_and_bounty(
        errors: List[FieldError],
        status: Optional[str],
        severity: Optional[str],
        bounty_amount: Optional[float],
        fields: Sequence[str],
    ) -> None:
        if "status" in fields and status not in STATUS_VALUES:
            errors.append({"field": "status", "msg": f"Status must be one of: {', '.join(STATUS_VALUES)}"})
        if "severity" in fields and severity not in SEVERITY_VALUES:
            errors.append({"field": "severity", "msg": f"Severity must be one of: {', '.join(SEVERITY_VALUES)}"})
        if "bounty_amount" in fields and (
            bounty_amount is None or not math.isfinite(bounty_amount) or bounty_amount < 0
        ):
            errors.append({"field": "bountyAmount", "msg": "Bounty amount must be zero or greater"})

    # ==================== Reads ====================

    def _select_expanded(self):
        return select(Report).options(selectinload(Report.assigned_user))

    async def get(self, report_id: Any) -> Report:
        """Get a report with assignedUser loaded. Missing and malformed ids both raise NotFound."""
        parsed = parse_id(report_id)
        if parsed is None:
            raise ReportNotFoundError()

        result = await self.db.execute(
            self._select_expanded()
            .where(Report.report_id == parsed)
            .execution_options(populate_existing=True)
        )
        report = result.scalars().first()
        if not report:
            raise ReportNotFoundError()
        return report

    async def list(
        self,
        assigned_user_id: Optional[int] = None,
        statuses: Optional[Tuple[ReportStatus, ...]] = None,
    ) -> List[Report]:
        """List reports newest first, optionally filtered by assignee and status."""
        stmt = self._select_expanded()
        if assigned_user_id is not None:
            stmt = stmt.where(Report.assigned_user_id == assigned_user_id)
        if statuses:
            stmt = stmt.where(Report.status.in_(statuses))
        stmt = stmt.order_by(Report.created_time_stamp.desc(), Report.report_id.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_assigned(self, user_id: int) -> List[Report]:
        return await self.list(assigned_user_id=user_id)

    async def list_assigned_open(self, user_id: int) -> List[Report]:
        return await self.list(assigned_user_id=user_id, statuses=OPEN_STATUSES)

    async def list_assigned_closed(self, user_id: int) -> List[Report]:
        return await self.list(assigned_user_id=user_id, statuses=CLOSED_STATUSES)

    # ==================== Writes ====================

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise ServerError() from e

    async def create(self, data: ReportCreate) -> Report:
        """
        Validate and persist a new report.

        status defaults to open and bountyAmount to 0. The returned report
        carries only the assignee's id (not expanded).
        """
        errors: List[FieldError] = []

        if _is_blank(data.title):
            errors.append({"field": "title", "msg": "Title is required"})
        if _is_blank(data.description):
            errors.append({"field": "description", "msg": "Description is required"})
        if _is_blank(data.severity):
            errors.append({"field": "severity", "msg": "Severity is required"})
        if _is_blank(data.reporter_email):
            errors.append({"field": "reporterEmail", "msg": "Reporter email is required"})
        elif not _check_email(data.reporter_email.strip()):
            errors.append({"field": "reporterEmail", "msg": "Reporter email must be a valid email address"})

        checked = ["bounty_amount"] if data.bounty_amount is not None else []
        if not _is_blank(data.severity):
            checked.append("severity")
        if data.status is not None:
            checked.append("status")
        self._check_enums_and_bounty(errors, data.status, data.severity, data.bounty_amount, checked)

        assignee = None
        if data.assigned_user not in (None, ""):
            assignee = await self._resolve_assignee(data.assigned_user, errors)

        if errors:
            logger.info(f"Report create rejected: {[e['field'] for e in errors]}")
            raise ValidationError(errors=errors)

        status = ReportStatus(data.status) if data.status else ReportStatus.OPEN
        now = datetime.utcnow()
        report = Report(
            title=data.title.strip(),
            description=data.description,
            status=status,
            severity=Severity(data.severity),
            bounty_amount=data.bounty_amount or 0,
            reporter_email=data.reporter_email.strip(),
            assigned_user_id=assignee.user_id if assignee else None,
            created_time_stamp=now,
            closed_time_stamp=now if status in CLOSED_STATUSES else None,
        )
        self.db.add(report)
        await self._commit("create report")
        await self.db.refresh(report)

        logger.info(f"Created report {report.report_id} ({report.severity.value}): {report.title}")
        return report

    async def update(self, report_id: Any, data: ReportUpdate) -> Report:
        """
        Apply the fields present in the request and return the report expanded.

        Setting status to resolved/closed stamps closedTimeStamp (again, if it
        was already stamped). Other statuses leave closedTimeStamp untouched.
        """
        report = await self.get(report_id)
        updates = data.model_dump(exclude_unset=True)
        errors: List[FieldError] = []

        for field, label in (("title", "Title"), ("description", "Description")):
            if field in updates and _is_blank(updates[field]):
                errors.append({"field": field, "msg": f"{label} cannot be empty"})

        self._check_enums_and_bounty(
            errors,
            updates.get("status"),
            updates.get("severity"),
            updates.get("bounty_amount"),
            list(updates.keys()),
        )

        assignee = None
        if updates.get("assigned_user") not in (None, ""):
            assignee = await self._resolve_assignee(updates["assigned_user"], errors)

        if errors:
            logger.info(f"Report {report.report_id} update rejected: {[e['field'] for e in errors]}")
            raise ValidationError(errors=errors)

        if "title" in updates:
            report.title = updates["title"].strip()
        if "description" in updates:
            report.description = updates["description"]
        if "severity" in updates:
            report.severity = Severity(updates["severity"])
        if "bounty_amount" in updates:
            report.bounty_amount = updates["bounty_amount"]
        if "assigned_user" in updates:
            # Explicit null (or "") unassigns
            report.assigned_user = assignee
        if "status" in updates:
            report.status = ReportStatus(updates["status"])
            if report.status in CLOSED_STATUSES:
                report.closed_time_stamp = datetime.utcnow()

        await self._commit(f"update report {report.report_id}")
        logger.info(f"Updated report {report.report_id}: {list(updates.keys())}")

        return await self.get(report.report_id)

    async def delete(self, report_id: Any) -> bool:
        """Delete a report; its comments go with it."""
        report = await self.get(report_id)
        await self.db.delete(report)
        await self._commit(f"delete report {report.report_id}")
        logger.info(f"Deleted report {report.report_id}")
        return True


async def get_report_service(db: AsyncSession = Depends(get_async_db)) -> ReportService:
    """Dependency injection provider."""
    return ReportService(db)
