"""
Bug report schemas for request/response validation.

Request bodies are deliberately loose (every field optional, enums as plain
strings) so that ReportService can report missing and invalid fields as
field-level validation messages instead of schema parse errors.
"""

from pydantic import Field
from typing import Optional, Union
from datetime import datetime

from models import Report as ReportModel, ReportStatus, Severity
from schemas.base import CamelModel
from schemas.user import UserRef


class ReportCreate(CamelModel):
    """Request schema for creating a bug report."""
    title: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[str] = Field(default=None, description="low | medium | high | critical")
    reporter_email: Optional[str] = None
    status: Optional[str] = Field(default=None, description="Defaults to open")
    bounty_amount: Optional[float] = Field(default=None, description="Defaults to 0")
    assigned_user: Optional[Union[int, str]] = Field(default=None, description="User id to assign")


class ReportUpdate(CamelModel):
    """
    Request schema for a partial update.

    Only fields present in the body are applied; use model_fields_set /
    model_dump(exclude_unset=True) to tell absent from explicit null.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    severity: Optional[str] = None
    bounty_amount: Optional[float] = None
    assigned_user: Optional[Union[int, str]] = None


class ReportSchema(CamelModel):
    """Response schema for a bug report."""
    id: int
    title: str
    description: str
    status: ReportStatus
    severity: Severity
    bounty_amount: float
    reporter_email: str
    assigned_user: Optional[Union[UserRef, int]] = Field(
        default=None,
        description="Expanded user, or the bare user id when not populated"
    )
    created_time_stamp: datetime
    closed_time_stamp: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, report: ReportModel, expand_assignee: bool = True) -> "ReportSchema":
        """
        Build the response shape.

        With expand_assignee the assigned_user relationship must already be
        loaded (selectinload); otherwise only the foreign key is read.
        """
        if expand_assignee:
            assigned = UserRef.from_model(report.assigned_user) if report.assigned_user else None
        else:
            assigned = report.assigned_user_id

        return cls(
            id=report.report_id,
            title=report.title,
            description=report.description,
            status=report.status,
            severity=report.severity,
            bounty_amount=report.bounty_amount,
            reporter_email=report.reporter_email,
            assigned_user=assigned,
            created_time_stamp=report.created_time_stamp,
            closed_time_stamp=report.closed_time_stamp,
            updated_at=report.updated_at,
        )
