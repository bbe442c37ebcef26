"""
Reports Router - REST endpoints for bug report CRUD and the assigned-to-me views.

Report ids are taken as strings so that malformed ids reach the service and
come back as the same 404 as a missing report.
"""

from fastapi import APIRouter, Depends
from typing import List
import logging

from models import User
from services import auth_service
from services.report_service import ReportService, get_report_service
from schemas.report import ReportCreate, ReportUpdate, ReportSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


# =============================================================================
# Create / list
# =============================================================================

@router.post("", response_model=ReportSchema)
async def create_report(
    data: ReportCreate,
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """
    Create a bug report.

    - **title**, **description**, **severity**, **reporterEmail** are required
    - **status** defaults to open, **bountyAmount** to 0
    - **assignedUser** is returned as the bare user id
    """
    report = await report_service.create(data)
    return ReportSchema.from_model(report, expand_assignee=False)


@router.get("", response_model=List[ReportSchema])
async def list_reports(
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """List every report, newest first."""
    reports = await report_service.list()
    return [ReportSchema.from_model(r) for r in reports]


@router.get("/assigned", response_model=List[ReportSchema])
async def list_assigned_reports(
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """List reports assigned to the current user, newest first."""
    reports = await report_service.list_assigned(current_user.user_id)
    return [ReportSchema.from_model(r) for r in reports]


@router.get("/assigned/open", response_model=List[ReportSchema])
async def list_assigned_open_reports(
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """List open or in-progress reports assigned to the current user."""
    reports = await report_service.list_assigned_open(current_user.user_id)
    return [ReportSchema.from_model(r) for r in reports]


@router.get("/assigned/closed", response_model=List[ReportSchema])
async def list_assigned_closed_reports(
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """List resolved or closed reports assigned to the current user."""
    reports = await report_service.list_assigned_closed(current_user.user_id)
    return [ReportSchema.from_model(r) for r in reports]


# =============================================================================
# Single report
# =============================================================================

@router.get("/{report_id}", response_model=ReportSchema)
async def get_report(
    report_id: str,
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """Get a report by ID."""
    report = await report_service.get(report_id)
    return ReportSchema.from_model(report)


@router.put("/{report_id}", response_model=ReportSchema)
async def update_report(
    report_id: str,
    data: ReportUpdate,
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """
    Partially update a report. Only fields present in the body change.

    Moving to resolved or closed stamps closedTimeStamp; moving back to an
    open state leaves it as it was.
    """
    report = await report_service.update(report_id, data)
    logger.info(f"User {current_user.user_id} updated report {report.report_id}")
    return ReportSchema.from_model(report)


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    current_user: User = Depends(auth_service.validate_token),
    report_service: ReportService = Depends(get_report_service),
):
    """Delete a report and its comments."""
    await report_service.delete(report_id)
    logger.info(f"User {current_user.user_id} deleted report {report_id}")
    return {"detail": "Bug report removed"}
