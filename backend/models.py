from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum, Float
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
from sqlalchemy.sql.schema import CheckConstraint
from enum import Enum as PyEnum

Base = declarative_base()

# Enums
class UserRole(str, PyEnum):
    """Team role chosen at registration. No transition rules are enforced."""
    DEVELOPER = "developer"
    TESTER = "tester"
    MANAGER = "manager"
    ADMIN = "admin"


class ReportStatus(str, PyEnum):
    """Workflow state of a bug report."""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Severity(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Statuses that count as finished work (assigned/closed view, closedTimeStamp stamping)
CLOSED_STATUSES = (ReportStatus.RESOLVED, ReportStatus.CLOSED)
OPEN_STATUSES = (ReportStatus.OPEN, ReportStatus.IN_PROGRESS)


def _enum_column(enum_cls, name: str):
    return Enum(enum_cls, values_callable=lambda x: [e.value for e in x], name=name)


class User(Base):
    """Team member account"""
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(_enum_column(UserRole, 'userrole'), default=UserRole.DEVELOPER, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    assigned_reports = relationship("Report", back_populates="assigned_user")
    comments = relationship("Comment", back_populates="user")


class Report(Base):
    """Tracked bug report"""
    __tablename__ = "bug_reports"
    __table_args__ = (
        CheckConstraint("bounty_amount >= 0", name="ck_bug_reports_bounty_non_negative"),
    )

    report_id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(_enum_column(ReportStatus, 'reportstatus'), default=ReportStatus.OPEN, nullable=False, index=True)
    severity = Column(_enum_column(Severity, 'severity'), default=Severity.MEDIUM, nullable=False)
    bounty_amount = Column(Float, default=0, nullable=False)
    reporter_email = Column(String(255), nullable=False)  # Supplied by caller, not tied to an account
    assigned_user_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True)
    created_time_stamp = Column(DateTime, default=datetime.utcnow, index=True)
    closed_time_stamp = Column(DateTime, nullable=True)  # Stamped on resolve/close, never cleared
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    assigned_user = relationship("User", back_populates="assigned_reports")
    comments = relationship(
        "Comment",
        back_populates="bug_report",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Comment(Base):
    """Discussion entry on a bug report"""
    __tablename__ = "comments"

    comment_id = Column(Integer, primary_key=True, index=True)
    report_id = Column(Integer, ForeignKey("bug_reports.report_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    bug_report = relationship("Report", back_populates="comments")
    user = relationship("User", back_populates="comments")
