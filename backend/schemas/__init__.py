"""
Schemas package for the bug tracker API.

Core types are in schemas/user.py, schemas/report.py and schemas/comment.py.
Auth request schemas are defined in the routers where they're used.
"""

from .base import CamelModel

from .user import (
    UserRef,
    User,
    Token,
)

from .report import (
    ReportCreate,
    ReportUpdate,
    ReportSchema,
)

from .comment import (
    CommentCreate,
    CommentSchema,
)


__all__ = [
    'CamelModel',

    # User schemas
    'UserRef',
    'User',
    'Token',

    # Report schemas
    'ReportCreate',
    'ReportUpdate',
    'ReportSchema',

    # Comment schemas
    'CommentCreate',
    'CommentSchema',
]
