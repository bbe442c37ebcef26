from typing import List, Optional, TypedDict


class FieldError(TypedDict):
    field: str
    msg: str


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_response(self) -> dict:
        return {"detail": self.message}


class NotFoundError(AppError):
    """Raised when a resource is not found (missing or malformed id)."""
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when input validation fails. Carries field-level messages."""
    def __init__(self, message: Optional[str] = None, errors: Optional[List[FieldError]] = None):
        self.errors: List[FieldError] = list(errors or [])
        if message is None:
            message = self.errors[0]["msg"] if self.errors else "Invalid input"
        super().__init__(message, status_code=400)

    def to_response(self) -> dict:
        return {"detail": self.message, "errors": self.errors}


class AuthenticationError(AppError):
    """Raised when a request carries no usable credentials or they don't match."""
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)
        self.headers = {"WWW-Authenticate": "Bearer"}


class AuthorizationError(AppError):
    """Raised when an authenticated user is not permitted to perform an action."""
    def __init__(self, message: str = "User not authorized"):
        super().__init__(message, status_code=401)


class ServerError(AppError):
    """Raised on unexpected persistence or runtime failures. Message is opaque."""
    def __init__(self, message: str = "Server Error"):
        super().__init__(message, status_code=500)

##### ENTITY NOT FOUND EXCEPTIONS #####

class ReportNotFoundError(NotFoundError):
    """Raised when a bug report is not found."""
    def __init__(self):
        super().__init__("Bug report not found")


class CommentNotFoundError(NotFoundError):
    """Raised when a comment is not found."""
    def __init__(self):
        super().__init__("Comment not found")
