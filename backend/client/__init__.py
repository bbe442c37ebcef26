from .api_client import ApiError, TrackerClient
from .report_cache import ReportLists
from .report_store import ReportStore
from .session import AuthSession, FileTokenStore, MemoryTokenStore

__all__ = [
    'ApiError',
    'TrackerClient',
    'ReportLists',
    'ReportStore',
    'AuthSession',
    'FileTokenStore',
    'MemoryTokenStore',
]
