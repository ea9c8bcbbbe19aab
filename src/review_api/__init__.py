"""
REST API over the video review store.
"""

from .config import ApiSettings, get_settings
from .enums import ServiceEndpoint, Table, TaskStatus


__version__ = "0.1.0"

__all__ = [
    "ApiSettings",
    "ServiceEndpoint",
    "Table",
    "TaskStatus",
    "get_settings",
]
