"""
Enumerations and constants for the review API.
"""

from enum import Enum


class Table(str, Enum):
    """Tables held by the store."""

    VIDEOS = "videos"
    ISSUES = "issues"
    TASKS = "tasks"


class TaskStatus(str, Enum):
    """Lifecycle values of a task's status column."""

    PENDING = "pending"
    COMPLETED = "completed"


class ServiceEndpoint(str, Enum):
    """Endpoints exposed by the service."""

    ROOT = "/"
    HEALTH = "/health"
    METRICS = "/metrics"

    VIDEOS = "/api/videos"
    VIDEO = "/api/videos/{video_id}"
    VIDEO_ISSUES = "/api/videos/{video_id}/issues"
    ISSUE = "/api/issues/{issue_id}"
    TASKS = "/api/tasks"
    TASK_COMPLETE = "/api/tasks/{task_id}/complete"


# Embeds each task's owning video under the "video" key via the video_id foreign key.
TASK_WITH_VIDEO_COLUMNS = "*,video:video_id(*)"

ISSUE_DELETED_MESSAGE = "Issue deleted successfully"
