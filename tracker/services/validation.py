"""
Domain-level value checks, run by the services before anything is persisted.

The database columns are plain strings; these functions own the enums and
defaults so the rules do not depend on the storage layer.
"""
import re

from tracker.config import settings
from tracker.exceptions import BadRequestError

ISSUE_STATUSES = ("todo", "inprogress", "done")
ISSUE_PRIORITIES = ("low", "medium", "high", "urgent")
HIGH_PRIORITIES = ("high", "urgent")
INVITE_ROLES = ("manager", "developer", "viewer")
ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "video/mp4",
)

DEFAULT_STATUS = "todo"
DEFAULT_PRIORITY = "medium"
DEFAULT_INVITE_ROLE = "developer"

PROJECT_KEY_RE = re.compile(r"^[A-Z][A-Z0-9]{0,9}$")


def normalize_project_key(key: str) -> str:
    normalized = (key or "").strip().upper()
    if not PROJECT_KEY_RE.match(normalized):
        raise BadRequestError(
            "Project key must start with a letter and contain up to 10 letters or digits"
        )
    return normalized


def validate_status(status: str) -> str:
    if status not in ISSUE_STATUSES:
        raise BadRequestError("Invalid status value")
    return status


def validate_priority(priority: str | None) -> str:
    if priority is None:
        return DEFAULT_PRIORITY
    if priority not in ISSUE_PRIORITIES:
        raise BadRequestError("Invalid priority value")
    return priority


def validate_invite_role(role: str | None) -> str:
    if not role:
        return DEFAULT_INVITE_ROLE
    if role not in INVITE_ROLES:
        raise BadRequestError(f"Invalid role. Allowed roles: {', '.join(INVITE_ROLES)}")
    return role


def validate_upload(size: int, mime_type: str | None):
    if size > settings.MAX_UPLOAD_BYTES:
        raise BadRequestError(
            f"File size too large (max {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB)"
        )
    if mime_type not in ALLOWED_MIME_TYPES:
        raise BadRequestError("Invalid file type. Only images, PDFs, and MP4 videos are allowed")


def attachment_type_for(resource_type: str, mime_type: str) -> str:
    """Map the storage resource type (and mimetype) onto an attachment type."""
    if mime_type == "application/pdf":
        return "pdf"
    if resource_type in ("image", "video"):
        return resource_type
    return "file"
