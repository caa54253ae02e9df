"""Pydantic schemas for tasks.

Learn: One body schema serves both create (POST) and update (PUT):
- TaskBody: every field optional. On update, empty or missing means
  "leave as is", so there is no way to clear a field.
- TaskRead: what the API returns.

Deadlines travel as bare dates ("2025-06-01"). The server pins them to
23:59 UTC that day; see parse_due_date. Updates may also send a full
RFC 3339 timestamp (parse_deadline).
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_serializer

from tasklist.errors import ValidationError

END_OF_DAY = "T23:59:00Z"

_BARE_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIMESTAMP = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})"
)


def _parse_rfc3339(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError("bad deadline format")
    return parsed.astimezone(timezone.utc)


def parse_due_date(value: Optional[str]) -> datetime:
    """Turn a create-time deadline into an absolute UTC timestamp.

    Only a bare "YYYY-MM-DD" is accepted; "2025-06-01" becomes
    2025-06-01T23:59:00Z. Anything else is a bad deadline.
    """
    if not value or not _BARE_DATE.fullmatch(value):
        raise ValidationError("bad deadline format")
    return _parse_rfc3339(value + END_OF_DAY)


def parse_deadline(value: Optional[str]) -> datetime:
    """Update-time deadline: a bare date (end of day) or a full timestamp.

    The timestamp must carry seconds and an offset, e.g.
    "2025-06-20T10:30:00+02:00" or "2025-06-20T08:30:00Z".
    """
    if value and _TIMESTAMP.fullmatch(value):
        return _parse_rfc3339(value)
    return parse_due_date(value)


def format_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class TaskBody(BaseModel):
    """Create/update body. Title 5-30 and description ≤100 chars are advisory."""
    title: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[str] = None


class TaskRead(BaseModel):
    task_id: uuid.UUID
    title: str
    description: str
    deadline: datetime
    created_at: datetime
    updated_at: datetime
    user_id: uuid.UUID

    model_config = {"from_attributes": True}

    @field_serializer("deadline", "created_at", "updated_at")
    def _utc(self, value: datetime) -> str:
        return format_utc(value)
