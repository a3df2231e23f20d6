from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_record_id() -> str:
    return str(uuid4())
