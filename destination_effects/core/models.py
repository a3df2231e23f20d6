from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EffectType(str, Enum):
    """Type of effect on the destination."""

    # A new review or change was created
    CREATED = "CREATED"
    # An existing review or change was updated
    UPDATED = "UPDATED"
    # Nothing to write. destination_ref might still be populated if the noop was
    # detected against an existing review or pending change.
    NOOP = "NOOP"
    # The change doesn't have enough approvals for the effect to happen
    INSUFFICIENT_APPROVALS = "INSUFFICIENT_APPROVALS"
    # A user attributable error prevented the destination from creating/updating the change
    ERROR = "ERROR"


class Change(BaseModel):
    """Reference to an origin change included in a migration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ref: str
    author: Optional[str] = None
    message: Optional[str] = None
    date_time: Optional[datetime] = None


class DestinationRef(BaseModel):
    """Reference to the change/review created or updated on the destination.

    ``type`` is defined by each destination and is guaranteed to be more stable
    than ``id`` or ``url``, so tooling should key behavior off it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    type: str
    url: Optional[str] = None


class DestinationEffect(BaseModel):
    """An effect that happened in the destination due to a single migration.

    Attributes:
        type: What happened: CREATED, UPDATED, NOOP, INSUFFICIENT_APPROVALS or ERROR.
        summary: Textual summary of what happened. Not meant to be parsed.
        origin_refs: Origin changes included in this migration, in order.
        destination_ref: Destination reference updated/created. Might be None if
            there was no effect, and might be set even if the type is ERROR (for
            example a synchronous presubmit failed after a review was created).
        errors: Errors that happened during the write to the destination, such as
            synchronous presubmit failures.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: EffectType
    summary: str
    origin_refs: Tuple[Change, ...]
    destination_ref: Optional[DestinationRef] = None
    errors: Tuple[str, ...]

    @field_validator("origin_refs", "errors", mode="before")
    @classmethod
    def _copy_sequence(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            raise ValueError("expected a sequence of values, not a single string")
        if isinstance(value, (set, frozenset)):
            raise ValueError("expected an ordered sequence, not a set")
        if isinstance(value, Iterable) and not isinstance(value, dict):
            return tuple(value)
        return value


class EffectReportRecord(BaseModel):
    record_id: str
    timestamp: str
    migration_id: Optional[str] = None
    destination: Optional[str] = None
    effect: DestinationEffect


class EffectSubmission(BaseModel):
    model_config = ConfigDict(extra="forbid")

    migration_id: Optional[str] = None
    destination: Optional[str] = None
    effect: DestinationEffect


class EffectTally(BaseModel):
    total: int = 0
    counts: dict[str, int] = Field(default_factory=dict)
