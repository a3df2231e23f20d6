from __future__ import annotations

import json
from contextvars import ContextVar
from typing import Any, Iterable, assert_never

from destination_effects.core.config import SERVICE_NAME
from destination_effects.core.models import DestinationEffect, EffectType
from destination_effects.core.utils import utc_timestamp

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_migration_id_var: ContextVar[str | None] = ContextVar("migration_id", default=None)
_destination_var: ContextVar[str | None] = ContextVar("destination", default=None)
_endpoint_var: ContextVar[str | None] = ContextVar("endpoint", default=None)


def set_migration_context(
    *,
    request_id: str | None = None,
    migration_id: str | None = None,
    destination: str | None = None,
    endpoint: str | None = None,
) -> None:
    _request_id_var.set(request_id)
    _migration_id_var.set(migration_id)
    _destination_var.set(destination)
    _endpoint_var.set(endpoint)


def bind_migration_context(*, migration_id: str | None, destination: str | None) -> None:
    """Replace the migration fields, keeping request_id and endpoint.

    None clears a field, so effects never inherit another migration's context.
    """
    _migration_id_var.set(migration_id)
    _destination_var.set(destination)


def effect_level(effect_type: EffectType) -> str:
    match effect_type:
        case EffectType.CREATED | EffectType.UPDATED | EffectType.NOOP:
            return "INFO"
        case EffectType.INSUFFICIENT_APPROVALS:
            return "WARN"
        case EffectType.ERROR:
            return "ERROR"
        case _:
            assert_never(effect_type)


def log_stdout(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=True))


def log_effect(effect: DestinationEffect, *, log_type: str = "effect") -> None:
    ref = effect.destination_ref
    log_stdout(
        {
            "timestamp": utc_timestamp(),
            "level": effect_level(effect.type),
            "service": SERVICE_NAME,
            "log_type": log_type,
            "request_id": _request_id_var.get(),
            "migration_id": _migration_id_var.get(),
            "destination": _destination_var.get(),
            "effect_type": effect.type.value,
            "summary": effect.summary,
            "origin_refs": [change.ref for change in effect.origin_refs],
            "destination_ref": ref.model_dump() if ref is not None else None,
            "errors": list(effect.errors),
        }
    )


def log_request_summary(
    *,
    request_id: str,
    endpoint: str,
    client: str | None,
    status_code: int,
    effect_types: Iterable[str],
    duration_ms: int,
    level: str = "INFO",
) -> None:
    log_stdout(
        {
            "timestamp": utc_timestamp(),
            "level": level,
            "service": SERVICE_NAME,
            "log_type": "request",
            "request_id": request_id,
            "endpoint": endpoint,
            "client": client,
            "status_code": status_code,
            "effect_types": list(effect_types),
            "duration_ms": duration_ms,
        }
    )
