"""Read-only view of destination effects for post-migration hooks.

Hooks see effects as plain structs with the field names ``type`` (text),
``summary``, ``origin_refs``, ``destination_ref`` (may be None) and ``errors``.
They can also record new effects through :class:`EffectContext`.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from destination_effects.core.logging import bind_migration_context, log_effect
from destination_effects.core.models import Change, DestinationEffect, DestinationRef, EffectType

Struct = Mapping[str, Any]


def change_struct(change: Change) -> Struct:
    return MappingProxyType(
        {
            "ref": change.ref,
            "author": change.author,
            "message": change.message,
            "date_time_iso_str": change.date_time.isoformat() if change.date_time else None,
        }
    )


def destination_ref_struct(ref: DestinationRef) -> Struct:
    return MappingProxyType({"id": ref.id, "type": ref.type, "url": ref.url})


def effect_struct(effect: DestinationEffect) -> Struct:
    ref = effect.destination_ref
    return MappingProxyType(
        {
            "type": effect.type.value,
            "summary": effect.summary,
            "origin_refs": tuple(change_struct(change) for change in effect.origin_refs),
            "destination_ref": destination_ref_struct(ref) if ref is not None else None,
            "errors": effect.errors,
        }
    )


def parse_effect_type(value: str) -> EffectType:
    try:
        return EffectType(value)
    except ValueError:
        allowed = ", ".join(effect_type.value for effect_type in EffectType)
        raise ValueError(f"Unknown effect type '{value}'. Valid values: {allowed}") from None


class EffectContext:
    """Collects the effects a migration produced on one destination.

    ``on_record`` is called with every new effect after it has been logged,
    which is how the caller persists or forwards it.
    """

    def __init__(
        self,
        on_record: Optional[Callable[[DestinationEffect], None]] = None,
        *,
        migration_id: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> None:
        self._effects: List[DestinationEffect] = []
        self._on_record = on_record
        self.migration_id = migration_id
        self.destination = destination

    @property
    def effects(self) -> Tuple[DestinationEffect, ...]:
        return tuple(self._effects)

    def structs(self) -> Tuple[Struct, ...]:
        return tuple(effect_struct(effect) for effect in self._effects)

    def new_origin_ref(self, ref: str) -> Change:
        return Change(ref=ref)

    def new_destination_ref(self, ref: str, type: str, url: Optional[str] = None) -> DestinationRef:
        return DestinationRef(id=ref, type=type, url=url)

    def record_effect(
        self,
        summary: str,
        origin_refs: Iterable[Change],
        destination_ref: Optional[DestinationRef],
        errors: Iterable[str] = (),
        type: str = "UPDATED",
    ) -> DestinationEffect:
        effect = DestinationEffect(
            type=parse_effect_type(type),
            summary=summary,
            origin_refs=origin_refs,
            destination_ref=destination_ref,
            errors=errors,
        )
        self._effects.append(effect)
        bind_migration_context(migration_id=self.migration_id, destination=self.destination)
        log_effect(effect)
        if self._on_record is not None:
            self._on_record(effect)
        return effect
