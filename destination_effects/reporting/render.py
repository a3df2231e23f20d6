"""Human-facing reports built from destination effects.

Summaries and errors are rendered verbatim; nothing here synthesizes messages
from them.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, assert_never

import yaml

from destination_effects.core.models import DestinationEffect, EffectType


def tally_effects(effects: Iterable[DestinationEffect]) -> Dict[EffectType, int]:
    counts = {effect_type: 0 for effect_type in EffectType}
    for effect in effects:
        counts[effect.type] += 1
    return counts


def effect_headline(effect: DestinationEffect) -> str:
    match effect.type:
        case EffectType.CREATED:
            label = "Created"
        case EffectType.UPDATED:
            label = "Updated"
        case EffectType.NOOP:
            label = "No changes"
        case EffectType.INSUFFICIENT_APPROVALS:
            label = "Waiting for approvals"
        case EffectType.ERROR:
            label = "Failed"
        case _:
            assert_never(effect.type)
    return f"[{effect.type.value}] {label}: {effect.summary}"


def render_text_report(effects: Iterable[DestinationEffect]) -> str:
    lines: List[str] = []
    for effect in effects:
        lines.append(effect_headline(effect))
        if effect.origin_refs:
            lines.append("  origin: " + ", ".join(change.ref for change in effect.origin_refs))
        ref = effect.destination_ref
        if ref is not None:
            lines.append(f"  destination ({ref.type}): {ref.url or ref.id}")
        for error in effect.errors:
            lines.append(f"  error: {error}")
    return "\n".join(lines)


def render_yaml_report(effects: Iterable[DestinationEffect]) -> str:
    effects = list(effects)
    document = {
        "summary": {
            effect_type.value: count for effect_type, count in tally_effects(effects).items()
        },
        "effects": [effect.model_dump(mode="json") for effect in effects],
    }
    return yaml.safe_dump(document, sort_keys=False)
