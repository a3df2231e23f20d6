from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from destination_effects.core.config import EFFECTS_LOG_PATH
from destination_effects.core.models import EffectReportRecord, EffectType


def append_effect_record(record: EffectReportRecord) -> None:
    path = Path(EFFECTS_LOG_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(record.model_dump_json() + "\n")


def read_effect_records(
    limit: Optional[int] = None,
    effect_type: Optional[EffectType] = None,
    destination: Optional[str] = None,
) -> List[EffectReportRecord]:
    path = Path(EFFECTS_LOG_PATH)
    if not path.exists() or (limit is not None and limit <= 0):
        return []
    records: List[EffectReportRecord] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            try:
                record = EffectReportRecord.model_validate(json.loads(line))
            except (json.JSONDecodeError, ValidationError):
                continue
            if effect_type and record.effect.type is not effect_type:
                continue
            if destination and record.destination != destination:
                continue
            records.append(record)
            if limit is not None and len(records) >= limit:
                break
    return records


def ensure_effect_log_ready() -> None:
    path = Path(EFFECTS_LOG_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8"):
        return
