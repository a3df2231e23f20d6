from __future__ import annotations

import json

import pytest
import yaml

from destination_effects.audit import logger as effect_log
from destination_effects.core.logging import effect_level, log_effect, set_migration_context
from destination_effects.core.models import (
    Change,
    DestinationEffect,
    DestinationRef,
    EffectReportRecord,
    EffectType,
)
from destination_effects.reporting.render import (
    effect_headline,
    render_text_report,
    render_yaml_report,
    tally_effects,
)


def _effect(effect_type: EffectType, **overrides) -> DestinationEffect:
    fields = {
        "type": effect_type,
        "summary": f"{effect_type.value.lower()} summary",
        "origin_refs": [Change(ref="abc123")],
        "destination_ref": DestinationRef(id="42", type="pull_request", url="https://github.com/o/r/pull/42"),
        "errors": [],
    }
    fields.update(overrides)
    return DestinationEffect(**fields)


@pytest.fixture
def log_path(tmp_path, monkeypatch):
    path = tmp_path / "logs" / "effects.log"
    monkeypatch.setattr(effect_log, "EFFECTS_LOG_PATH", str(path))
    return path


def _record(effect: DestinationEffect, destination: str = "github") -> EffectReportRecord:
    return EffectReportRecord(
        record_id=f"r-{effect.type.value}",
        timestamp="2024-05-01T00:00:00+00:00",
        migration_id="m-1",
        destination=destination,
        effect=effect,
    )


def test_report_log_round_trip(log_path) -> None:
    created = _record(_effect(EffectType.CREATED))
    failed = _record(_effect(EffectType.ERROR, errors=["presubmit failed"]), destination="gerrit")
    effect_log.append_effect_record(created)
    effect_log.append_effect_record(failed)

    records = effect_log.read_effect_records()
    assert records == [created, failed]
    assert records[1].effect.errors == ("presubmit failed",)


def test_report_log_filters_and_limits(log_path) -> None:
    for effect_type in EffectType:
        effect_log.append_effect_record(_record(_effect(effect_type)))
    effect_log.append_effect_record(_record(_effect(EffectType.ERROR), destination="gerrit"))

    errors = effect_log.read_effect_records(effect_type=EffectType.ERROR)
    assert [r.destination for r in errors] == ["github", "gerrit"]
    assert len(effect_log.read_effect_records(destination="gerrit")) == 1
    assert len(effect_log.read_effect_records(limit=2)) == 2


def test_report_log_skips_corrupt_lines(log_path) -> None:
    effect_log.append_effect_record(_record(_effect(EffectType.NOOP)))
    with log_path.open("a", encoding="utf-8") as handle:
        handle.write("not json\n\n")
        handle.write(json.dumps({"record_id": "x"}) + "\n")
    assert len(effect_log.read_effect_records()) == 1


def test_missing_report_log_reads_empty(log_path) -> None:
    assert effect_log.read_effect_records() == []
    effect_log.ensure_effect_log_ready()
    assert log_path.exists()


def test_tally_includes_every_type() -> None:
    counts = tally_effects([_effect(EffectType.CREATED), _effect(EffectType.CREATED), _effect(EffectType.ERROR)])
    assert list(counts) == list(EffectType)
    assert counts[EffectType.CREATED] == 2
    assert counts[EffectType.ERROR] == 1
    assert counts[EffectType.NOOP] == 0


@pytest.mark.parametrize("effect_type", list(EffectType))
def test_headline_handles_every_type(effect_type: EffectType) -> None:
    headline = effect_headline(_effect(effect_type))
    assert headline.startswith(f"[{effect_type.value}]")
    assert headline.endswith(f"{effect_type.value.lower()} summary")


def test_text_report_renders_fields_verbatim() -> None:
    report = render_text_report(
        [
            _effect(EffectType.ERROR, errors=["presubmit failed: //foo:test"]),
            _effect(EffectType.NOOP, destination_ref=DestinationRef(id="99", type="gerrit_change")),
            _effect(EffectType.UPDATED, destination_ref=None, origin_refs=[]),
        ]
    )
    lines = report.splitlines()
    assert "  destination (pull_request): https://github.com/o/r/pull/42" in lines
    assert "  error: presubmit failed: //foo:test" in lines
    assert "  destination (gerrit_change): 99" in lines
    assert lines[-1] == "[UPDATED] Updated: updated summary"


def test_yaml_report_contains_summary_and_effects() -> None:
    document = yaml.safe_load(render_yaml_report([_effect(EffectType.CREATED), _effect(EffectType.NOOP)]))
    assert document["summary"]["CREATED"] == 1
    assert document["summary"]["INSUFFICIENT_APPROVALS"] == 0
    assert document["effects"][1]["type"] == "NOOP"
    assert document["effects"][0]["destination_ref"]["type"] == "pull_request"


def test_effect_level_per_type() -> None:
    assert effect_level(EffectType.CREATED) == "INFO"
    assert effect_level(EffectType.UPDATED) == "INFO"
    assert effect_level(EffectType.NOOP) == "INFO"
    assert effect_level(EffectType.INSUFFICIENT_APPROVALS) == "WARN"
    assert effect_level(EffectType.ERROR) == "ERROR"


def test_log_effect_emits_json_line(capsys) -> None:
    set_migration_context(migration_id="m-7", destination="gerrit")
    log_effect(_effect(EffectType.ERROR, errors=["boom"], destination_ref=None))
    payload = json.loads(capsys.readouterr().out.strip())
    assert payload["level"] == "ERROR"
    assert payload["log_type"] == "effect"
    assert payload["migration_id"] == "m-7"
    assert payload["destination"] == "gerrit"
    assert payload["effect_type"] == "ERROR"
    assert payload["origin_refs"] == ["abc123"]
    assert payload["destination_ref"] is None
    assert payload["errors"] == ["boom"]


@pytest.mark.parametrize("limit", [0, -1])
def test_report_log_non_positive_limit_reads_nothing(log_path, limit: int) -> None:
    for effect_type in (EffectType.CREATED, EffectType.UPDATED, EffectType.NOOP):
        effect_log.append_effect_record(_record(_effect(effect_type)))
    assert effect_log.read_effect_records(limit=limit) == []
    assert len(effect_log.read_effect_records(limit=1)) == 1
