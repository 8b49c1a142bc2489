from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from app.services.analysis_types import StageDefinition, load_stage_specification
from app.services.call_script_files import CallScriptFileError, CallScriptFiles
from app.services.entity_store import AnalysisRecord, InMemoryEntityStore
from app.services.response_contract import AnalysisResult, StageFinding
from app.services.statistics import calculate_statistics


@pytest.fixture
def script_dir(tmp_path):
    (tmp_path / "paytm.txt").write_text("Namaste, this is Paytm calling.", encoding="utf-8")
    (tmp_path / "renewal.txt").write_text("Renewal script", encoding="utf-8")
    return tmp_path


def test_script_files_resolve_map_and_default_names(script_dir):
    files = CallScriptFiles(script_dir, {"1": "paytm.txt"})

    assert files.read("1") == "Namaste, this is Paytm calling."
    assert files.read("renewal") == "Renewal script"
    assert files.available_ids() == ["1", "paytm", "renewal"]


@pytest.mark.parametrize("script_id", ["missing", "../secrets", "2"])
def test_script_files_reject_unknown_ids(script_dir, script_id):
    files = CallScriptFiles(script_dir, {"2": "../outside.txt"})

    with pytest.raises(CallScriptFileError):
        files.read(script_id)


def test_store_falls_back_to_script_files(script_dir):
    store = InMemoryEntityStore(script_files=CallScriptFiles(script_dir))

    record = store.get_call_script("paytm")

    assert record is not None
    assert record.content.startswith("Namaste")
    assert store.get_call_script("missing") is None


def test_stage_specification_keeps_order():
    store = InMemoryEntityStore()
    stages = [
        StageDefinition(stage_name="Closing", required=True),
        StageDefinition(stage_name="Introduction", required=True),
    ]

    record = store.save_stage_set("Reverse", stages)

    assert store.get_stage_specification(record.id) == tuple(stages)
    assert store.get_stage_specification("unknown") is None


def test_sample_stage_set_loads_in_file_order():
    sample = Path(__file__).resolve().parents[1] / "assets" / "call-stages.sample.json"

    stages = load_stage_specification(sample)

    assert [stage.stage_name for stage in stages] == [
        "Introduction",
        "Pitch",
        "Data Collection",
        "Closing",
    ]
    assert stages[2].required is False
    assert stages[0].key_points[0] == "Greet the customer warmly"


def test_stage_set_file_accepts_wrapped_stages(tmp_path):
    path = tmp_path / "stages.json"
    path.write_text(
        json.dumps({"stages": [{"stageName": "Pitch", "required": True}]}),
        encoding="utf-8",
    )

    store = InMemoryEntityStore(default_stages=load_stage_specification(path))

    assert store.get_default_stage_specification() == (
        StageDefinition(stage_name="Pitch", required=True),
    )
    assert InMemoryEntityStore().get_default_stage_specification() is None


def test_stage_set_file_without_stages_array_is_rejected(tmp_path):
    path = tmp_path / "stages.json"
    path.write_text(json.dumps({"name": "empty"}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_stage_specification(path)


def _record(drop_off: str | None, findings: list[tuple[str, bool]]) -> AnalysisRecord:
    result = AnalysisResult(
        stages=tuple(StageFinding(stage_name=n, present=p, evidence="") for n, p in findings),
        drop_off=drop_off,
        call_stage_sequence=(),
        summary="s",
    )
    return AnalysisRecord(id="", result=result, analyzed_at=datetime.now(timezone.utc))


def test_statistics_over_analyses():
    store = InMemoryEntityStore()
    store.save_analysis(_record("Closing", [("Introduction", True), ("Closing", False)]))
    store.save_analysis(_record(None, [("Introduction", True), ("Closing", True)]))
    store.save_analysis(_record("Introduction", [("Introduction", False), ("Closing", False)]))

    stats = calculate_statistics(store.list_analyses())

    assert stats.total_analyses == 3
    assert stats.completed_without_drop_off == 1
    assert stats.drop_off_counts == {"Closing": 1, "Introduction": 1}
    assert stats.stage_coverage == {"Introduction": 67, "Closing": 33}
