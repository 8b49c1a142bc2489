from __future__ import annotations

from app.services.analysis_types import StageDefinition
from app.services.drop_off import merge_drop_off, resolve_drop_off
from app.services.response_contract import StageFinding

A = StageDefinition(stage_name="A", required=True)
B = StageDefinition(stage_name="B", required=True)


def _finding(name: str, present: bool) -> StageFinding:
    return StageFinding(stage_name=name, present=present, evidence="")


def test_resolution_follows_specification_order():
    findings = [_finding("B", True), _finding("A", False)]

    assert resolve_drop_off([A, B], findings) == "A"
    assert resolve_drop_off([B, A], findings) == "A"
    assert resolve_drop_off([B, A], list(reversed(findings))) == "A"


def test_all_required_present_returns_none():
    optional = StageDefinition(stage_name="Upsell", required=False)
    findings = [_finding("A", True), _finding("B", True), _finding("Upsell", False)]

    assert resolve_drop_off([A, optional, B], findings) is None


def test_missing_finding_counts_as_absent():
    assert resolve_drop_off([A, B], [_finding("A", True)]) == "B"


def test_optional_stages_are_skipped():
    optional = StageDefinition(stage_name="Rapport", required=False)

    assert resolve_drop_off([optional, A, B], [_finding("A", True)]) == "B"


def test_raw_mappings_match_by_exact_name():
    findings = [
        {"stageName": "a", "present": True},
        {"present": True},
        {"stageName": "A", "present": True},
        {"stageName": "B", "present": "true"},
    ]

    assert resolve_drop_off([A, B], findings) == "B"


def test_merge_prefers_backend_value():
    assert merge_drop_off("B", "A") == "B"
    assert merge_drop_off(None, "A") == "A"
    assert merge_drop_off(None, None) is None
    assert merge_drop_off("A", "A") == "A"
