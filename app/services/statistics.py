"""Aggregate statistics over stored analyses."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from .entity_store import AnalysisRecord


@dataclass(frozen=True)
class AnalysisStatistics:
    total_analyses: int = 0
    completed_without_drop_off: int = 0
    drop_off_counts: dict[str, int] = field(default_factory=dict)
    stage_coverage: dict[str, int] = field(default_factory=dict)


def calculate_statistics(analyses: Iterable[AnalysisRecord]) -> AnalysisStatistics:
    """Summarise drop-offs and per-stage coverage.

    ``stage_coverage`` is the rounded percentage of analyses that evaluated a
    stage and found it present.
    """

    records = list(analyses)
    if not records:
        return AnalysisStatistics()

    drop_offs: Counter[str] = Counter()
    evaluated: Counter[str] = Counter()
    present: Counter[str] = Counter()
    clean_runs = 0

    for record in records:
        result = record.result
        if result.drop_off is None:
            clean_runs += 1
        else:
            drop_offs[result.drop_off] += 1
        for finding in result.stages:
            evaluated[finding.stage_name] += 1
            if finding.present:
                present[finding.stage_name] += 1

    coverage = {
        name: round(present[name] / count * 100)
        for name, count in evaluated.items()
    }
    return AnalysisStatistics(
        total_analyses=len(records),
        completed_without_drop_off=clean_runs,
        drop_off_counts=dict(drop_offs.most_common()),
        stage_coverage=coverage,
    )


__all__ = ["AnalysisStatistics", "calculate_statistics"]
