from __future__ import annotations

from typing import Iterable

from .models import SurveyRecord, SurveyStats


def calculate_stats(records: Iterable[SurveyRecord]) -> SurveyStats:
    """Count responses overall, per region and per occupation (first-seen order)."""
    total = 0
    by_region: dict[str, int] = {}
    by_occupation: dict[str, int] = {}

    for record in records:
        total += 1
        by_region[record.region] = by_region.get(record.region, 0) + 1
        by_occupation[record.occupation] = by_occupation.get(record.occupation, 0) + 1

    return SurveyStats(total=total, by_region=by_region, by_occupation=by_occupation)
