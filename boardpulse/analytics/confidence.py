"""
Data-quality-weighted confidence score for an execution result.
"""
from __future__ import annotations

from typing import Iterable

from boardpulse.config import (
    CONFIDENCE_BASELINE,
    CONFIDENCE_CEILING,
    CONFIDENCE_FLOOR,
    CONFIDENCE_MISSING_WEIGHT,
    CONFIDENCE_WARNING_LIMIT,
    CONFIDENCE_WARNING_PENALTY,
)
from boardpulse.data.schemas import DataQualityReport


def missing_ratio(report: DataQualityReport) -> float:
    """Missing cells over (rows x columns-with-gaps); the denominator floors at 1."""
    denominator = report.total_rows * len(report.missing_counts) or 1
    return report.total_missing / denominator


def compute_confidence(reports: Iterable[DataQualityReport]) -> float:
    score = CONFIDENCE_BASELINE
    for report in reports:
        score -= missing_ratio(report) * CONFIDENCE_MISSING_WEIGHT
        if len(report.warnings) > CONFIDENCE_WARNING_LIMIT:
            score -= CONFIDENCE_WARNING_PENALTY
    return round(min(CONFIDENCE_CEILING, max(CONFIDENCE_FLOOR, score)), 2)
