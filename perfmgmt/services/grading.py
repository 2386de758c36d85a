"""
Score-to-label mapping for grades (S/A/B/C/D) and status buckets
(EXCELLENT/GOOD/AVERAGE/POOR).

Boundaries are configuration: each scale is a list of ``(min_score, label)``
bands plus a floor label for scores below every band.
"""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from perfmgmt.core.config import settings

GRADES = ("S", "A", "B", "C", "D")
STATUSES = ("EXCELLENT", "GOOD", "AVERAGE", "POOR")


@dataclass(frozen=True)
class GradeScale:
    bands: Tuple[Tuple[float, str], ...]
    floor_label: str

    @classmethod
    def from_mapping(cls, boundaries: Mapping[str, float], floor_label: str) -> "GradeScale":
        bands = sorted(((float(v), k) for k, v in boundaries.items()), reverse=True)
        return cls(bands=tuple(bands), floor_label=floor_label)

    def classify(self, score: float) -> str:
        for min_score, label in self.bands:
            if score >= min_score:
                return label
        return self.floor_label

    @property
    def labels(self) -> List[str]:
        return [label for _, label in self.bands] + [self.floor_label]


def grade_scale(boundaries: Optional[Mapping[str, float]] = None) -> GradeScale:
    """
    Grade scale from explicit boundaries, falling back per letter to the
    configured defaults when a company config omits some of them.
    """
    merged: Dict[str, float] = dict(settings.scoring.grade_boundaries)
    if boundaries:
        merged.update({k: float(v) for k, v in boundaries.items() if k in merged})
    return GradeScale.from_mapping(merged, settings.scoring.grade_floor)


def status_scale() -> GradeScale:
    return GradeScale.from_mapping(settings.scoring.status_boundaries, settings.scoring.status_floor)


def determine_grade(score: float, boundaries: Optional[Mapping[str, float]] = None) -> str:
    return grade_scale(boundaries).classify(score)


def determine_status(score: float) -> str:
    return status_scale().classify(score)


def empty_grade_counts() -> Dict[str, int]:
    return {grade: 0 for grade in GRADES}
