import enum
from dataclasses import dataclass
from typing import Dict, List, Optional


class RollupMethod(str, enum.Enum):
    AVERAGE = "AVERAGE"
    WEIGHTED_AVERAGE = "WEIGHTED_AVERAGE"
    LEADER_SCORE = "LEADER_SCORE"
    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"


@dataclass
class IndividualScore:
    employee_id: int
    employee_name: str
    department_id: Optional[int]
    total_score: float
    is_leader: bool = False
    weight: Optional[float] = None


def _average(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def group_by_department(scores: List[IndividualScore]) -> Dict[Optional[int], List[IndividualScore]]:
    grouped: Dict[Optional[int], List[IndividualScore]] = {}
    for score in scores:
        grouped.setdefault(score.department_id, []).append(score)
    return grouped


def department_score(scores: List[IndividualScore], method: RollupMethod = RollupMethod.AVERAGE) -> float:
    """Roll individual totals up to one department figure."""
    if not scores:
        return 0.0
    totals = [s.total_score for s in scores]

    if method == RollupMethod.WEIGHTED_AVERAGE:
        total_weight = sum(s.weight or 1 for s in scores)
        return sum(s.total_score * (s.weight or 1) for s in scores) / total_weight if total_weight else 0.0
    if method == RollupMethod.LEADER_SCORE:
        leader = next((s for s in scores if s.is_leader), None)
        return leader.total_score if leader else _average(totals)
    if method == RollupMethod.SUM:
        return sum(totals)
    if method == RollupMethod.MIN:
        return min(totals)
    if method == RollupMethod.MAX:
        return max(totals)
    return _average(totals)


def company_score(
    department_scores: Dict[int, float],
    method: RollupMethod = RollupMethod.WEIGHTED_AVERAGE,
    weights: Optional[Dict[int, float]] = None,
) -> float:
    if not department_scores:
        return 0.0
    if method == RollupMethod.SUM:
        return sum(department_scores.values())
    if method == RollupMethod.WEIGHTED_AVERAGE and weights:
        total_weight = sum(weights.values())
        weighted = sum(score * weights.get(dept_id, 0) for dept_id, score in department_scores.items())
        return weighted / total_weight if total_weight > 0 else 0.0
    return _average(list(department_scores.values()))
