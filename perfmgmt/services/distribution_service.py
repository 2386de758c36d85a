"""
Forced distribution: the expected share of each grade in a period and the
check of actual grades against it.
"""
from typing import Any, Dict, List, Optional

from perfmgmt.core.exceptions import BusinessRuleError
from perfmgmt.models.compensation import DistributionConfig
from perfmgmt.models.performance import EmployeePerformance
from perfmgmt.services.base import BaseService
from perfmgmt.services.grading import GRADES, empty_grade_counts, grade_scale

DEFAULT_DISTRIBUTION = {"S": 10, "A": 20, "B": 40, "C": 20, "D": 10}
DEFAULT_BOUNDARIES = {"S": 95, "A": 85, "B": 70, "C": 60}
DEFAULT_TOLERANCE = 5.0


class DistributionService(BaseService):

    def get_config(self, period_id: Optional[int] = None) -> Dict[str, Any]:
        """Period config, else the company default, else the built-in default."""
        config = self._find(period_id)
        if config is None and period_id is not None:
            config = self._find(None)
        if config is None:
            return {
                "periodId": None,
                "distribution": dict(DEFAULT_DISTRIBUTION),
                "scoreBoundaries": dict(DEFAULT_BOUNDARIES),
                "isEnforced": False,
                "tolerance": DEFAULT_TOLERANCE,
            }
        return {
            "periodId": config.period_id,
            "distribution": config.distribution,
            "scoreBoundaries": config.score_boundaries or dict(DEFAULT_BOUNDARIES),
            "isEnforced": config.is_enforced,
            "tolerance": config.tolerance,
        }

    def save_config(self, distribution: Dict[str, float], period_id: Optional[int] = None,
                    score_boundaries: Optional[Dict[str, float]] = None,
                    is_enforced: Optional[bool] = None, tolerance: Optional[float] = None) -> Dict[str, Any]:
        total = sum(distribution.values())
        if abs(total - 100) > 0.01:
            raise BusinessRuleError(
                "Distribution percentages must add up to 100",
                details={"total": total},
            )

        config = self._find(period_id)
        if config is None:
            config = DistributionConfig(
                company_id=self.company_id,
                period_id=period_id,
                score_boundaries=dict(DEFAULT_BOUNDARIES),
                is_enforced=False,
                tolerance=DEFAULT_TOLERANCE,
            )
            self.db.add(config)
        config.distribution = dict(distribution)
        if score_boundaries is not None:
            config.score_boundaries = dict(score_boundaries)
        if is_enforced is not None:
            config.is_enforced = is_enforced
        if tolerance is not None:
            config.tolerance = tolerance
        self.commit()
        return self.get_config(period_id)

    def validate_distribution(self, period_id: int) -> Dict[str, Any]:
        config = self.get_config(period_id)
        if not config["isEnforced"]:
            return {"valid": True, "message": "Forced distribution is not enforced", "violations": []}

        counts, total = self._grade_counts(period_id, config["scoreBoundaries"])
        if total == 0:
            return {"valid": True, "message": "No performance data", "violations": []}

        tolerance = config["tolerance"] or DEFAULT_TOLERANCE
        violations: List[str] = []
        for grade, expected in config["distribution"].items():
            actual = counts.get(grade, 0) / total * 100
            if abs(actual - expected) > tolerance:
                violations.append(f"{grade}: expected {expected}%, actual {actual:.1f}%")

        return {
            "valid": not violations,
            "message": "Distribution is within tolerance" if not violations else "Distribution is out of tolerance",
            "violations": violations,
            "actual": counts,
            "expected": config["distribution"],
            "total": total,
        }

    def get_distribution_stats(self, period_id: int) -> Dict[str, Any]:
        config = self.get_config(period_id)
        counts, total = self._grade_counts(period_id, config["scoreBoundaries"])
        return {
            "counts": counts,
            "percentages": {g: (counts[g] / total * 100 if total else 0) for g in GRADES},
            "total": total,
            "config": config,
        }

    def _grade_counts(self, period_id: int, boundaries: Dict[str, float]):
        scale = grade_scale(boundaries)
        counts = empty_grade_counts()
        scores = self.db.query(EmployeePerformance.total_score).filter(
            EmployeePerformance.company_id == self.company_id,
            EmployeePerformance.period_id == period_id,
        ).all()
        for (score,) in scores:
            counts[scale.classify(score)] += 1
        return counts, len(scores)

    def _find(self, period_id: Optional[int]) -> Optional[DistributionConfig]:
        query = self.db.query(DistributionConfig).filter(DistributionConfig.company_id == self.company_id)
        if period_id is None:
            query = query.filter(DistributionConfig.period_id.is_(None))
        else:
            query = query.filter(DistributionConfig.period_id == period_id)
        return query.first()
