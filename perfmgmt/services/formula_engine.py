"""
KPI Formula Engine

Turns one submitted KPI value into a score. Every formula yields three
numbers:
- raw_score: the formula's direct result
- capped_score: raw_score clamped to the KPI's [floor, cap] (BINARY and
  STEPPED are not clamped)
- weighted_score: capped_score * weight / 100

An employee's total score is the sum of their weighted scores.
"""
import ast
import logging
import operator
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import sympy as sp
from sympy.parsing.sympy_parser import parse_expr, standard_transformations

from perfmgmt.core.config import settings
from perfmgmt.core.exceptions import BusinessRuleError
from perfmgmt.models.kpi import FormulaType
from perfmgmt.services.grading import determine_status

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_FORMULA = "(actual / target) * 100"
FORMULA_SYMBOLS = {name: sp.Symbol(name) for name in ("actual", "target", "challenge")}
MAX_FORMULA_LENGTH = 200
MAX_EXPONENT = 10
FORMULA_NODES = (
    ast.Expression, ast.BinOp, ast.UnaryOp, ast.Load,
    ast.Add, ast.Sub, ast.Mult, ast.Div, ast.Pow, ast.USub, ast.UAdd,
)

STEP_OPERATORS = {
    "gte": operator.ge,
    "gt": operator.gt,
    "lte": operator.le,
    "lt": operator.lt,
    "eq": operator.eq,
}


@dataclass
class CalculationInput:
    actual: float
    target: float
    weight: float
    challenge: Optional[float] = None


@dataclass
class CalculationResult:
    raw_score: float
    capped_score: float
    weighted_score: float


def _clamp(value: float, floor: float, cap: float) -> float:
    return max(floor, min(value, cap))


def _weighted(raw: float, capped: float, weight: float) -> CalculationResult:
    return CalculationResult(raw_score=raw, capped_score=capped, weighted_score=capped * (weight / 100))


def check_formula_syntax(formula: str) -> None:
    """
    Reject anything that is not plain arithmetic over numbers and the
    allowed variables. parse_expr evaluates its input, so this must run first.
    """
    if len(formula) > MAX_FORMULA_LENGTH:
        raise BusinessRuleError(f"Formula is longer than {MAX_FORMULA_LENGTH} characters")
    try:
        tree = ast.parse(formula.strip(), mode="eval")
    except SyntaxError as e:
        raise BusinessRuleError(f"Invalid formula '{formula}': {e.msg}") from e

    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            if node.id not in FORMULA_SYMBOLS:
                raise BusinessRuleError(
                    f"Formula '{formula}' uses unknown variables: {node.id}",
                    details={"allowed": sorted(FORMULA_SYMBOLS)},
                )
        elif isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                raise BusinessRuleError(f"Formula '{formula}' may only contain numeric constants")
        elif isinstance(node, ast.BinOp) and isinstance(node.op, ast.Pow):
            exponent = node.right
            if isinstance(exponent, ast.UnaryOp) and isinstance(exponent.op, (ast.USub, ast.UAdd)):
                exponent = exponent.operand
            if (isinstance(exponent, ast.Constant) and isinstance(exponent.value, (int, float))
                    and abs(exponent.value) > MAX_EXPONENT):
                raise BusinessRuleError(f"Formula '{formula}' uses an exponent above {MAX_EXPONENT}")
        elif not isinstance(node, FORMULA_NODES):
            raise BusinessRuleError(f"Formula '{formula}' contains unsupported syntax: {type(node).__name__}")


def parse_formula(formula: str) -> sp.Expr:
    """Parse a custom formula, allowing only the actual/target/challenge symbols."""
    check_formula_syntax(formula)
    try:
        expr = parse_expr(formula, local_dict=dict(FORMULA_SYMBOLS), transformations=standard_transformations)
    except Exception as e:
        raise BusinessRuleError(f"Invalid formula '{formula}': {e}") from e
    unknown = {str(s) for s in getattr(expr, "free_symbols", set())} - set(FORMULA_SYMBOLS)
    if unknown:
        raise BusinessRuleError(
            f"Formula '{formula}' uses unknown variables: {', '.join(sorted(unknown))}",
            details={"allowed": sorted(FORMULA_SYMBOLS)},
        )
    return expr


class FormulaEngine:
    def __init__(self, default_cap: Optional[float] = None, default_floor: Optional[float] = None):
        self.default_cap = settings.scoring.default_score_cap if default_cap is None else default_cap
        self.default_floor = settings.scoring.default_score_floor if default_floor is None else default_floor

    def calculate_positive(self, data: CalculationInput, cap: Optional[float] = None, floor: Optional[float] = None) -> CalculationResult:
        """Higher is better: actual / target * 100."""
        cap, floor = self._bounds(cap, floor)
        raw = 0.0 if data.target == 0 else (data.actual / data.target) * 100
        return _weighted(raw, _clamp(raw, floor, cap), data.weight)

    def calculate_negative(self, data: CalculationInput, cap: Optional[float] = None, floor: Optional[float] = None) -> CalculationResult:
        """Lower is better: target / actual * 100."""
        cap, floor = self._bounds(cap, floor)
        if data.actual == 0:
            raw = 100.0 if data.target == 0 else cap
        elif data.actual < 0:
            raw = floor
        else:
            raw = (data.target / data.actual) * 100
        return _weighted(raw, _clamp(raw, floor, cap), data.weight)

    def calculate_binary(self, actual: float, weight: float, full_score: float = 100) -> CalculationResult:
        """Full score when the counted event never happened, zero otherwise."""
        raw = full_score if actual == 0 else 0.0
        return _weighted(raw, raw, weight)

    def calculate_stepped(self, actual: float, steps: Iterable[Mapping[str, Any]], weight: float) -> CalculationResult:
        raw = 0.0
        for step in sorted(steps, key=lambda s: float(s["threshold"]), reverse=True):
            compare = STEP_OPERATORS.get(step.get("operator", "gte"))
            if compare and compare(actual, float(step["threshold"])):
                raw = float(step["score"])
                break
        return _weighted(raw, raw, weight)

    def calculate_custom(
        self,
        formula: str,
        scope: Dict[str, float],
        weight: float,
        cap: Optional[float] = None,
        floor: Optional[float] = None,
    ) -> CalculationResult:
        cap, floor = self._bounds(cap, floor)
        expr = parse_formula(formula)
        subs = {FORMULA_SYMBOLS[k]: v for k, v in scope.items() if k in FORMULA_SYMBOLS and v is not None}
        try:
            value = expr.evalf(subs=subs)
            if value.free_symbols or not value.is_real:
                raise ValueError(f"result is not a real number ({value})")
            raw = float(value)
        except (TypeError, ValueError, ZeroDivisionError) as e:
            raise BusinessRuleError(f"Formula evaluation failed: {formula} - {e}") from e
        return _weighted(raw, _clamp(raw, floor, cap), weight)

    def validate_formula(self, formula: str) -> Dict[str, Any]:
        try:
            parse_formula(formula)
            return {"valid": True}
        except BusinessRuleError as e:
            return {"valid": False, "error": e.message}

    def score_entry(self, kpi, assignment, actual: float) -> CalculationResult:
        """Dispatch on the KPI definition's formula type."""
        data = CalculationInput(
            actual=actual,
            target=assignment.target_value,
            weight=assignment.weight,
            challenge=assignment.challenge_value,
        )
        formula_type = FormulaType(kpi.formula_type)
        if formula_type == FormulaType.NEGATIVE:
            return self.calculate_negative(data, kpi.score_cap, kpi.score_floor)
        if formula_type == FormulaType.BINARY:
            return self.calculate_binary(actual, assignment.weight)
        if formula_type == FormulaType.STEPPED:
            return self.calculate_stepped(actual, kpi.scoring_rules or [], assignment.weight)
        if formula_type == FormulaType.CUSTOM:
            return self.calculate_custom(
                kpi.custom_formula or DEFAULT_CUSTOM_FORMULA,
                {"actual": actual, "target": assignment.target_value, "challenge": assignment.challenge_value},
                assignment.weight,
                kpi.score_cap,
                kpi.score_floor,
            )
        return self.calculate_positive(data, kpi.score_cap, kpi.score_floor)

    @staticmethod
    def calculate_total_score(results: List[CalculationResult]) -> float:
        return sum(r.weighted_score for r in results)

    @staticmethod
    def determine_status(total_score: float) -> str:
        return determine_status(total_score)

    def _bounds(self, cap: Optional[float], floor: Optional[float]):
        return (self.default_cap if cap is None else cap, self.default_floor if floor is None else floor)
