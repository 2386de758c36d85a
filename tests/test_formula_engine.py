import pytest

from perfmgmt.core.exceptions import BusinessRuleError
from perfmgmt.services.formula_engine import CalculationInput, CalculationResult, FormulaEngine
from perfmgmt.services.rollup_engine import IndividualScore, RollupMethod, company_score, department_score


@pytest.fixture
def engine():
    return FormulaEngine(default_cap=120, default_floor=0)


def test_positive_is_capped(engine):
    result = engine.calculate_positive(CalculationInput(actual=150, target=100, weight=50))
    assert result.raw_score == 150
    assert result.capped_score == 120
    assert result.weighted_score == 60


def test_positive_zero_target(engine):
    assert engine.calculate_positive(CalculationInput(actual=10, target=0, weight=100)).raw_score == 0


def test_negative(engine):
    assert engine.calculate_negative(CalculationInput(actual=50, target=40, weight=100)).raw_score == 80
    assert engine.calculate_negative(CalculationInput(actual=0, target=0, weight=100)).raw_score == 100
    assert engine.calculate_negative(CalculationInput(actual=0, target=5, weight=100)).raw_score == 120
    assert engine.calculate_negative(CalculationInput(actual=-1, target=5, weight=100)).raw_score == 0


def test_binary(engine):
    assert engine.calculate_binary(0, 20).weighted_score == 20
    assert engine.calculate_binary(3, 20).weighted_score == 0


def test_stepped_picks_highest_matching_threshold(engine):
    steps = [{"threshold": 50, "score": 60}, {"threshold": 90, "score": 100}, {"threshold": 70, "score": 80}]
    assert engine.calculate_stepped(75, steps, 100).raw_score == 80
    assert engine.calculate_stepped(95, steps, 100).raw_score == 100
    assert engine.calculate_stepped(10, steps, 100).raw_score == 0


def test_custom_formula(engine):
    result = engine.calculate_custom("actual / target * 100 + 5", {"actual": 90, "target": 100}, 50)
    assert result.raw_score == pytest.approx(95)
    assert result.weighted_score == pytest.approx(47.5)


def test_custom_formula_rejects_unknown_symbols(engine):
    with pytest.raises(BusinessRuleError):
        engine.calculate_custom("actual * bonus", {"actual": 1}, 100)


def test_custom_formula_division_by_zero(engine):
    with pytest.raises(BusinessRuleError):
        engine.calculate_custom("actual / target", {"actual": 1, "target": 0}, 100)


def test_validate_formula(engine):
    assert engine.validate_formula("(actual - target) / challenge") == {"valid": True}
    assert engine.validate_formula("actual +* 2")["valid"] is False


def test_total_score_and_status():
    results = [CalculationResult(100, 100, 60), CalculationResult(80, 80, 32)]
    assert FormulaEngine.calculate_total_score(results) == 92
    assert FormulaEngine.determine_status(92) == "EXCELLENT"


def test_department_rollups():
    scores = [
        IndividualScore(1, "A", 10, 80, weight=1),
        IndividualScore(2, "B", 10, 60, is_leader=True, weight=3),
    ]
    assert department_score(scores) == 70
    assert department_score(scores, RollupMethod.WEIGHTED_AVERAGE) == 65
    assert department_score(scores, RollupMethod.LEADER_SCORE) == 60
    assert department_score(scores, RollupMethod.MIN) == 60
    assert department_score([], RollupMethod.MAX) == 0


def test_company_rollup():
    assert company_score({1: 80, 2: 60}, RollupMethod.WEIGHTED_AVERAGE, {1: 3, 2: 1}) == 75
    assert company_score({1: 80, 2: 60}, RollupMethod.AVERAGE) == 70


@pytest.mark.parametrize("formula", [
    "__import__('os').getcwd()",
    "actual.__class__",
    "(lambda: 1)()",
    "[actual][0]",
    "'abc'",
    "actual if target else 0",
    "actual ** 100000",
    "actual * " + "1" * 300,
])
def test_validate_formula_rejects_non_arithmetic(engine, formula):
    assert engine.validate_formula(formula)["valid"] is False


def test_validate_formula_accepts_plain_arithmetic(engine):
    assert engine.validate_formula("-(target - actual) ** 2 / challenge + 1.5") == {"valid": True}
