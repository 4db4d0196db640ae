"""Tests for strategy scoring and recommendation."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_loan
from debt_payoff.data_models import DebtOptimizationStrategy, StrategyType
from debt_payoff.optimizer import (
    RECOMMENDATION_INTEREST_BAND,
    build_explanation,
    is_better_strategy,
    optimize_debt_payoff,
    select_recommended_strategy,
)


def _strategy(strategy_type: StrategyType, interest_saved: str, months_saved: int) -> DebtOptimizationStrategy:
    return DebtOptimizationStrategy(
        id=strategy_type.value,
        name=strategy_type.value.replace("_", " ").title(),
        type=strategy_type,
        description="",
        total_interest=Decimal("0"),
        interest_saved=Decimal(interest_saved),
        months_saved=months_saved,
        payoff_date=date(2030, 1, 1),
        monthly_schedule=[],
        per_debt_details=[],
    )


class TestSelectRecommendedStrategy:
    """Tests for the recommendation rule."""

    def test_interest_decides_outside_band(self) -> None:
        best = _strategy(StrategyType.AVALANCHE_FIXED, "5000", 10)
        candidate = _strategy(StrategyType.SNOWBALL_SCRAPES, "6500", 2)

        assert is_better_strategy(candidate, best)
        assert not is_better_strategy(best, candidate)

    def test_months_decide_within_band(self) -> None:
        best = _strategy(StrategyType.AVALANCHE_FIXED, "5000", 10)
        candidate = _strategy(StrategyType.SNOWBALL_SCRAPES, "4200", 14)

        assert is_better_strategy(candidate, best)

    def test_band_edge_counts_as_within(self) -> None:
        best = _strategy(StrategyType.AVALANCHE_FIXED, "5000", 10)
        candidate = _strategy(
            StrategyType.SNOWBALL_FIXED, str(Decimal("5000") + RECOMMENDATION_INTEREST_BAND), 9
        )

        assert not is_better_strategy(candidate, best)

    def test_full_tie_keeps_earlier_strategy(self) -> None:
        strategies = [
            _strategy(StrategyType.AVALANCHE_FIXED, "3000", 12),
            _strategy(StrategyType.SNOWBALL_FIXED, "3000", 12),
        ]

        assert select_recommended_strategy(strategies).type is StrategyType.AVALANCHE_FIXED

    def test_fold_keeps_running_best(self) -> None:
        strategies = [
            _strategy(StrategyType.AVALANCHE_FIXED, "3000", 12),
            _strategy(StrategyType.SNOWBALL_FIXED, "3500", 20),
            _strategy(StrategyType.SNOWBALL_SCRAPES, "9000", 5),
        ]

        assert select_recommended_strategy(strategies).type is StrategyType.SNOWBALL_SCRAPES

    def test_empty_list(self) -> None:
        with pytest.raises(ValueError):
            select_recommended_strategy([])


class TestBuildExplanation:
    def test_fixed_strategy(self) -> None:
        strategy = _strategy(StrategyType.AVALANCHE_FIXED, "12345.6", 7)

        assert build_explanation(strategy) == (
            f"The {strategy.name} provides the optimal balance of interest savings "
            "(12,346) and time savings (7 months)."
        )

    def test_scrapes_mentions_recirculation(self) -> None:
        strategy = _strategy(StrategyType.SNOWBALL_SCRAPES, "100", 1)

        assert "recirculated" in build_explanation(strategy)


class TestOptimizeDebtPayoff:
    """End-to-end tests for optimize_debt_payoff."""

    def test_recommends_scrapes_for_example_loans(self, loans, start_date) -> None:
        result = optimize_debt_payoff(loans, 500, start_date=start_date)

        assert [s.type for s in result.strategies] == [
            StrategyType.AVALANCHE_FIXED,
            StrategyType.SNOWBALL_FIXED,
            StrategyType.SNOWBALL_SCRAPES,
        ]
        assert result.recommended_strategy.type is StrategyType.SNOWBALL_SCRAPES
        assert result.recommended_strategy is result.strategies[2]
        assert result.explanation.startswith("The Snowball + Scrapes (Lower Total Time) provides")

    def test_savings_are_relative_to_baseline(self, loans, start_date) -> None:
        result = optimize_debt_payoff(loans, 500, start_date=start_date)

        assert result.baseline_months == len(result.baseline_schedule)
        assert result.baseline_total_interest == sum(
            (plan.total_interest for plan in result.baseline_schedule), Decimal("0")
        )
        for strategy in result.strategies:
            assert strategy.interest_saved == result.baseline_total_interest - strategy.total_interest
            assert strategy.months_saved == max(0, result.baseline_months - strategy.months)
            assert strategy.interest_saved > 0
            assert strategy.months_saved > 0

    def test_scrapes_beats_fixed_snowball_by_more_than_band(self, loans, start_date) -> None:
        result = optimize_debt_payoff(loans, 500, start_date=start_date)

        avalanche, snowball, scrapes = result.strategies
        assert avalanche.interest_saved == snowball.interest_saved
        assert scrapes.interest_saved - snowball.interest_saved > RECOMMENDATION_INTEREST_BAND

    def test_no_extra_payment(self, loans, start_date) -> None:
        result = optimize_debt_payoff(loans, 0, start_date=start_date)

        avalanche, snowball, scrapes = result.strategies
        assert avalanche.months_saved == 0
        assert avalanche.interest_saved == pytest.approx(Decimal("0"), abs=Decimal("0.0001"))
        assert scrapes.months_saved > 0

    def test_lump_sum_increases_savings(self, loans, start_date) -> None:
        without = optimize_debt_payoff(loans, 500, start_date=start_date)
        with_lump = optimize_debt_payoff(loans, 500, 15000, start_date=start_date)

        for plain, lumped in zip(without.strategies, with_lump.strategies):
            assert lumped.total_interest < plain.total_interest

    def test_months_saved_is_never_negative(self, start_date) -> None:
        loans = [make_loan("stuck", 100000, 12, 0)]

        result = optimize_debt_payoff(loans, 0, start_date=start_date)

        assert result.baseline_months == 600
        for strategy in result.strategies:
            assert strategy.months_saved == 0
            assert not strategy.fully_amortized

    def test_empty_portfolio(self, start_date) -> None:
        result = optimize_debt_payoff([], 500, start_date=start_date)

        assert result.baseline_schedule == []
        assert result.baseline_months == 0
        assert all(s.months == 0 for s in result.strategies)
        assert result.recommended_strategy.type is StrategyType.AVALANCHE_FIXED


PORTFOLIOS = {
    "zero-rate": ([("a", 1200, 0, 100), ("b", 3000, 0, 150)], 200, 0),
    "lump-sum-only": ([("car", 22000, 4.5, 520), ("card", 5000, 19.9, 150)], 0, 5000),
    "equal-balances": ([("x", 5000, 6, 200), ("y", 5000, 6, 200), ("z", 5000, 9, 150)], 100, 0),
    "single-loan": ([("solo", 10000, 5, 250)], 50, 1000),
    "lump-clears-smallest": ([("tiny", 800, 12, 40), ("big", 40000, 3.5, 600)], 150, 1000),
}


class TestStrategiesNeverWorseThanBaseline:
    """Every strategy pays at least the minimums, so it can only beat the baseline."""

    @pytest.mark.parametrize("name", sorted(PORTFOLIOS))
    def test_interest_and_months(self, name, start_date) -> None:
        specs, extra, lump_sum = PORTFOLIOS[name]
        loans = [make_loan(*spec) for spec in specs]

        result = optimize_debt_payoff(loans, extra, lump_sum, start_date=start_date)

        for strategy in result.strategies:
            assert result.baseline_total_interest >= strategy.total_interest
            assert result.baseline_months >= strategy.months
            assert strategy.interest_saved >= 0
            assert strategy.fully_amortized

    @pytest.mark.parametrize("name", sorted(PORTFOLIOS))
    def test_repeated_runs_are_identical(self, name, start_date) -> None:
        specs, extra, lump_sum = PORTFOLIOS[name]
        loans = [make_loan(*spec) for spec in specs]

        first = optimize_debt_payoff(loans, extra, lump_sum, start_date=start_date)
        second = optimize_debt_payoff(loans, extra, lump_sum, start_date=start_date)

        assert first == second
        assert [loan.current_balance for loan in loans] == [Decimal(str(spec[1])) for spec in specs]
