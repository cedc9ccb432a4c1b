from __future__ import annotations

from extrinsic_ranker.analysis.extrinsic import AnalyzedOption, efficiency_score
from extrinsic_ranker.analysis.ranking import rank_by_efficiency


def _opt(
    strike: float,
    extrinsic: float,
    *,
    delta: float | None = None,
    dte: int = 1,
    efficiency: float | None | str = "auto",
) -> AnalyzedOption:
    per_dte = extrinsic / dte
    score = efficiency_score(per_dte, delta) if efficiency == "auto" else efficiency
    return AnalyzedOption(
        contract_symbol=f"C{strike:g}",
        strike=strike,
        bid=extrinsic,
        ask=extrinsic,
        last=extrinsic,
        mid=extrinsic,
        volume=0,
        open_interest=0,
        implied_volatility=0.0,
        intrinsic=0.0,
        extrinsic=extrinsic,
        extrinsic_per_dte=per_dte,
        efficiency_score=score,  # type: ignore[arg-type]
        fallback_score=per_dte,
        annualized_yield=0.0,
        delta=delta,
        gamma=None,
        theta=None,
        vega=None,
        rho=None,
        dte=dte,
        moneyness="OTM",
        in_the_money=False,
    )


def test_ranks_are_a_bijection_over_rankable_contracts() -> None:
    options = [
        _opt(100, 1.0, delta=0.5),
        _opt(105, 0.005, delta=0.4),
        _opt(110, 0.01, delta=0.3),
        _opt(115, 0.5, delta=0.2),
    ]
    ranked = rank_by_efficiency(options)
    assert sorted(o.rank for o in ranked) == [1, 2]
    assert {o.strike for o in ranked} == {100, 115}


def test_orders_by_efficiency_descending() -> None:
    options = [
        _opt(100, 1.0, delta=0.5),  # 2.0
        _opt(105, 0.6, delta=0.2),  # 3.0
        _opt(110, 0.3, delta=0.3),  # 1.0
    ]
    ranked = rank_by_efficiency(options)
    assert [o.strike for o in ranked] == [105, 100, 110]
    assert [o.rank for o in ranked] == [1, 2, 3]


def test_unscored_contracts_follow_scored_ones() -> None:
    options = [
        _opt(100, 5.0, delta=None),
        _opt(105, 0.2, delta=0.4),
        _opt(110, 3.0, delta=0.005),
        _opt(115, 0.4, delta=0.8),
    ]
    ranked = rank_by_efficiency(options)
    # Scored first (0.5, 0.5 tie keeps input order), then by extrinsic per day.
    assert [o.strike for o in ranked] == [105, 115, 100, 110]


def test_zero_efficiency_counts_as_unscored() -> None:
    options = [
        _opt(100, 1.0, efficiency=0.0),
        _opt(105, 0.5, delta=0.5),
    ]
    ranked = rank_by_efficiency(options)
    assert [o.strike for o in ranked] == [105, 100]


def test_falls_back_to_extrinsic_per_day_without_greeks() -> None:
    options = [
        _opt(100, 1.0, dte=2),
        _opt(105, 1.5, dte=2),
        _opt(110, 0.2, dte=2),
    ]
    ranked = rank_by_efficiency(options)
    assert [o.strike for o in ranked] == [105, 100, 110]
    assert all(o.efficiency_score is None for o in ranked)


def test_ties_keep_input_order() -> None:
    options = [_opt(s, 1.0) for s in (100, 105, 110)]
    assert [o.strike for o in rank_by_efficiency(options)] == [100, 105, 110]


def test_ranked_option_keeps_analysis_fields() -> None:
    source = _opt(100, 1.0, delta=0.5, dte=4)
    ranked = rank_by_efficiency([source])[0]
    assert ranked.rank == 1
    assert ranked.contract_symbol == source.contract_symbol
    assert ranked.extrinsic_per_dte == source.extrinsic_per_dte
    assert ranked.efficiency_score == source.efficiency_score
    assert ranked.score == source.score


def test_empty_input_ranks_nothing() -> None:
    assert rank_by_efficiency([]) == []
