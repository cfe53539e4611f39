"""
Risk aggregator tests: weight invariants, bounds, tier monotonicity and
top-signal ranking by weighted contribution
"""

import itertools

import pytest

from flightrisk.core.calibration import COMPONENT_KEYS, RISK_WEIGHTS
from flightrisk.models import RiskTier
from flightrisk.services.aggregator import MissingRequiredFieldError, RiskAggregator


def build(aggregator, scores):
    return [aggregator.component(key, scores[key], f"{key} detail") for key in COMPONENT_KEYS]


def test_weights_sum_to_one():
    assert sum(RISK_WEIGHTS.values()) == pytest.approx(1.0)
    RiskAggregator()


def test_bad_weight_tables_are_rejected():
    with pytest.raises(ValueError):
        RiskAggregator(weights={**RISK_WEIGHTS, "ops": 0.30})
    with pytest.raises(ValueError):
        RiskAggregator(weights={k: v for k, v in RISK_WEIGHTS.items() if k != "news"})
    with pytest.raises(ValueError):
        RiskAggregator(thresholds={"green": 0.6, "yellow": 0.3})


def test_aggregate_stays_in_unit_interval():
    aggregator = RiskAggregator()
    for values in itertools.product((0.0, 0.5, 1.0), repeat=5):
        scores = dict(zip(COMPONENT_KEYS, values))
        total = aggregator.aggregate_score(build(aggregator, scores))
        assert 0.0 <= total <= 1.0


def test_tier_boundaries():
    aggregator = RiskAggregator()
    assert aggregator.tier_for(0.0) is RiskTier.GREEN
    assert aggregator.tier_for(0.2499) is RiskTier.GREEN
    assert aggregator.tier_for(0.25) is RiskTier.YELLOW
    assert aggregator.tier_for(0.5499) is RiskTier.YELLOW
    assert aggregator.tier_for(0.55) is RiskTier.RED
    assert aggregator.tier_for(1.0) is RiskTier.RED


def test_tier_is_monotonic():
    aggregator = RiskAggregator()
    severity = {RiskTier.GREEN: 0, RiskTier.YELLOW: 1, RiskTier.RED: 2}
    levels = [severity[aggregator.tier_for(i / 200)] for i in range(201)]
    assert levels == sorted(levels)


def test_top_signals_rank_by_contribution_not_raw_score():
    aggregator = RiskAggregator()
    # tsa has the highest raw score but the smallest weight
    components = build(aggregator, {"ops": 0.4, "weather_dep": 0.1, "weather_arr": 0.1, "tsa": 0.9, "news": 0.5})

    signals = aggregator.top_signals(components)

    assert len(signals) == 3
    assert signals[0] == "news: news detail (×0.25)"
    assert signals[1] == "ops: ops detail (×0.25)"
    assert signals[2] == "tsa: tsa detail (×0.1)"


def test_top_signal_ties_keep_canonical_order():
    aggregator = RiskAggregator()
    components = build(aggregator, {key: 0.5 for key in COMPONENT_KEYS})
    signals = aggregator.top_signals(list(reversed(components)))
    assert [s.split(":")[0] for s in signals] == ["ops", "news", "weather_dep"]


def test_component_scores_are_clamped():
    aggregator = RiskAggregator()
    assert aggregator.component("ops", 1.7, "x").score == 1.0
    assert aggregator.component("ops", -0.2, "x").score == 0.0
    assert aggregator.component("news", 0.8, "x").contribution() == pytest.approx(0.2)


def test_assemble_builds_brief():
    aggregator = RiskAggregator()
    components = build(aggregator, {"ops": 0.15, "weather_dep": 0.7, "weather_arr": 0.05, "tsa": 0.5, "news": 0.8})

    brief = aggregator.assemble("AA100", "2026-03-01", list(reversed(components)), ["act"], "JFK", "LHR", "primary")

    assert brief.risk_score == pytest.approx(0.4375)
    assert brief.tier is RiskTier.YELLOW
    assert [c.key for c in brief.components] == list(COMPONENT_KEYS)
    assert brief.recommended_actions == ["act"]
    assert brief.checkpoint_source == "primary"

    wire = brief.to_wire()
    for field in ("flightIata", "date", "depIata", "arrIata", "riskScore", "tier",
                  "components", "topSignals", "recommendedActions"):
        assert field in wire, f"Wire field {field} missing"
    assert wire["tier"] == "yellow"


def test_assemble_requires_identifiers_and_five_components():
    aggregator = RiskAggregator()
    components = build(aggregator, {key: 0.1 for key in COMPONENT_KEYS})

    with pytest.raises(MissingRequiredFieldError) as exc:
        aggregator.assemble("", "2026-03-01", components, [])
    assert exc.value.field == "flightIata"
    assert str(exc.value) == "missing required field: flightIata"

    with pytest.raises(ValueError):
        aggregator.assemble("AA100", "2026-03-01", components[:4], [])


def test_assemble_carries_data_timestamps():
    aggregator = RiskAggregator()
    components = build(aggregator, {"ops": 0.1, "weather_dep": 0.1, "weather_arr": 0.1, "tsa": 0.1, "news": 0.1})

    brief = aggregator.assemble(
        "AA100", "2026-03-01", components, [],
        data_timestamps={"aviationstack": "2026-03-01T12:00:00+00:00"}
    )

    assert brief.to_wire()["dataTimestamps"] == {"aviationstack": "2026-03-01T12:00:00+00:00"}
    assert aggregator.assemble("AA100", "2026-03-01", components, []).data_timestamps == {}
