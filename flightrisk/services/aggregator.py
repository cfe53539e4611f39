"""
Risk Aggregator - fixed-weight fusion of the five component scores

Pure combination step, no I/O. Components combine by weighted sum so every
dimension always contributes; the tier is a step function of that sum.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from flightrisk.core.calibration import (
    COMPONENT_KEYS,
    RISK_WEIGHTS,
    TIER_THRESHOLDS,
    TOP_SIGNAL_LIMIT,
)
from flightrisk.models.risk import RiskBrief, RiskComponent, RiskTier

logger = logging.getLogger(__name__)


class MissingRequiredFieldError(ValueError):
    """Caller omitted an identifier the brief cannot be computed without"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"missing required field: {field}")


class RiskAggregator:
    """
    Combines component scores into a RiskBrief

    The weight table must cover exactly the five component keys and sum to
    1.0; a bad table is a programming error and fails at construction.
    """

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        thresholds: Optional[Mapping[str, float]] = None
    ):
        self.weights: Dict[str, float] = dict(weights if weights is not None else RISK_WEIGHTS)
        self.thresholds: Dict[str, float] = dict(thresholds if thresholds is not None else TIER_THRESHOLDS)

        if set(self.weights) != set(COMPONENT_KEYS):
            raise ValueError(f"Weights must cover exactly {list(COMPONENT_KEYS)}, got {sorted(self.weights)}")
        if any(not 0.0 < w < 1.0 for w in self.weights.values()):
            raise ValueError("Every weight must lie strictly between 0 and 1")
        if not math.isclose(sum(self.weights.values()), 1.0, abs_tol=1e-9):
            raise ValueError(f"Weights must sum to 1.0, got {sum(self.weights.values())}")
        if not 0.0 < self.thresholds["green"] < self.thresholds["yellow"] <= 1.0:
            raise ValueError("Tier thresholds must satisfy 0 < green < yellow <= 1")

    def component(self, key: str, score: float, explanation: str) -> RiskComponent:
        """Build a RiskComponent carrying its fixed weight"""
        return RiskComponent(
            key=key,
            score=max(0.0, min(1.0, score)),
            explanation=explanation,
            weight=self.weights[key]
        )

    def aggregate_score(self, components: Iterable[RiskComponent]) -> float:
        """Sum of score x weight, clamped into [0, 1]"""
        total = sum(c.contribution() for c in components)
        return max(0.0, min(1.0, total))

    def tier_for(self, score: float) -> RiskTier:
        """Map an aggregate score to its tier"""
        if score < self.thresholds["green"]:
            return RiskTier.GREEN
        if score < self.thresholds["yellow"]:
            return RiskTier.YELLOW
        return RiskTier.RED

    def top_signals(self, components: Sequence[RiskComponent], limit: int = TOP_SIGNAL_LIMIT) -> List[str]:
        """
        Components ranked by weighted contribution, rendered for display

        Ties keep the canonical component order.
        """
        order = {key: i for i, key in enumerate(COMPONENT_KEYS)}
        ranked = sorted(
            components,
            key=lambda c: (-c.contribution(), order[c.key])
        )
        return [
            f"{c.key}: {c.explanation} (×{c.weight})"
            for c in ranked[:limit]
        ]

    def assemble(
        self,
        flight_iata: str,
        date: str,
        components: Sequence[RiskComponent],
        recommended_actions: Sequence[str],
        dep_iata: Optional[str] = None,
        arr_iata: Optional[str] = None,
        checkpoint_source: Optional[str] = None,
        data_timestamps: Optional[Mapping[str, str]] = None
    ) -> RiskBrief:
        """
        Build the RiskBrief

        Raises:
            MissingRequiredFieldError: If the flight or date is blank
            ValueError: If the components are not exactly one per key
        """
        if not flight_iata:
            raise MissingRequiredFieldError("flightIata")
        if not date:
            raise MissingRequiredFieldError("date")

        keys = [c.key for c in components]
        if sorted(keys) != sorted(COMPONENT_KEYS):
            raise ValueError(f"Expected one component per key {list(COMPONENT_KEYS)}, got {keys}")

        order = {key: i for i, key in enumerate(COMPONENT_KEYS)}
        ordered = sorted(components, key=lambda c: order[c.key])
        score = self.aggregate_score(ordered)
        tier = self.tier_for(score)

        logger.info(f"Risk brief {flight_iata} {date}: score={score:.3f} tier={tier.value}")

        return RiskBrief(
            flight_iata=flight_iata,
            date=date,
            dep_iata=dep_iata,
            arr_iata=arr_iata,
            risk_score=score,
            tier=tier,
            components=ordered,
            top_signals=self.top_signals(ordered),
            recommended_actions=list(recommended_actions),
            checkpoint_source=checkpoint_source,
            data_timestamps=dict(data_timestamps or {})
        )
