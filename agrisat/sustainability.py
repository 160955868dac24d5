"""Sustainability metrics derived from a snapshot and the number of recommended activities."""

from __future__ import annotations

import math
from typing import Any, List, Mapping, Sequence

from agrisat.domain import Improvement, Recommendation, SustainabilityMetrics, SustainabilityReport
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="sustainability")

IMPROVEMENT_THRESHOLDS = {
    "water_efficiency": 70.0,
    "soil_health": 60.0,
    "carbon_sequestration": 50.0,
}

IMPROVEMENTS = {
    "water_efficiency": Improvement(
        area="Water Efficiency",
        suggestion="Implement drip irrigation",
        impact="30-50% reduction in water use",
    ),
    "soil_health": Improvement(
        area="Soil Health",
        suggestion="Add cover crops",
        impact="40% improvement in soil structure",
    ),
    "carbon_sequestration": Improvement(
        area="Carbon Sequestration",
        suggestion="Implement agroforestry",
        impact="60% increase in carbon sequestration",
    ),
}


def _clamp(value: float) -> float:
    """Clamp a score to the 0-100 range."""
    return max(0.0, min(100.0, value))


def _number(snapshot: Any, key: str) -> float:
    # missing inputs score as zero
    if isinstance(snapshot, Mapping):
        value = snapshot.get(key)
    else:
        value = getattr(snapshot, key, None)
    return float(value) if value is not None else 0.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SustainabilityScorer:
    """Stateless scorer; the same inputs always give the same metrics."""

    def score(self, snapshot: Any, recommendation_count: int) -> SustainabilityMetrics:
        soil_moisture = _number(snapshot, "soil_moisture")
        vegetation_index = _number(snapshot, "vegetation_index")
        return SustainabilityMetrics(
            water_efficiency=_clamp(soil_moisture / 50 * 100),
            soil_health=_clamp(vegetation_index / 0.8 * 100),
            carbon_sequestration=_clamp(vegetation_index * 125),
            biodiversity=_clamp((vegetation_index + soil_moisture / 100) / 2 * 100),
            energy_use=_clamp(100 - recommendation_count * 10),
        )

    def suggest_improvements(self, metrics: SustainabilityMetrics) -> List[Improvement]:
        """Canned suggestions for every metric below its threshold."""
        return [
            IMPROVEMENTS[name].model_copy()
            for name, threshold in IMPROVEMENT_THRESHOLDS.items()
            if getattr(metrics, name) < threshold
        ]

    def report(self, metrics: SustainabilityMetrics, recommendations: Sequence[Recommendation]) -> SustainabilityReport:
        values = metrics.as_list()
        overall = round_half_up(sum(values) / len(values))
        improvements = self.suggest_improvements(metrics)
        logger.debug(
            f"Sustainability score {overall}",
            extra={"improvements": [i.area for i in improvements]},
        )
        return SustainabilityReport(
            overall_score=overall,
            metrics=metrics,
            recommendations=list(recommendations),
            improvements=improvements,
        )
