"""Independent-rule agronomic decision engine.

Each rule reads a few snapshot fields and, when its condition holds, emits one
recommendation. Rules never see each other's output: every rule is evaluated on
every call and recommendations come out in rule declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from agrisat.domain import Activity, ClimateSnapshot, ImpactValue, Recommendation, Urgency
from agrisat.errors import IncompleteSnapshotError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="decision_engine")

Values = Mapping[str, float]


def _get_field(snapshot: Any, key: str, default=None):
    """Support attribute, dict, or Mapping access for snapshots."""
    if snapshot is None:
        return default
    if isinstance(snapshot, Mapping):
        return snapshot.get(key, default)
    return getattr(snapshot, key, default)


def _fixed(urgency: Urgency) -> Callable[[Values], Urgency]:
    return lambda values: urgency


@dataclass(frozen=True)
class DecisionRule:
    """One row of the rule table."""
    id: Activity
    requires: Tuple[str, ...]
    condition: Callable[[Values], bool]
    urgency: Callable[[Values], Urgency]
    message: str
    action: str
    data_source: str
    impact: Mapping[str, ImpactValue] = field(default_factory=dict)

    def missing(self, snapshot: Any) -> List[str]:
        return [name for name in self.requires if _get_field(snapshot, name) is None]

    def evaluate(self, snapshot: Any) -> Optional[Recommendation]:
        """Return a recommendation if the condition holds. All required fields must be present."""
        values = {name: float(_get_field(snapshot, name)) for name in self.requires}
        if not self.condition(values):
            return None
        return Recommendation(
            activity=self.id,
            urgency=self.urgency(values),
            message=self.message,
            action=self.action,
            data_source=self.data_source,
            impact=dict(self.impact),
        )


DEFAULT_RULES: Tuple[DecisionRule, ...] = (
    DecisionRule(
        id=Activity.IRRIGATION,
        requires=("soil_moisture",),
        condition=lambda v: v["soil_moisture"] < 30,
        urgency=lambda v: Urgency.HIGH if v["soil_moisture"] < 20 else Urgency.MEDIUM,
        message="Irrigation recommended - low soil moisture detected",
        action="Activate drip irrigation system",
        data_source="SMAP - Soil Moisture Active Passive",
        impact={"soil_moisture": "+40%", "water_use": "+15L/m²", "sustainability": 85, "cost": 50},
    ),
    DecisionRule(
        id=Activity.FERTILIZATION,
        requires=("vegetation_index",),
        condition=lambda v: v["vegetation_index"] < 0.4,
        urgency=lambda v: Urgency.HIGH if v["vegetation_index"] < 0.3 else Urgency.MEDIUM,
        message="Fertilization needed - low vegetation index",
        action="Apply organic fertilizer based on soil analysis",
        data_source="MODIS - Vegetation Index (NDVI)",
        impact={"vegetation_index": "+25%", "soil_health": "+20%", "sustainability": 70, "cost": 75},
    ),
    DecisionRule(
        id=Activity.PLANTING,
        requires=("precipitation", "soil_temperature"),
        condition=lambda v: v["precipitation"] > 20 and v["soil_temperature"] > 15,
        urgency=_fixed(Urgency.LOW),
        message="Ideal planting conditions detected",
        action="Start planting selected crops",
        data_source="GPM - Global Precipitation Measurement",
        impact={"productivity": "+30%", "soil_cover": "+100%", "sustainability": 95, "cost": 100},
    ),
    DecisionRule(
        id=Activity.HARVEST,
        requires=("vegetation_index", "soil_moisture"),
        condition=lambda v: v["vegetation_index"] > 0.7 and v["soil_moisture"] < 40,
        urgency=_fixed(Urgency.MEDIUM),
        message="Favorable harvest conditions",
        action="Schedule harvest in the coming days",
        data_source="MODIS - Land Surface Temperature",
        impact={"yield": "Maximum", "quality": "+15%", "sustainability": 90, "cost": 80},
    ),
    DecisionRule(
        id=Activity.PEST_CONTROL,
        requires=("soil_temperature", "soil_moisture"),
        condition=lambda v: v["soil_temperature"] > 25 and v["soil_moisture"] > 60,
        urgency=_fixed(Urgency.MEDIUM),
        message="Conditions favor pests - monitoring needed",
        action="Implement preventive biological control",
        data_source="MODIS - Temperature & Humidity",
        impact={"pest_reduction": "70%", "chemical_use": "-50%", "sustainability": 85, "cost": 40},
    ),
)

# (field, delta, lower bound, upper bound) applied when an activity is carried out.
ACTIVITY_EFFECTS: Dict[Activity, Tuple[Tuple[str, float, float, float], ...]] = {
    Activity.IRRIGATION: (("soil_moisture", 40.0, 0.0, 100.0),),
    Activity.FERTILIZATION: (("vegetation_index", 0.25, 0.0, 1.0),),
    Activity.PLANTING: (("vegetation_index", 0.15, 0.0, 1.0), ("soil_moisture", -10.0, 0.0, 100.0)),
    Activity.HARVEST: (("vegetation_index", -0.3, 0.0, 1.0),),
    Activity.PEST_CONTROL: (("vegetation_index", 0.05, 0.0, 1.0),),
}

SnapshotLike = Union[ClimateSnapshot, Mapping[str, Any]]


class DecisionRuleEngine:
    """Evaluate the rule table against a snapshot and keep the latest batch of recommendations.

    Rules whose required fields are missing are skipped with a warning; with
    `strict=True` they raise `IncompleteSnapshotError` instead.
    """

    def __init__(self, rules: Sequence[DecisionRule] = DEFAULT_RULES, *, strict: bool = False) -> None:
        self.rules = tuple(rules)
        self.strict = strict
        self._current: List[Recommendation] = []

    @property
    def current_recommendations(self) -> List[Recommendation]:
        return list(self._current)

    def analyze(self, snapshot: Any) -> List[Recommendation]:
        """Run every rule in order and return the recommendations that fired."""
        recommendations: List[Recommendation] = []
        for rule in self.rules:
            missing = rule.missing(snapshot)
            if missing:
                if self.strict:
                    raise IncompleteSnapshotError(rule.id.value, missing)
                logger.warning(
                    f"Skipping rule '{rule.id.value}': snapshot is missing {', '.join(missing)}",
                    extra={"rule": rule.id.value, "missing": missing},
                )
                continue
            recommendation = rule.evaluate(snapshot)
            if recommendation is not None:
                recommendations.append(recommendation)

        self._current = recommendations
        logger.debug(f"Analysis produced {len(recommendations)} recommendation(s)")
        return list(recommendations)

    def rule_for(self, activity: Activity | str) -> DecisionRule:
        activity = Activity(activity)
        for rule in self.rules:
            if rule.id == activity:
                return rule
        raise ValueError(f"No rule for activity '{activity.value}'")

    def recommendation_for(self, activity: Activity | str, snapshot: Any) -> Optional[Recommendation]:
        """Evaluate a single rule without replacing the current batch.

        Returns None when the rule does not fire or, outside strict mode, when the
        snapshot lacks a field the rule needs.
        """
        rule = self.rule_for(activity)
        missing = rule.missing(snapshot)
        if missing:
            if self.strict:
                raise IncompleteSnapshotError(rule.id.value, missing)
            return None
        return rule.evaluate(snapshot)

    @staticmethod
    def simulate_activity(activity: Activity | str, snapshot: SnapshotLike) -> SnapshotLike:
        """Return a copy of `snapshot` with the activity's effect applied. Missing fields stay missing."""
        effects = ACTIVITY_EFFECTS[Activity(activity)]
        update: Dict[str, float] = {}
        for name, delta, lower, upper in effects:
            current = _get_field(snapshot, name)
            if current is None:
                continue
            update[name] = round(max(lower, min(upper, float(current) + delta)), 4)

        if isinstance(snapshot, ClimateSnapshot):
            return snapshot.model_copy(update=update)
        return {**snapshot, **update}
