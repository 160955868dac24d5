import unittest
from types import SimpleNamespace

from agrisat.decision_engine import DEFAULT_RULES, DecisionRuleEngine
from agrisat.domain import Activity, ClimateSnapshot, Location, Urgency
from agrisat.errors import IncompleteSnapshotError


def _snapshot(**values):
    return ClimateSnapshot(location=Location(lat=0.0, lon=0.0), **values)


class TestDecisionRuleEngine(unittest.TestCase):
    def setUp(self):
        self.engine = DecisionRuleEngine()

    def test_rules_fire_independently(self):
        recs = self.engine.analyze(
            {"soil_moisture": 15, "vegetation_index": 0.25, "precipitation": 25, "soil_temperature": 20}
        )
        self.assertEqual(
            [(r.activity, r.urgency) for r in recs],
            [
                (Activity.IRRIGATION, Urgency.HIGH),
                (Activity.FERTILIZATION, Urgency.HIGH),
                (Activity.PLANTING, Urgency.LOW),
            ],
        )

    def test_no_recommendations_in_good_conditions(self):
        recs = self.engine.analyze(
            _snapshot(soil_moisture=50, vegetation_index=0.6, precipitation=5, soil_temperature=20)
        )
        self.assertEqual(recs, [])

    def test_urgency_thresholds(self):
        medium = self.engine.analyze({"soil_moisture": 25, "vegetation_index": 0.35,
                                      "precipitation": 0, "soil_temperature": 10})
        self.assertEqual([r.urgency for r in medium], [Urgency.MEDIUM, Urgency.MEDIUM])

        boundary = self.engine.analyze({"soil_moisture": 20, "vegetation_index": 0.3,
                                        "precipitation": 0, "soil_temperature": 10})
        self.assertEqual([r.urgency for r in boundary], [Urgency.MEDIUM, Urgency.MEDIUM])

    def test_harvest_and_irrigation_can_co_occur(self):
        recs = self.engine.analyze(
            _snapshot(soil_moisture=25, vegetation_index=0.75, precipitation=0, soil_temperature=18)
        )
        self.assertEqual([r.activity for r in recs], [Activity.IRRIGATION, Activity.HARVEST])

    def test_pest_control(self):
        recs = self.engine.analyze(
            _snapshot(soil_moisture=65, vegetation_index=0.5, precipitation=0, soil_temperature=28)
        )
        self.assertEqual([r.activity for r in recs], [Activity.PEST_CONTROL])
        self.assertEqual(recs[0].data_source, "MODIS - Temperature & Humidity")
        self.assertEqual(recs[0].impact["cost"], 40)

    def test_emission_follows_rule_order(self):
        recs = self.engine.analyze(
            {"soil_moisture": 10, "vegetation_index": 0.1, "precipitation": 30, "soil_temperature": 30}
        )
        order = [rule.id for rule in DEFAULT_RULES]
        positions = [order.index(r.activity) for r in recs]
        self.assertEqual(positions, sorted(positions))

    def test_accepts_attribute_objects(self):
        snap = SimpleNamespace(soil_moisture=15, vegetation_index=0.5, precipitation=0, soil_temperature=10)
        self.assertEqual([r.activity for r in self.engine.analyze(snap)], [Activity.IRRIGATION])

    def test_missing_fields_skip_rules_with_warning(self):
        with self.assertLogs("agrisat.decision_engine", level="WARNING") as logs:
            recs = self.engine.analyze(_snapshot(soil_moisture=15, precipitation=0, soil_temperature=10))
        self.assertEqual([r.activity for r in recs], [Activity.IRRIGATION])
        self.assertTrue(any("vegetation_index" in line for line in logs.output))

    def test_strict_mode_raises_on_missing_fields(self):
        engine = DecisionRuleEngine(strict=True)
        with self.assertRaises(IncompleteSnapshotError) as ctx:
            engine.analyze(_snapshot(soil_moisture=50, precipitation=0, soil_temperature=10))
        self.assertEqual(ctx.exception.rule_id, "fertilization")
        self.assertEqual(ctx.exception.missing, ["vegetation_index"])

    def test_only_latest_batch_is_retained(self):
        self.engine.analyze({"soil_moisture": 15, "vegetation_index": 0.5, "precipitation": 0, "soil_temperature": 10})
        self.assertEqual(len(self.engine.current_recommendations), 1)
        self.engine.analyze({"soil_moisture": 50, "vegetation_index": 0.5, "precipitation": 0, "soil_temperature": 10})
        self.assertEqual(self.engine.current_recommendations, [])

    def test_single_rule_evaluation_leaves_batch_alone(self):
        batch = self.engine.analyze({"soil_moisture": 15, "vegetation_index": 0.5,
                                     "precipitation": 0, "soil_temperature": 10})
        rec = self.engine.recommendation_for("harvest", {"soil_moisture": 30, "vegetation_index": 0.8})
        self.assertEqual(rec.activity, Activity.HARVEST)
        self.assertIsNone(self.engine.recommendation_for("fertilization", {"soil_moisture": 30}))
        self.assertEqual(self.engine.current_recommendations, batch)

    def test_impact_is_copied_per_recommendation(self):
        first = self.engine.analyze({"soil_moisture": 15, "vegetation_index": 0.5,
                                     "precipitation": 0, "soil_temperature": 10})[0]
        first.impact["cost"] = 0
        second = self.engine.analyze({"soil_moisture": 15, "vegetation_index": 0.5,
                                      "precipitation": 0, "soil_temperature": 10})[0]
        self.assertEqual(second.impact["cost"], 50)


class TestSimulateActivity(unittest.TestCase):
    def test_irrigation_caps_moisture(self):
        updated = DecisionRuleEngine.simulate_activity(Activity.IRRIGATION, _snapshot(soil_moisture=80))
        self.assertEqual(updated.soil_moisture, 100)

    def test_planting_adjusts_vegetation_and_moisture(self):
        updated = DecisionRuleEngine.simulate_activity("planting", _snapshot(soil_moisture=5, vegetation_index=0.5))
        self.assertEqual(updated.soil_moisture, 0)
        self.assertAlmostEqual(updated.vegetation_index, 0.65)

    def test_harvest_floors_vegetation(self):
        updated = DecisionRuleEngine.simulate_activity("harvest", {"vegetation_index": 0.2, "soil_moisture": 30})
        self.assertEqual(updated, {"vegetation_index": 0.0, "soil_moisture": 30})

    def test_original_snapshot_is_untouched(self):
        original = _snapshot(vegetation_index=0.9)
        updated = DecisionRuleEngine.simulate_activity("fertilization", original)
        self.assertEqual(original.vegetation_index, 0.9)
        self.assertEqual(updated.vegetation_index, 1.0)

    def test_missing_field_stays_missing(self):
        updated = DecisionRuleEngine.simulate_activity("irrigation", _snapshot())
        self.assertIsNone(updated.soil_moisture)

    def test_unknown_activity_raises(self):
        with self.assertRaises(ValueError):
            DecisionRuleEngine.simulate_activity("livestock", _snapshot())


if __name__ == "__main__":
    unittest.main()
