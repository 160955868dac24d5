import unittest

from agrisat.advisor import FarmAdvisor
from agrisat.decision_engine import DecisionRuleEngine
from agrisat.domain import Activity, ClimateSnapshot, Location, SnapshotSource
from agrisat.errors import IncompleteSnapshotError


def _snapshot(**values):
    return ClimateSnapshot(location=Location(lat=-15.78, lon=-47.93), **values)


class StubAggregator:
    def __init__(self, snapshot):
        self.snapshot = snapshot
        self.calls = []

    async def get_climate_snapshot(self, lat, lon):
        self.calls.append((lat, lon))
        return self.snapshot


DRY_FIELD = _snapshot(soil_moisture=15, vegetation_index=0.25, precipitation=25, soil_temperature=20)


class TestFarmAdvisor(unittest.IsolatedAsyncioTestCase):
    async def test_assess_combines_recommendations_report_and_tips(self):
        aggregator = StubAggregator(DRY_FIELD)
        assessment = await FarmAdvisor(aggregator).assess(-15.78, -47.93)

        self.assertEqual(aggregator.calls, [(-15.78, -47.93)])
        self.assertEqual(
            [r.activity for r in assessment.recommendations],
            [Activity.IRRIGATION, Activity.FERTILIZATION, Activity.PLANTING],
        )
        self.assertEqual(assessment.report.metrics.energy_use, 70)
        self.assertEqual(assessment.report.recommendations, assessment.recommendations)
        self.assertEqual(
            [t.technique.id for t in assessment.conservation],
            ["precision-irrigation", "cover-crops"],
        )
        self.assertEqual(assessment.snapshot.source, SnapshotSource.LIVE)


class TestExecuteActivity(unittest.TestCase):
    def setUp(self):
        self.advisor = FarmAdvisor(StubAggregator(DRY_FIELD))

    def test_recommended_activity(self):
        outcome = self.advisor.execute_activity("irrigation", DRY_FIELD)
        self.assertTrue(outcome.recommended)
        self.assertEqual(outcome.cost, 50)
        self.assertEqual(outcome.sustainability, 85)
        self.assertEqual(outcome.snapshot.soil_moisture, 55)
        self.assertEqual(DRY_FIELD.soil_moisture, 15)

    def test_not_recommended_activity_still_runs(self):
        outcome = self.advisor.execute_activity(Activity.HARVEST, DRY_FIELD)
        self.assertFalse(outcome.recommended)
        self.assertEqual(outcome.snapshot.vegetation_index, 0.0)
        self.assertEqual(outcome.effect, "Collects the crop at peak maturity")

    def test_execution_keeps_current_recommendations(self):
        batch = self.advisor.engine.analyze(DRY_FIELD)
        self.assertEqual(len(batch), 3)
        lush = _snapshot(soil_moisture=35, vegetation_index=0.8, precipitation=0, soil_temperature=20)
        outcome = self.advisor.execute_activity("harvest", lush)
        self.assertTrue(outcome.recommended)
        self.assertEqual(self.advisor.engine.current_recommendations, batch)

    def test_strict_execution_on_incomplete_snapshot_raises(self):
        advisor = FarmAdvisor(StubAggregator(DRY_FIELD), DecisionRuleEngine(strict=True))
        with self.assertRaises(IncompleteSnapshotError):
            advisor.execute_activity("fertilization", _snapshot(soil_moisture=15))

    def test_unknown_activity_raises(self):
        with self.assertRaises(ValueError):
            self.advisor.execute_activity("livestock", DRY_FIELD)


if __name__ == "__main__":
    unittest.main()
