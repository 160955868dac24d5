import unittest

from agrisat.conservation import CONSERVATION_TECHNIQUES, conservation_tips, crop_guidance
from agrisat.domain import Urgency


class TestConservation(unittest.TestCase):
    def test_catalogue_has_four_techniques(self):
        self.assertEqual(
            sorted(CONSERVATION_TECHNIQUES),
            ["cover-crops", "crop-rotation", "no-till", "precision-irrigation"],
        )

    def test_tips_follow_conditions(self):
        tips = conservation_tips({"soil_moisture": 20, "vegetation_index": 0.3, "soil_temperature": 32})
        self.assertEqual(
            [(t.technique.id, t.priority) for t in tips],
            [
                ("precision-irrigation", Urgency.HIGH),
                ("cover-crops", Urgency.MEDIUM),
                ("no-till", Urgency.MEDIUM),
            ],
        )

    def test_no_tips_for_missing_or_healthy_values(self):
        self.assertEqual(conservation_tips({"soil_moisture": 45}), [])

    def test_crop_guidance(self):
        corn = crop_guidance("Corn")
        self.assertEqual(corn.optimal_moisture, "40-50%")
        self.assertEqual(corn.techniques, ["precision-irrigation", "no-till"])
        self.assertIsNone(crop_guidance("coffee"))


if __name__ == "__main__":
    unittest.main()
