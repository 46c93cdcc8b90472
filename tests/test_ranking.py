import unittest

from core.ranking import (
    RankedDistrict,
    can_expand,
    district_count,
    format_delta,
    format_number,
    rank_districts,
    ranking_frame,
    show_delta_indicator,
)


def _district(confirmed=0, recovered=0, deceased=0, other=0, delta_confirmed=0):
    return {
        "total": {
            "confirmed": confirmed,
            "recovered": recovered,
            "deceased": deceased,
            "other": other,
        },
        "delta": {"confirmed": delta_confirmed},
    }


def _snapshot():
    return {
        "MH": {
            "districts": {
                "Satara": _district(confirmed=40, recovered=10),
                "Mumbai": _district(confirmed=900, recovered=400, deceased=30, delta_confirmed=12),
                "Unknown": _district(confirmed=5000),
                "Pune": _district(confirmed=700, recovered=100, deceased=20, other=5, delta_confirmed=4),
                "Thane": _district(confirmed=40, recovered=35),
                "Nagpur": _district(confirmed=300, recovered=280),
                "Nashik": _district(confirmed=120, recovered=20),
            }
        }
    }


class RankDistrictsTests(unittest.TestCase):
    def test_example_scenario(self):
        snapshot = {
            "XX": {
                "districts": {
                    "A": {"total": {"confirmed": 50}},
                    "B": {"total": {"confirmed": 120}},
                    "Unknown": {"total": {"confirmed": 999}},
                }
            }
        }
        ranked = rank_districts(snapshot, "XX", "confirmed", limit=5)
        self.assertEqual(ranked, [RankedDistrict("B", 120, 0), RankedDistrict("A", 50, 0)])

    def test_full_ranking_properties(self):
        ranked = rank_districts(_snapshot(), "MH", "confirmed", limit=None)
        totals = [entry.total for entry in ranked]
        names = [entry.district for entry in ranked]

        self.assertEqual(totals, sorted(totals, reverse=True))
        self.assertNotIn("Unknown", names)
        self.assertEqual(
            sorted(names),
            sorted(["Satara", "Mumbai", "Pune", "Thane", "Nagpur", "Nashik"]),
        )

    def test_limit_is_a_prefix_of_full_ranking(self):
        full = rank_districts(_snapshot(), "MH", "confirmed", limit=None)
        for k in range(len(full) + 1):
            self.assertEqual(rank_districts(_snapshot(), "MH", "confirmed", limit=k), full[:k])

    def test_ties_keep_feed_order(self):
        names = [entry.district for entry in rank_districts(_snapshot(), "MH", "confirmed", limit=None)]
        self.assertLess(names.index("Satara"), names.index("Thane"))

    def test_active_is_derived(self):
        ranked = rank_districts(_snapshot(), "MH", "active", limit=2)
        self.assertEqual(ranked[0], RankedDistrict("Pune", 575, 4))
        self.assertEqual(ranked[1], RankedDistrict("Mumbai", 470, 12))

    def test_delta_travels_with_entry(self):
        top = rank_districts(_snapshot(), "MH", "confirmed", limit=1)[0]
        self.assertEqual((top.district, top.delta), ("Mumbai", 12))

    def test_absent_region_or_districts(self):
        self.assertEqual(rank_districts({}, "MH", "confirmed"), [])
        self.assertEqual(rank_districts(None, "MH", "confirmed"), [])
        self.assertEqual(rank_districts({"MH": {}}, "MH", "confirmed"), [])
        self.assertEqual(rank_districts({"MH": {"districts": {}}}, "MH", "confirmed"), [])

    def test_missing_counts_read_as_zero(self):
        snapshot = {"KL": {"districts": {"Idukki": {}, "Kollam": {"total": {"confirmed": 3}}}}}
        ranked = rank_districts(snapshot, "KL", "confirmed", limit=None)
        self.assertEqual(ranked, [RankedDistrict("Kollam", 3, 0), RankedDistrict("Idukki", 0, 0)])

    def test_unknown_mode_fails_fast(self):
        with self.assertRaises(ValueError):
            rank_districts(_snapshot(), "MH", "tested")

    def test_frame_columns(self):
        df = ranking_frame(_snapshot(), "MH", "confirmed", limit=3)
        self.assertEqual(list(df.columns), ["district", "total", "delta"])
        self.assertEqual(list(df["district"]), ["Mumbai", "Pune", "Nagpur"])
        self.assertTrue(ranking_frame({}, "MH", "confirmed").empty)


class DistrictHelpersTests(unittest.TestCase):
    def test_district_count_skips_unknown(self):
        self.assertEqual(district_count(_snapshot(), "MH"), 6)
        self.assertEqual(district_count({}, "MH"), 0)

    def test_can_expand(self):
        self.assertTrue(can_expand(_snapshot(), "MH"))
        small = {"GA": {"districts": {"North Goa": {}, "South Goa": {}}}}
        self.assertFalse(can_expand(small, "GA"))

    def test_delta_indicator_hidden_for_active(self):
        self.assertFalse(show_delta_indicator("active"))
        self.assertTrue(show_delta_indicator("confirmed"))

    def test_format_number(self):
        self.assertEqual(format_number(999), "999")
        self.assertEqual(format_number(1000), "1,000")
        self.assertEqual(format_number(100000), "1,00,000")
        self.assertEqual(format_number(1234567), "12,34,567")
        self.assertEqual(format_number(-4500), "-4,500")
        self.assertEqual(format_number(None), "-")

    def test_format_delta(self):
        self.assertEqual(format_delta(12345), "↑12,345")
        self.assertEqual(format_delta(0), "")
        self.assertEqual(format_delta(-3), "")


if __name__ == "__main__":
    unittest.main()
