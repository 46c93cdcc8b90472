import unittest

from core.streak import (
    is_quiet_streak,
    lookback_for,
    streak_applies,
    streak_message,
    streak_tone,
    trailing_deltas,
)


def _timeseries(deltas, statistic="confirmed", region="KL"):
    points = {}
    for day, delta in enumerate(deltas, start=1):
        points[f"2020-06-{day:02d}"] = {
            "total": {statistic: 100 + day},
            "delta": {statistic: delta},
        }
    return {region: points}


class QuietStreakTests(unittest.TestCase):
    def test_all_zero_window_is_quiet(self):
        ts = _timeseries([7, 2, 0, 0, 0, 0, 0, 0])
        self.assertTrue(is_quiet_streak(ts, "KL", "confirmed", 6))

    def test_single_nonzero_delta_breaks_streak(self):
        ts = _timeseries([7, 2, 0, 0, 3, 0, 0, 0])
        self.assertFalse(is_quiet_streak(ts, "KL", "confirmed", 6))

    def test_only_trailing_window_counts(self):
        ts = _timeseries([9, 0, 0, 0, 0, 0, 0])
        self.assertTrue(is_quiet_streak(ts, "KL", "confirmed", 6))
        self.assertFalse(is_quiet_streak(ts, "KL", "confirmed", 7))

    def test_window_larger_than_history_uses_all_dates(self):
        self.assertTrue(is_quiet_streak(_timeseries([0, 0, 0]), "KL", "confirmed", 10))
        self.assertFalse(is_quiet_streak(_timeseries([0, 1, 0]), "KL", "confirmed", 10))

    def test_absent_region_is_not_a_streak(self):
        self.assertFalse(is_quiet_streak({}, "KL", "confirmed", 6))
        self.assertFalse(is_quiet_streak(None, "KL", "confirmed", 6))
        self.assertFalse(is_quiet_streak(_timeseries([0, 0]), "MH", "confirmed", 6))

    def test_mode_selects_statistic(self):
        ts = _timeseries([0, 0, 0], statistic="deceased")
        ts["KL"]["2020-06-03"]["delta"]["confirmed"] = 5
        self.assertTrue(is_quiet_streak(ts, "KL", "deceased", 6))
        self.assertFalse(is_quiet_streak(ts, "KL", "confirmed", 6))

    def test_nested_dates_layout(self):
        ts = {"KL": {"dates": _timeseries([4, 0, 0])["KL"]}}
        self.assertTrue(is_quiet_streak(ts, "KL", "confirmed", 2))

    def test_bad_window_fails_fast(self):
        with self.assertRaises(ValueError):
            is_quiet_streak(_timeseries([0]), "KL", "confirmed", 0)

    def test_unknown_mode_fails_fast(self):
        with self.assertRaises(ValueError):
            is_quiet_streak(_timeseries([0]), "KL", "migrated", 6)

    def test_trailing_deltas_index(self):
        deltas = trailing_deltas(_timeseries([1, 2, 3]), "KL", "confirmed", 2)
        self.assertEqual(list(deltas.index), ["2020-06-02", "2020-06-03"])
        self.assertEqual(list(deltas), [2.0, 3.0])


class StreakPresentationTests(unittest.TestCase):
    def test_lookback(self):
        self.assertEqual(lookback_for(False), 6)
        self.assertEqual(lookback_for(True), 10)

    def test_streak_applies_to_event_counts(self):
        self.assertTrue(streak_applies("confirmed"))
        self.assertTrue(streak_applies("deceased"))
        self.assertFalse(streak_applies("active"))
        self.assertFalse(streak_applies("recovered"))

    def test_message_and_tone(self):
        self.assertEqual(streak_message("deceased"), "No new deceased cases in the past five days")
        self.assertEqual(streak_tone("confirmed"), "is-green")
        self.assertEqual(streak_tone("deceased"), "")


if __name__ == "__main__":
    unittest.main()
