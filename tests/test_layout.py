import unittest

from core.layout import GridPlan, VisibilityLatch, plan_grid, plan_rows


class GridPlannerTests(unittest.TestCase):
    def test_wide_viewport_uses_three_columns(self):
        self.assertEqual(plan_rows(11, 600), 4)
        self.assertEqual(plan_grid(11, 600), GridPlan(column_count=3, row_count=4))

    def test_narrow_viewport_uses_two_columns(self):
        self.assertEqual(plan_rows(11, 400), 6)

    def test_breakpoint_is_inclusive(self):
        self.assertEqual(plan_grid(6, 540).column_count, 3)
        self.assertEqual(plan_grid(6, 539).column_count, 2)

    def test_no_items(self):
        self.assertEqual(plan_rows(0, 1024), 0)

    def test_negative_count_fails_fast(self):
        with self.assertRaises(ValueError):
            plan_rows(-1, 600)


class VisibilityLatchTests(unittest.TestCase):
    def test_starts_inactive(self):
        latch = VisibilityLatch()
        self.assertFalse(latch.is_activated())
        self.assertFalse(latch.observe(False))
        self.assertFalse(latch.is_activated())

    def test_first_visible_observation_latches(self):
        latch = VisibilityLatch()
        self.assertTrue(latch.observe(True))
        self.assertTrue(latch.is_activated())
        self.assertFalse(latch.observing)

    def test_never_reverts(self):
        latch = VisibilityLatch()
        latch.observe(True)
        for visible in (False, True, False):
            latch.observe(visible)
        self.assertTrue(latch.is_activated())

    def test_listeners_fire_once(self):
        latch = VisibilityLatch()
        calls = []
        latch.on_activate(lambda: calls.append("mounted"))
        latch.observe(True)
        latch.observe(True)
        self.assertEqual(calls, ["mounted"])

    def test_late_listener_runs_immediately(self):
        latch = VisibilityLatch()
        latch.observe(True)
        calls = []
        latch.on_activate(lambda: calls.append("late"))
        self.assertEqual(calls, ["late"])

    def test_should_mount_waits_for_data(self):
        latch = VisibilityLatch()
        self.assertFalse(latch.should_mount(True))
        latch.observe(True)
        self.assertFalse(latch.should_mount(False))
        self.assertTrue(latch.should_mount(True))


if __name__ == "__main__":
    unittest.main()
