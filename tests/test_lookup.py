import math
import unittest

from world2.errors import ConfigurationError
from world2.lookup import LookupTable, interpolate


class TestInterpolator(unittest.TestCase):
    def setUp(self):
        self.table = LookupTable("T", (0.0, 1.0, 2.0), (0.0, 10.0, 10.0))

    def test_between_points_is_linear(self):
        self.assertEqual(interpolate(self.table, 0.5), 5.0)
        self.assertEqual(interpolate(self.table, 1.5), 10.0)
        self.assertAlmostEqual(interpolate(self.table, 0.25), 2.5)

    def test_exact_points(self):
        for x, y in self.table.points():
            self.assertEqual(interpolate(self.table, x), y)

    def test_flat_extrapolation_below_and_above(self):
        self.assertEqual(interpolate(self.table, -1.0), 0.0)
        self.assertEqual(interpolate(self.table, 5.0), 10.0)

    def test_call_is_interpolate(self):
        self.assertEqual(self.table(0.5), interpolate(self.table, 0.5))

    def test_nan_query_propagates(self):
        self.assertTrue(math.isnan(interpolate(self.table, float("nan"))))

    def test_decreasing_table(self):
        # Most multipliers fall with their driver, e.g. DRMM
        t = LookupTable.from_range("D", 0.0, 0.5, (3.0, 1.8, 1.0))
        self.assertAlmostEqual(t(0.25), 2.4)
        self.assertEqual(t(-3.0), 3.0)
        self.assertEqual(t(9.0), 1.0)


class TestLookupTableValidation(unittest.TestCase):
    def test_from_range_builds_even_grid(self):
        t = LookupTable.from_range("R", 0.0, 0.25, (0.0, 0.15, 0.5, 0.85, 1.0))
        self.assertEqual(t.xs, (0.0, 0.25, 0.5, 0.75, 1.0))
        self.assertEqual(t.domain, (0.0, 1.0))

    def test_from_points(self):
        t = LookupTable.from_points("P", [(0, 1), (10, 2)])
        self.assertEqual(t.points(), [(0.0, 1.0), (10.0, 2.0)])

    def test_fewer_than_two_points_raises(self):
        with self.assertRaises(ConfigurationError):
            LookupTable("one", (0.0,), (1.0,))
        with self.assertRaises(ConfigurationError):
            LookupTable("none", (), ())

    def test_non_increasing_x_raises(self):
        with self.assertRaises(ConfigurationError):
            LookupTable("dup", (0.0, 1.0, 1.0), (0.0, 1.0, 2.0))
        with self.assertRaises(ConfigurationError):
            LookupTable("dec", (2.0, 1.0), (0.0, 1.0))

    def test_length_mismatch_raises(self):
        with self.assertRaises(ConfigurationError):
            LookupTable("len", (0.0, 1.0, 2.0), (0.0, 1.0))

    def test_non_finite_raises(self):
        with self.assertRaises(ConfigurationError):
            LookupTable("inf", (0.0, 1.0), (0.0, float("inf")))

    def test_bad_pair_raises(self):
        with self.assertRaises(ConfigurationError):
            LookupTable.from_points("bad", [(0, 1), (1, 2, 3)])

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            LookupTable("one", (0.0,), (1.0,))


if __name__ == "__main__":
    unittest.main()
