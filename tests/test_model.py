import unittest

import numpy as np

from world2.errors import NumericDomainError
from world2.lookup import LookupTable
from world2.model import World2Model, run_world2
from world2.naming import ALL_VARIABLES, FIRST_STEP_UNSET, INITIAL_CONSTANTS, LEVELS
from world2.parameters import Parameters, RunSpecs
from world2.tables import default_tables


SHORT = RunSpecs(starttime=1900.0, stoptime=1910.0, dt=0.2)


class TestReferenceRun(unittest.TestCase):
    """Forrester (1971) reference run, 1900-2100, DT = 0.2."""

    @classmethod
    def setUpClass(cls):
        cls.result = run_world2()

    def test_length_invariant(self):
        n = RunSpecs().num_steps
        self.assertEqual(n, 1001)
        self.assertEqual(len(self.result.time), n)
        for name in ALL_VARIABLES:
            self.assertEqual(len(self.result[name]), n, name)

    def test_time_alignment(self):
        for i in (0, 1, 350, 500, 1000):
            self.assertAlmostEqual(self.result.time[i], 1900.0 + i * 0.2, places=9)
        self.assertLess(abs(self.result.time[-1] - 2100.0), 0.2)

    def test_initial_condition_fidelity(self):
        params = Parameters().as_dict()
        for level, const in INITIAL_CONSTANTS.items():
            self.assertEqual(self.result[level][0], params[const], level)

    def test_first_step_flows_unset_everything_else_set(self):
        for name in ALL_VARIABLES:
            values = self.result[name]
            if name in FIRST_STEP_UNSET:
                self.assertTrue(np.isnan(values[0]), name)
                self.assertFalse(np.isnan(values[1:]).any(), name)
            else:
                self.assertFalse(np.isnan(values).any(), name)

    def test_initial_auxiliaries(self):
        r = self.result
        self.assertAlmostEqual(r["CR"][0], 1.65e9 / (135e6 * 26.5))
        self.assertAlmostEqual(r["CIR"][0], 0.4e9 / 1.65e9)
        self.assertAlmostEqual(r["NRFR"][0], 1.0)
        self.assertAlmostEqual(r["POLR"][0], 0.2e9 / 3.6e9)
        self.assertAlmostEqual(r["MSL"][0], 0.277056, places=5)
        self.assertAlmostEqual(r["FR"][0], 1.038609, places=5)
        self.assertAlmostEqual(r["QL"][0], 0.611596, places=5)

    def test_euler_update_of_levels(self):
        r = self.result
        dt = 0.2
        for k in (1, 250, 1000):
            j = k - 1
            self.assertAlmostEqual(r["P"][k], r["P"][j] + dt * (r["BR"][k] - r["DR"][k]), delta=1.0)
            self.assertAlmostEqual(r["NR"][k], r["NR"][j] - dt * r["NRUR"][k], delta=1.0)
            self.assertAlmostEqual(r["CI"][k], r["CI"][j] + dt * (r["CIG"][k] - r["CID"][k]), delta=1.0)
            self.assertAlmostEqual(r["POL"][k], r["POL"][j] + dt * (r["POLG"][k] - r["POLA"][k]), delta=1.0)

    def test_population_non_negative(self):
        self.assertTrue((self.result["P"] >= 0).all())

    def test_population_overshoot_and_decline(self):
        p = self.result["P"]
        i2000 = self.result.index_of(2000)
        self.assertEqual(i2000, 500)
        self.assertGreater(p[: i2000 + 1].max(), p[0])
        peak, year = self.result.peak("P")
        self.assertTrue(2015.0 <= year <= 2025.0, year)
        self.assertAlmostEqual(peak / 5.2959e9, 1.0, delta=0.01)
        self.assertLess(p[-1], peak)

    def test_population_in_2000_matches_benchmark(self):
        # Reference trajectory: ~4.944e9 people in 2000
        self.assertAlmostEqual(self.result.at_year("P", 2000) / 4.944e9, 1.0, delta=0.05)
        self.assertAlmostEqual(self.result.at_year("P", 2000) / 4.944e9, 1.0, delta=0.005)

    def test_end_of_run_benchmark(self):
        r = self.result
        self.assertAlmostEqual(r.at_year("P", 2100) / 3.6997e9, 1.0, delta=0.01)
        self.assertAlmostEqual(r.at_year("NR", 2100) / 2.7824e11, 1.0, delta=0.01)
        self.assertAlmostEqual(r.at_year("QL", 2100), 0.5494, delta=0.005)
        peak_polr, polr_year = r.peak("POLR")
        self.assertAlmostEqual(peak_polr, 5.713, delta=0.05)
        self.assertTrue(2045.0 <= polr_year <= 2055.0, polr_year)

    def test_no_lookup_outside_domain_in_reference_run(self):
        tables = default_tables()
        r = self.result
        drivers = {"MSL": ("BRMM", "DRMM", "CIM", "QLM", "NRMM"), "POLR": ("DRPM", "POLAT"), "FR": ("DRFM", "QLF"), "CR": ("QLC",)}
        for var, names in drivers.items():
            for name in names:
                lo, hi = tables[name].domain
                self.assertTrue(((r[var] >= lo) & (r[var] <= hi)).all(), f"{var} outside {name}")

    def test_result_arrays_are_read_only(self):
        with self.assertRaises(ValueError):
            self.result["P"][0] = 0.0

    def test_to_frame(self):
        df = self.result.to_frame()
        self.assertEqual(df.shape, (1001, len(ALL_VARIABLES)))
        self.assertEqual(df.index.name, "Year")
        self.assertTrue(np.isnan(df["BR"].iloc[0]))

    def test_index_of_rejects_off_grid_year(self):
        with self.assertRaises(ValueError):
            self.result.index_of(2000.1)
        with self.assertRaises(ValueError):
            self.result.index_of(2200)


class TestDeterminism(unittest.TestCase):
    def test_two_runs_identical(self):
        a = World2Model(SHORT).run()
        b = World2Model(SHORT).run()
        for name in ALL_VARIABLES:
            np.testing.assert_array_equal(a[name], b[name])

    def test_model_runs_once(self):
        model = World2Model(SHORT)
        model.run()
        with self.assertRaises(RuntimeError):
            model.run()


class TestScenarioVariants(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.baseline = run_world2()

    def test_reduced_resource_usage_delays_collapse(self):
        variant = run_world2(parameters=Parameters().with_overrides({"NRUN1": 0.25}))
        # Identical until the switch year
        i1970 = variant.index_of(1970)
        np.testing.assert_array_equal(variant["P"][: i1970 + 1], self.baseline["P"][: i1970 + 1])
        self.assertGreater(variant.peak("P")[0], self.baseline.peak("P")[0])
        self.assertGreater(variant.at_year("NR", 2100), self.baseline.at_year("NR", 2100))

    def test_alternate_table_changes_trajectory(self):
        tables = default_tables().replace({"CIM": LookupTable("CIM", (0.0, 5.0), (1.0, 1.0))})
        variant = World2Model(SHORT, tables=tables).run()
        reference = World2Model(SHORT).run()
        self.assertFalse(np.allclose(variant["CI"][1:], reference["CI"][1:]))


class TestSwitchTiming(unittest.TestCase):
    """Rates switch on the previous grid year; the food coefficient on the current one."""

    RUNSPECS = RunSpecs(starttime=1900.0, stoptime=1975.0, dt=0.2)

    @classmethod
    def setUpClass(cls):
        cls.baseline = run_world2(cls.RUNSPECS)
        cls.first_after = cls.baseline.index_of(1970.2)

    def test_food_coefficient_switches_at_current_year(self):
        variant = run_world2(self.RUNSPECS, Parameters().with_overrides({"FC1": 0.5}))
        at_switch = self.baseline.index_of(1970)
        np.testing.assert_array_equal(variant["FR"][: at_switch + 1], self.baseline["FR"][: at_switch + 1])
        self.assertAlmostEqual(variant["FR"][at_switch] / self.baseline["FR"][at_switch], 1.0, places=12)
        k = self.first_after
        self.assertAlmostEqual(variant["FR"][k] / self.baseline["FR"][k], 0.5, places=12)

    def test_rate_switches_read_previous_year(self):
        k = self.first_after
        for const, value, rate in (("BRN1", 0.03, "BR"), ("NRUN1", 0.25, "NRUR")):
            variant = run_world2(self.RUNSPECS, Parameters().with_overrides({const: value}))
            # BR[k] and NRUR[k] are evaluated at time[k - 1] == 1970, still before the switch
            np.testing.assert_array_equal(variant[rate][1 : k + 1], self.baseline[rate][1 : k + 1])
            self.assertNotEqual(variant[rate][k + 1], self.baseline[rate][k + 1], rate)


class LaggedFoodRatioModel(World2Model):
    """Food ratio read from the previous step's crowding and capital ratios."""

    def _update_food_ratio(self, k, j):
        p = self.parameters
        cira = self._set("CIRA", k, self._get("CIR", j) * self._get("CIAF", k) / p.CIAFN)
        food = (
            self._lookup("FCM", self._get("CR", j))
            * self._lookup("FPCI", cira)
            * self._lookup("FPM", self._get("POLR", k))
            * p.FC
        )
        self._set("FR", k, food / p.FN)


class TestStepOrder(unittest.TestCase):
    def test_reading_previous_step_changes_trajectory(self):
        reference = World2Model(SHORT).run()
        lagged = LaggedFoodRatioModel(SHORT).run()
        # Index 0 is shared; every later step differs
        self.assertEqual(reference["FR"][0], lagged["FR"][0])
        rel = np.abs(lagged["P"][2:] - reference["P"][2:]) / reference["P"][2:]
        self.assertGreater(rel.max(), 1e-9)
        self.assertGreater(np.abs(lagged["FR"][1:] - reference["FR"][1:]).max(), 1e-9)

    def test_moving_crowding_ratio_after_food_ratio_fails(self):
        order = list(World2Model.STEP_SEQUENCE)
        order.remove("_update_crowding_ratio")
        order.insert(order.index("_update_food_ratio") + 1, "_update_crowding_ratio")

        class Reordered(World2Model):
            STEP_SEQUENCE = tuple(order)

        with self.assertRaises(NumericDomainError) as ctx:
            Reordered(SHORT).run()
        self.assertEqual(ctx.exception.variable, "CR")
        self.assertEqual(ctx.exception.index, 1)

    def test_quality_of_life_first_fails(self):
        order = [s for s in World2Model.STEP_SEQUENCE if s != "_update_quality_of_life"]

        class Reordered(World2Model):
            STEP_SEQUENCE = ("_update_quality_of_life",) + tuple(order)

        with self.assertRaises(NumericDomainError):
            Reordered(SHORT).run()


class TestNumericDomainErrors(unittest.TestCase):
    def test_zero_population_aborts_at_initialization(self):
        with self.assertRaises(NumericDomainError) as ctx:
            run_world2(SHORT, Parameters(PI=0.0))
        err = ctx.exception
        self.assertEqual(err.variable, "CIR")
        self.assertEqual(err.index, 0)
        self.assertEqual(err.year, 1900.0)
        self.assertIn("1900", str(err))

    def test_zero_food_quality_aborts_mid_run(self):
        # QLF(FR) == 0 everywhere makes the CIAF quality ratio QLM / QLF undefined
        tables = default_tables().replace({"QLF": LookupTable("QLF", (0.0, 4.0), (0.0, 0.0))})
        with self.assertRaises(NumericDomainError) as ctx:
            World2Model(SHORT, tables=tables).run()
        self.assertEqual(ctx.exception.variable, "CIAF")
        self.assertEqual(ctx.exception.index, 1)

    def test_error_is_runtime_error(self):
        with self.assertRaises(RuntimeError):
            run_world2(SHORT, Parameters(PI=0.0))


class TestStateLevels(unittest.TestCase):
    def test_levels_are_tracked(self):
        self.assertEqual(LEVELS, ("P", "NR", "CI", "CIAF", "POL"))


if __name__ == "__main__":
    unittest.main()
