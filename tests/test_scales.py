from __future__ import annotations

import unittest
from datetime import date

from timechart.errors import ScaleResolutionError
from timechart.scales import LinearScale, ScaleContext
from timechart.schemas import Dataset

from chart_data import HORIZONS, interval, record, season


class TestLinearScale(unittest.TestCase):
    def test_maps_and_inverts(self):
        s = LinearScale(domain=(0.0, 4.0), range=(100.0, 0.0))
        self.assertEqual(s(0.0), 100.0)
        self.assertEqual(s(4.0), 0.0)
        self.assertEqual(s(1.0), 75.0)
        self.assertEqual(s.invert(75.0), 1.0)

    def test_degenerate_domain_maps_to_middle(self):
        s = LinearScale(domain=(0.0, 0.0), range=(0.0, 300.0))
        self.assertEqual(s(0.0), 150.0)


class TestScaleContext(unittest.TestCase):
    def setUp(self):
        self.scales = ScaleContext(300, 100)
        self.scales.set_x_domain([50, 51, 52, 1])

    def test_x_domain_is_index_space(self):
        self.assertEqual(self.scales.x.domain, (0.0, 3.0))
        self.assertEqual(self.scales.week_to_x(50), 0.0)
        self.assertAlmostEqual(self.scales.week_to_x(52), 200.0)
        self.assertAlmostEqual(self.scales.week_to_x(1), 300.0)

    def test_fractional_week_interpolates_in_index_space(self):
        self.assertEqual(self.scales.week_to_x(51.5), 150.0)
        self.assertAlmostEqual(self.scales.week_to_x(52.25), 225.0)

    def test_unknown_week_fails_explicitly(self):
        with self.assertRaises(ScaleResolutionError):
            self.scales.week_to_x(20)
        with self.assertRaises(ScaleResolutionError):
            self.scales.week_to_x(float("nan"))

    def test_x_to_index_rounds_and_clamps(self):
        self.assertEqual(self.scales.x_to_index(149), 1)
        self.assertEqual(self.scales.x_to_index(151), 2)
        self.assertEqual(self.scales.x_to_index(-80), 0)
        self.assertEqual(self.scales.x_to_index(1000), 3)

    def test_ticks_skip_every_other_week(self):
        ticks = self.scales.ticks()
        self.assertEqual([t["label"] for t in ticks], ["50", "52"])
        self.assertEqual(ticks[0]["x"], 0.0)
        self.assertAlmostEqual(ticks[1]["x"], 200.0)

    def test_single_week_season_sits_in_the_middle(self):
        scales = ScaleContext(300, 100)
        scales.set_x_domain([7])
        self.assertEqual(scales.week_to_x(7), 150.0)
        self.assertEqual(scales.x_to_index(0), 0)

    def test_x_to_index_requires_weeks(self):
        with self.assertRaises(ScaleResolutionError):
            ScaleContext(300, 100).x_to_index(10)


class TestYDomain(unittest.TestCase):
    def test_domain_covers_all_series(self):
        scales = ScaleContext(500, 100)
        lo, hi = scales.set_y_domain(Dataset.model_validate(season()), cid=0)
        self.assertEqual(lo, 0.0)
        # alpha at 202002: fourWk point 3.4, high[0] = 4.4
        self.assertAlmostEqual(hi, 4.4)
        self.assertEqual(scales.value_to_y(0), 100.0)
        self.assertAlmostEqual(scales.value_to_y(hi), 0.0)

    def test_domain_follows_selected_interval(self):
        scales = ScaleContext(500, 100)
        _, hi = scales.set_y_domain(Dataset.model_validate(season()), cid=1)
        self.assertAlmostEqual(hi, 3.9)

    def test_onset_and_peak_weeks_stay_out_of_the_y_domain(self):
        rec = record(201950, 0.0)
        rec["peakPercent"] = interval(0.5, 0.2, 0.1)
        for name in HORIZONS:
            rec[name] = interval(0.5, 0.2, 0.1)
        data = season(history=[], baseline=None, models=[{"id": "m", "predictions": [rec]}])
        data["actual"] = [{"week": 201950, "data": 2.0}]
        scales = ScaleContext(500, 100)
        # onset/peak week bounds reach 52 but are x values
        self.assertEqual(scales.set_y_domain(Dataset.model_validate(data), 0), (0.0, 2.0))

    def test_all_sentinel_falls_back_to_unit_domain(self):
        data = season(models=[], history=[], baseline=None)
        data["actual"] = [{"week": 201950, "data": -1}, {"week": 201951, "data": -1}]
        scales = ScaleContext(500, 100)
        self.assertEqual(scales.set_y_domain(Dataset.model_validate(data), 0), (0.0, 1.0))

    def test_non_finite_value_is_not_plottable(self):
        scales = ScaleContext(500, 100)
        with self.assertRaises(ScaleResolutionError):
            scales.value_to_y(float("inf"))


class TestDates(unittest.TestCase):
    def test_global_week_is_an_iso_week(self):
        self.assertEqual(ScaleContext.week_to_date(202015), date(2020, 4, 6))
        self.assertEqual(ScaleContext.week_to_date(202001), date(2019, 12, 30))

    def test_week_53_of_a_52_week_year_fails(self):
        with self.assertRaises(ScaleResolutionError):
            ScaleContext.week_to_date(201953)

    def test_date_domain_and_month_ticks(self):
        scales = ScaleContext(500, 100)
        data = Dataset.model_validate(season())
        extent = scales.set_date_domain(data.actual)
        self.assertEqual(extent, (date(2019, 12, 9), date(2020, 1, 13)))
        self.assertEqual(scales.date_to_x(date(2019, 12, 9)), 0.0)
        self.assertEqual(scales.date_to_x(date(2020, 1, 13)), 500.0)
        ticks = scales.date_ticks()
        self.assertEqual([t["label"] for t in ticks], ["Jan 20"])

    def test_date_to_x_needs_a_domain(self):
        with self.assertRaises(ScaleResolutionError):
            ScaleContext(500, 100).date_to_x(date(2020, 1, 1))


if __name__ == "__main__":
    unittest.main()
