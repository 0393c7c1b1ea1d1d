from __future__ import annotations

import unittest

from timechart.engine import ChartEngine

from chart_data import horizon_value, season

WIDTH = 500
HEIGHT = 100


def _engine(data=None, **kwargs) -> ChartEngine:
    engine = ChartEngine(width=WIDTH, height=HEIGHT, **kwargs)
    engine.plot(data if data is not None else season())
    return engine


def _model(engine: ChartEngine, model_id: str):
    return next(p for p in engine.predictions if p.id == model_id)


class TestTrajectory(unittest.TestCase):
    def test_anchor_plus_horizons_clipped_at_season_end(self):
        engine = _engine()
        engine.update(2)
        alpha = _model(engine, "alpha")
        g = alpha.prediction_group

        # Issued at week 52: weeks 1, 2, 3 remain in the season, fourWk is cut
        circles = g.select_all("point-prediction")
        self.assertEqual(len(circles), 3)
        self.assertEqual(
            [round(c.attrs["cx"], 6) for c in circles], [300.0, 400.0, 500.0]
        )
        line = g.select("line-prediction").attrs["points"]
        self.assertEqual(len(line), 4)
        # Anchored on the actual value of the issuing week
        self.assertAlmostEqual(line[0][0], 200.0)
        self.assertAlmostEqual(line[0][1], engine.scales.value_to_y(2.0))

    def test_query_reads_horizon_values_per_index(self):
        engine = _engine()
        engine.update(2)
        alpha = _model(engine, "alpha")
        self.assertIsNone(alpha.query(2))
        for k, idx in enumerate((3, 4, 5), start=1):
            self.assertEqual(alpha.query(idx), horizon_value(2.0, k))
        self.assertIsNone(alpha.query(1))

    def test_cache_holds_only_the_current_trajectory(self):
        engine = _engine()
        engine.update(2)
        engine.update(0)
        alpha = _model(engine, "alpha")
        self.assertEqual(alpha.query(4), horizon_value(1.0, 4))
        self.assertIsNone(alpha.query(5))

    def test_band_spans_low_to_high(self):
        engine = _engine()
        engine.update(0)
        alpha = _model(engine, "alpha")
        area = alpha.prediction_group.select("area-prediction").attrs["points"]
        self.assertEqual(len(area), 5)
        x, y_high, y_low = area[1]
        point = horizon_value(1.0, 1)
        self.assertAlmostEqual(y_high, engine.scales.value_to_y(point + 1.0))
        self.assertAlmostEqual(y_low, engine.scales.value_to_y(point - 1.0))
        # Anchor has no uncertainty
        self.assertEqual(area[0][1], area[0][2])

    def test_sentinel_anchor_is_omitted(self):
        data = season()
        data["actual"][2]["data"] = -1
        engine = _engine(data)
        engine.update(2)
        alpha = _model(engine, "alpha")
        line = alpha.prediction_group.select("line-prediction").attrs["points"]
        self.assertEqual(len(line), 3)
        self.assertEqual(alpha.query(3), horizon_value(2.0, 1))


class TestAbsence(unittest.TestCase):
    def test_no_record_hides_the_model_only(self):
        engine = _engine()
        engine.update(4)
        beta = _model(engine, "beta")
        alpha = _model(engine, "alpha")

        self.assertTrue(beta.hidden)
        self.assertFalse(any(g.visible for g in beta.groups))
        for idx in range(len(engine.weeks)):
            self.assertIsNone(beta.query(idx))

        self.assertEqual(alpha.query(5), horizon_value(3.0, 1))
        readout = engine.query(5)
        self.assertIn("alpha", readout)
        self.assertNotIn("beta", readout)

    def test_last_week_without_forecasts(self):
        engine = _engine()
        self.assertEqual(engine.week_idx, 5)
        self.assertTrue(all(p.hidden for p in engine.predictions))
        self.assertEqual(engine.query(5), {"actual": -1})

    def test_forecast_comes_back_on_its_week(self):
        engine = _engine()
        engine.update(2)
        beta = _model(engine, "beta")
        self.assertFalse(beta.hidden)
        self.assertTrue(all(g.visible for g in beta.groups))
        self.assertEqual(beta.query(3), horizon_value(2.0, 1))


class TestConfidenceSelector(unittest.TestCase):
    def _positions(self, engine: ChartEngine):
        alpha = _model(engine, "alpha")
        return {
            "onset": (
                alpha.onset_group.select("onset-range").attrs["x1"],
                alpha.onset_group.select("onset-range").attrs["x2"],
            ),
            "peak_x": (
                alpha.peak_group.select("peak-range-x").attrs["x1"],
                alpha.peak_group.select("peak-range-x").attrs["x2"],
            ),
            "peak_y": (
                alpha.peak_group.select("peak-range-y").attrs["y1"],
                alpha.peak_group.select("peak-range-y").attrs["y2"],
            ),
            "band": list(alpha.prediction_group.select("area-prediction").attrs["points"]),
        }

    def test_switch_reprojects_every_interval(self):
        engine = _engine()
        engine.update(2)
        wide = self._positions(engine)

        engine.set_confidence(1)
        narrow = self._positions(engine)
        y = engine.scales.value_to_y

        # onset 51 with [50, 52] then [50.5, 51.5]
        self.assertAlmostEqual(wide["onset"][0], 0.0)
        self.assertAlmostEqual(wide["onset"][1], 200.0)
        self.assertAlmostEqual(narrow["onset"][0], 50.0)
        self.assertAlmostEqual(narrow["onset"][1], 150.0)
        # peak week 2 with [1, 3] then [1.5, 2.5]
        self.assertAlmostEqual(narrow["peak_x"][0], 350.0)
        self.assertAlmostEqual(narrow["peak_x"][1], 450.0)
        self.assertAlmostEqual(narrow["peak_y"][0], y(2.5))
        self.assertAlmostEqual(narrow["peak_y"][1], y(3.5))
        self.assertNotEqual(wide["peak_y"], narrow["peak_y"])
        # band narrows everywhere but at the anchor
        for (xw, hw, lw), (xn, hn, ln) in zip(wide["band"][1:], narrow["band"][1:]):
            self.assertEqual(xw, xn)
            self.assertLess(hw, hn)
            self.assertGreater(lw, ln)

    def test_switch_back_restores_positions(self):
        engine = _engine()
        engine.update(2)
        before = self._positions(engine)
        engine.set_confidence(1)
        engine.set_confidence(0)
        self.assertEqual(self._positions(engine), before)

    def test_unknown_selector_is_rejected(self):
        engine = _engine()
        with self.assertRaises(ValueError):
            engine.set_confidence(2)
        self.assertEqual(engine.cid, 0)


class TestLegendToggle(unittest.TestCase):
    def test_hidden_model_answers_nothing(self):
        engine = _engine()
        engine.update(2)
        alpha = _model(engine, "alpha")

        engine.toggle("alpha", True)
        self.assertIsNone(alpha.query(3))
        self.assertFalse(any(g.visible for g in alpha.groups))
        self.assertNotIn("alpha", engine.query(3))

        engine.toggle("alpha", False)
        self.assertEqual(alpha.query(3), horizon_value(2.0, 1))
        self.assertTrue(all(g.visible for g in alpha.groups))

    def test_show_does_not_reveal_a_model_without_data(self):
        engine = _engine()
        engine.update(4)
        engine.toggle("beta", True)
        engine.toggle("beta", False)
        beta = _model(engine, "beta")
        self.assertFalse(any(g.visible for g in beta.groups))

    def test_hidden_at_mount_stays_hidden_across_cursor_moves(self):
        engine = _engine(hidden_models=["alpha"])
        engine.update(2)
        alpha = _model(engine, "alpha")
        self.assertTrue(alpha.legend_hidden)
        self.assertFalse(alpha.prediction_group.visible)
        self.assertIsNone(alpha.query(3))

    def test_unknown_marker_id(self):
        engine = _engine()
        with self.assertRaises(KeyError):
            engine.toggle("gamma", True)


class TestGroups(unittest.TestCase):
    def test_trajectory_is_the_base_group(self):
        engine = _engine()
        alpha = _model(engine, "alpha")
        self.assertIs(alpha.group, alpha.prediction_group)
        self.assertEqual(alpha.group.attrs["id"], "alpha-marker")
        self.assertEqual(
            [g.cls for g in alpha.groups],
            ["onset-group", "peak-group", "prediction-group"],
        )

    def test_clear_releases_every_group(self):
        engine = _engine()
        alpha = _model(engine, "alpha")
        alpha.clear()
        for group in alpha.groups:
            self.assertNotIn(group, engine.canvas.root.children)


class TestOnsetAndPeak(unittest.TestCase):
    def test_marks_follow_the_record(self):
        engine = _engine()
        engine.update(1)
        alpha = _model(engine, "alpha")
        onset = alpha.onset_group.select("onset-mark")
        peak = alpha.peak_group.select("peak-mark")
        self.assertAlmostEqual(onset.attrs["cx"], 100.0)
        self.assertAlmostEqual(peak.attrs["cx"], 400.0)
        self.assertAlmostEqual(peak.attrs["cy"], engine.scales.value_to_y(3.0))
        self.assertEqual(
            alpha.displayed_points,
            {"onset": 51.0, "peak_week": 2.0, "peak_percent": 3.0},
        )

    def test_unmappable_bound_hides_only_its_shape(self):
        data = season()
        data["models"][0]["predictions"][2]["onsetWeek"]["high"] = [40, 51.5]
        engine = _engine(data)
        engine.update(2)
        alpha = _model(engine, "alpha")
        self.assertFalse(alpha.onset_group.select("onset-range").visible)
        self.assertFalse(alpha.onset_group.select("onset-high").visible)
        self.assertTrue(alpha.onset_group.select("onset-low").visible)
        self.assertTrue(alpha.onset_group.select("onset-mark").visible)

        engine.set_confidence(1)
        self.assertTrue(alpha.onset_group.select("onset-range").visible)


if __name__ == "__main__":
    unittest.main()
