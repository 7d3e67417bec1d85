"""Tests for TrainingTables - on-line training of the cost function."""

import unittest

import numpy as np
from SegmentEditorLiveWireLib import Point, TrainingTables, build_fields
from SegmentEditorLiveWireLib.TrainingTables import (
    SMOOTHING_EDGE_KERNEL,
    SMOOTHING_KERNEL,
    SMOOTHING_NEAR_EDGE_KERNEL,
    default_table,
    smooth_table,
    training_index,
)
from test_fixtures.synthetic_image import create_random_image, create_uniform_image


def _points(count, width=16):
    return [Point(i % width, i // width) for i in range(count)]


class TestSmoothing(unittest.TestCase):
    """Tests for the five-tap smoothing kernel."""

    def test_kernels_sum_to_one(self):
        for kernel in (SMOOTHING_KERNEL, SMOOTHING_EDGE_KERNEL, SMOOTHING_NEAR_EDGE_KERNEL):
            self.assertAlmostEqual(sum(kernel), 1.0)

    def test_constant_table_is_unchanged(self):
        """Smoothing preserves a constant table, ends included."""
        table = np.full(32, 0.7)
        np.testing.assert_allclose(smooth_table(table), 0.7)

    def test_spike_in_middle(self):
        buffer = np.zeros(9)
        buffer[4] = 1.0
        out = smooth_table(buffer)
        np.testing.assert_allclose(out[2:7], SMOOTHING_KERNEL)
        self.assertEqual(out[0], 0.0)
        self.assertEqual(out[8], 0.0)

    def test_truncated_ends(self):
        """The first and last entries lean on their inner neighbours."""
        buffer = np.arange(8, dtype=np.float64)
        out = smooth_table(buffer)

        self.assertAlmostEqual(out[0], 0.4 * 0 + 0.5 * 1 + 0.1 * 2)
        self.assertAlmostEqual(out[1], 0.25 * 0 + 0.4 * 1 + 0.25 * 2 + 0.1 * 3)
        self.assertAlmostEqual(out[6], 0.25 * 7 + 0.4 * 6 + 0.25 * 5 + 0.1 * 4)
        self.assertAlmostEqual(out[7], 0.4 * 7 + 0.5 * 6 + 0.1 * 5)


class TestTrainingIndex(unittest.TestCase):
    def test_quantization(self):
        self.assertEqual(training_index(256, 0.0), 0)
        self.assertEqual(training_index(256, 1.0), 255)
        self.assertEqual(training_index(256, 0.5), 128)
        self.assertEqual(training_index(1024, 0.25), 256)

    def test_clamped(self):
        self.assertEqual(training_index(256, -0.2), 0)
        self.assertEqual(training_index(256, 1.7), 255)


class TestTrainingTables(unittest.TestCase):
    """Tests for building the trained lookup tables."""

    def setUp(self):
        self.flat_fields = build_fields(create_uniform_image(size=(16, 16), intensity=100), 16, 16)
        self.random_fields = build_fields(create_random_image(size=(16, 16)), 16, 16)

    def test_defaults(self):
        tables = TrainingTables()
        self.assertFalse(tables.trained)
        self.assertEqual(len(tables.edge), 256)
        self.assertEqual(len(tables.gradient), 1024)
        self.assertEqual(len(tables.inside), 256)
        self.assertEqual(len(tables.outside), 256)
        np.testing.assert_allclose(tables.edge, default_table(256))

    def test_single_value_has_minimum_at_its_bucket(self):
        """Training on one repeated value makes that value the cheapest."""
        tables = TrainingTables()
        self.assertTrue(tables.train(_points(32), self.flat_fields))
        self.assertTrue(tables.trained)

        grey_idx = training_index(256, 100 / 255)
        self.assertEqual(int(np.argmin(tables.edge)), grey_idx)
        self.assertEqual(int(np.argmin(tables.inside)), grey_idx)
        self.assertEqual(int(np.argmin(tables.outside)), grey_idx)
        # Flat image: every gradient cost is 1, the last bucket
        self.assertEqual(int(np.argmin(tables.gradient)), 1023)

        self.assertAlmostEqual(tables.edge[grey_idx], 0.6)
        self.assertAlmostEqual(tables.edge[grey_idx + 1], 0.75)
        self.assertAlmostEqual(tables.edge[grey_idx + 3], 1.0)

    def test_too_few_points_is_noop(self):
        """Fewer than 8 points leaves the tables and flag untouched."""
        tables = TrainingTables()
        before = tables.edge.copy()

        self.assertFalse(tables.train(_points(7), self.random_fields))
        self.assertFalse(tables.trained)
        np.testing.assert_array_equal(tables.edge, before)

    def test_too_few_points_keeps_previous_training(self):
        tables = TrainingTables()
        tables.train(_points(32), self.random_fields)
        trained_edge = tables.edge.copy()

        self.assertFalse(tables.train(_points(3), self.flat_fields))
        self.assertTrue(tables.trained)
        np.testing.assert_array_equal(tables.edge, trained_edge)

    def test_short_path_blends_gradient_with_ramp(self):
        """Between 8 and 32 points the gradient table is capped by a ramp."""
        tables = TrainingTables()
        tables.train(_points(16), self.random_fields)

        have, need = 16, 32
        ramp = 1.0 - np.arange(1024) * (need - have) / (need * 1024)
        self.assertTrue(np.all(tables.gradient <= ramp + 1e-12))
        # The last buckets are pulled down towards 0.5
        self.assertLess(tables.gradient[-1], 0.51)

    def test_short_path_leaves_other_tables_alone(self):
        short = TrainingTables()
        short.train(_points(16), self.random_fields)

        # Same points but no blending threshold
        long_enough = TrainingTables(gradient_points_needed=16)
        long_enough.train(_points(16), self.random_fields)

        np.testing.assert_array_equal(short.edge, long_enough.edge)
        np.testing.assert_array_equal(short.inside, long_enough.inside)
        self.assertFalse(np.array_equal(short.gradient, long_enough.gradient))

    def test_tables_are_rebuilt_not_merged(self):
        """A second training call discards the first histogram."""
        tables = TrainingTables()
        tables.train(_points(32), self.random_fields)
        tables.train(_points(32), self.flat_fields)

        fresh = TrainingTables()
        fresh.train(_points(32), self.flat_fields)
        np.testing.assert_array_equal(tables.edge, fresh.edge)

    def test_trained_values_in_unit_range(self):
        tables = TrainingTables()
        tables.train(_points(20), self.random_fields)
        for table in (tables.edge, tables.gradient, tables.inside, tables.outside):
            self.assertGreaterEqual(table.min(), 0.0)
            self.assertLessEqual(table.max(), 1.0)

    def test_reset(self):
        tables = TrainingTables()
        tables.train(_points(32), self.random_fields)
        tables.reset()

        self.assertFalse(tables.trained)
        self.assertEqual(tables.training_points, [])
        np.testing.assert_allclose(tables.gradient, default_table(1024))

    def test_custom_granularity(self):
        tables = TrainingTables(edge_granularity=64, gradient_granularity=128)
        tables.train(_points(32), self.flat_fields)
        self.assertEqual(len(tables.edge), 64)
        self.assertEqual(len(tables.gradient), 128)
        self.assertEqual(int(np.argmin(tables.edge)), training_index(64, 100 / 255))


if __name__ == "__main__":
    unittest.main()
