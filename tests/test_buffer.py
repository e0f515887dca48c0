import unittest

import numpy as np

from artisign.backend.ml.buffer import FrameBuffer, mean_abs_diff


class TestFrameBuffer(unittest.TestCase):
    def test_evicts_oldest_first(self):
        buf = FrameBuffer(3)
        for v in range(5):
            buf.push(np.full(2, float(v)))

        self.assertEqual(len(buf), 3)
        self.assertTrue(buf.is_full)
        self.assertEqual([f[0] for f in buf.frames()], [2.0, 3.0, 4.0])
        self.assertEqual(buf.last()[0], 4.0)

    def test_clear_and_empty(self):
        buf = FrameBuffer(2)
        self.assertTrue(buf.is_empty)
        with self.assertRaises(IndexError):
            buf.last()

        buf.push(np.zeros(2))
        buf.clear()
        self.assertTrue(buf.is_empty)

    def test_rejects_zero_capacity(self):
        with self.assertRaises(ValueError):
            FrameBuffer(0)


class TestMeanAbsDiff(unittest.TestCase):
    def test_same_length(self):
        a = np.array([0.0, 0.5, 1.0])
        b = np.array([0.1, 0.5, 0.7])
        self.assertAlmostEqual(mean_abs_diff(a, b), (0.1 + 0.0 + 0.3) / 3)

    def test_mismatched_length_uses_overlap(self):
        a = np.array([1.0, 1.0, 9.0, 9.0])
        b = np.array([0.0, 0.0])
        with self.assertLogs("artisign.buffer", level="WARNING"):
            diff = mean_abs_diff(a, b)
        self.assertAlmostEqual(diff, 1.0)


if __name__ == "__main__":
    unittest.main()
