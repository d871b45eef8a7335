"""Tests for phase demodulation and bit slicing."""

import numpy as np
import pytest

from sdr2mqtt import demod


def test_compute_phases_quadrants():
    phases = demod.compute_phases(
        np.array([1.0, 0.0, -1.0, 0.0]), np.array([0.0, 1.0, 0.0, -1.0])
    )
    np.testing.assert_allclose(phases, [0.0, np.pi / 2, np.pi, -np.pi / 2])


def test_phase_diff_first_element_zero():
    diffs = demod.compute_phase_diffs(np.array([1.0, 1.5, 1.25]))
    np.testing.assert_allclose(diffs, [0.0, 0.5, -0.25])


def test_phase_diff_wraps_once():
    """Crossing the +/-pi boundary is corrected by a single 2*pi step."""
    diffs = demod.compute_phase_diffs(np.array([3.0, -3.0, 3.0]))
    np.testing.assert_allclose(diffs, [0.0, 2 * np.pi - 6.0, 6.0 - 2 * np.pi])


def test_phase_diff_range(backend_device, xp):
    """Wrapped differences always lie in (-pi, pi]."""
    rng = np.random.default_rng(11)
    phases = xp.asarray(rng.uniform(-np.pi, np.pi, 10000))
    phases[:4] = xp.asarray([np.pi, -np.pi, np.pi, 0.0])

    diffs = demod.compute_phase_diffs(phases)

    assert float(xp.max(diffs)) <= np.pi
    assert float(xp.min(diffs)) > -np.pi
    assert float(diffs[0]) == 0.0


def test_phase_diff_short_input():
    assert demod.compute_phase_diffs(np.array([])).size == 0
    np.testing.assert_array_equal(demod.compute_phase_diffs(np.array([2.0])), [0.0])


class TestSliceBits:
    def test_sign_decides_bit(self):
        diffs = np.array([0.1, 0.1, -0.1, -0.1, 0.2, -0.1])
        assert demod.slice_bits(diffs, (0, 5), 2) == "101"

    def test_zero_sum_is_zero_bit(self):
        diffs = np.array([0.5, -0.5, 0.0, 0.0])
        assert demod.slice_bits(diffs, (0, 3), 2) == "00"

    def test_remainder_is_discarded(self):
        """Eleven samples at four samples per bit give two symbols."""
        diffs = np.concatenate([np.full(4, 0.1), np.full(4, -0.1), np.full(3, 1.0)])
        assert demod.slice_bits(diffs, (0, 10), 4) == "10"

    def test_interval_offset(self):
        diffs = np.array([-1.0, -1.0, 0.3, 0.3, -0.3, -0.3, 5.0])
        assert demod.slice_bits(diffs, (2, 5), 2) == "10"

    def test_interval_shorter_than_symbol(self):
        assert demod.slice_bits(np.ones(10), (0, 2), 4) == ""

    def test_symbol_count(self):
        rng = np.random.default_rng(5)
        diffs = rng.normal(size=1000)
        for start, end, spb in [(0, 999, 7), (10, 640, 10), (100, 101, 1)]:
            bits = demod.slice_bits(diffs, (start, end), spb)
            assert len(bits) == (end - start + 1) // spb
            assert bits == demod.slice_bits(diffs, (start, end), spb)

    def test_invalid_samples_per_bit(self):
        with pytest.raises(ValueError):
            demod.slice_bits(np.ones(4), (0, 3), 0)


class TestUniqueSequences:
    def test_dedup_and_length_filter(self):
        seqs = ["1010", "1111", "1010", "101", "10101", "0000"]
        assert demod.unique_sequences(seqs, 4) == ["1010", "1111", "0000"]

    def test_nothing_matches(self):
        assert demod.unique_sequences(["1", "11"], 64) == []


def test_demodulate_recovers_bits():
    """A burst rotating forward for '1' and backward for '0' is sliced back."""
    bits = "1101001110"
    spb = 6
    steps = np.repeat([0.4 if b == "1" else -0.4 for b in bits], spb)
    steps[0] = 0.0
    phase = np.cumsum(steps)
    i, q = 100 * np.cos(phase), 100 * np.sin(phase)

    sequences = demod.demodulate(i, q, [(0, len(steps) - 1)], spb)

    assert sequences == [bits]
