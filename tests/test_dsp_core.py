"""
Unit tests for the DSP core: radix-2 FFT and atom windows.

Reference implementations come from scipy (scipy.fft, scipy.signal.windows).

Run:
    pytest tests/test_dsp_core.py -v
"""

import numpy as np
import pytest
from scipy.fft import fft as scipy_fft
from scipy.signal.windows import blackmanharris

from cqkernel.dsp_core import (
    WindowKind,
    fft,
    fft_batch,
    is_power_of_two,
    make_window,
    next_power_of_two,
    window_kind_from_name,
)
from cqkernel.exceptions import InvalidWindowLengthError, UnsupportedWindowError


class TestFFT:
    """Test suite for the radix-2 FFT."""

    def test_fft_random_complex(self):
        """Complex random input matches scipy."""
        rng = np.random.default_rng(0)
        x = rng.standard_normal(1024) + 1j * rng.standard_normal(1024)
        error = np.abs(fft(x) - scipy_fft(x))

        print(f"\n[FFT Random Complex]")
        print(f"  Max error: {error.max():.2e}")

        assert error.max() < 1e-10

    def test_fft_power_of_2(self):
        """All power-of-2 sizes, including the trivial ones."""
        rng = np.random.default_rng(1)
        for N in [1, 2, 4, 64, 256, 4096, 16384]:
            x = rng.standard_normal(N) + 1j * rng.standard_normal(N)
            error = np.abs(fft(x) - scipy_fft(x))
            assert error.max() < 1e-9 * max(N, 1), f"FFT failed for N={N}"

    def test_fft_no_scaling(self):
        """An impulse at 0 transforms to all ones (no 1/N)."""
        x = np.zeros(32, dtype=np.complex128)
        x[0] = 1.0
        np.testing.assert_allclose(fft(x), np.ones(32), atol=1e-15)

    def test_fft_rejects_non_power_of_2(self):
        for N in [3, 100, 1000]:
            with pytest.raises(ValueError):
                fft(np.zeros(N))

    def test_fft_rejects_2d(self):
        with pytest.raises(ValueError):
            fft(np.zeros((4, 4)))

    def test_fft_batch_matches_rows(self):
        """Batch transform returns each row in place."""
        rng = np.random.default_rng(2)
        frames = rng.standard_normal((7, 512)) + 1j * rng.standard_normal((7, 512))
        batch = fft_batch(frames)

        assert batch.shape == frames.shape
        for i in range(frames.shape[0]):
            np.testing.assert_array_equal(batch[i], fft(frames[i]))

    def test_fft_batch_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            fft_batch(np.zeros(16))
        with pytest.raises(ValueError):
            fft_batch(np.zeros((2, 12)))

    def test_power_of_two_helpers(self):
        assert [is_power_of_two(n) for n in (0, 1, 2, 3, 4, 6, 8)] == \
            [False, True, True, False, True, False, True]
        assert next_power_of_two(0) == 1
        assert next_power_of_two(1) == 1
        assert next_power_of_two(5) == 8
        assert next_power_of_two(8) == 8
        assert next_power_of_two(13886) == 16384


class TestWindow:
    """Test suite for the square-root Blackman-Harris atom window."""

    @pytest.mark.parametrize('N', [3, 4, 5, 16, 101, 1000, 7143])
    def test_symmetry(self, N):
        """win[i] == win[N-2-i]; the appended last sample equals win[0]."""
        win = make_window(WindowKind.SQRT_BLACKMAN_HARRIS, N)

        assert len(win) == N
        assert win[-1] == win[0]
        np.testing.assert_allclose(win[:N - 1], win[:N - 1][::-1], rtol=1e-10, atol=1e-18)

    @pytest.mark.parametrize('N', [3, 4, 5, 16, 101, 1000])
    def test_matches_scipy(self, N):
        """Symmetric part is sqrt(blackmanharris(N-1)) / N."""
        win = make_window('sqrt_blackman_harris', N)
        expected = np.sqrt(blackmanharris(N - 1, sym=True)) / N
        error = np.abs(win[:N - 1] - expected)

        print(f"\n[Window N={N}] Max error vs scipy: {error.max():.2e}")

        assert error.max() < 1e-14

    def test_peak_and_edges(self):
        """Peak sits in the middle of the symmetric part, edges are small."""
        N = 102
        win = make_window(WindowKind.SQRT_BLACKMAN_HARRIS, N)
        assert np.argmax(win) == (N - 2) // 2
        np.testing.assert_allclose(win[0], np.sqrt(0.35875 - 0.48829 + 0.14128 - 0.01168) / N)
        assert np.all(win > 0)

    def test_short_windows(self):
        """Lengths 1 and 2 are defined without dividing by zero."""
        w1 = make_window(WindowKind.SQRT_BLACKMAN_HARRIS, 1)
        w2 = make_window(WindowKind.SQRT_BLACKMAN_HARRIS, 2)
        edge = np.sqrt(0.35875 - 0.48829 + 0.14128 - 0.01168)

        assert len(w1) == 1 and len(w2) == 2
        np.testing.assert_allclose(w1, [edge])
        np.testing.assert_allclose(w2, [edge / 2, edge / 2])
        assert np.all(np.isfinite(w1)) and np.all(np.isfinite(w2))

    @pytest.mark.parametrize('N', [0, -1, -100])
    def test_invalid_length(self, N):
        with pytest.raises(InvalidWindowLengthError):
            make_window(WindowKind.SQRT_BLACKMAN_HARRIS, N)

    @pytest.mark.parametrize('kind', [k for k in WindowKind if k is not WindowKind.SQRT_BLACKMAN_HARRIS])
    def test_reserved_kinds_rejected(self, kind):
        with pytest.raises(UnsupportedWindowError) as exc:
            make_window(kind, 64)
        assert exc.value.kind == 'unsupported_window'

    def test_kind_from_name(self):
        for name in ['sqrt_blackman_harris', 'SqrtBlackmanHarris', 'sqrt-blackman-harris',
                     WindowKind.SQRT_BLACKMAN_HARRIS]:
            assert window_kind_from_name(name) is WindowKind.SQRT_BLACKMAN_HARRIS
        assert window_kind_from_name('Hann') is WindowKind.HANN
        assert WindowKind.SQRT_HANN.is_sqrt and not WindowKind.BLACKMAN.is_sqrt

        with pytest.raises(UnsupportedWindowError):
            window_kind_from_name('kaiser')
