"""
Unit tests for the forward and inverse projections.

The dense matrix returned by CQKernel.to_dense() is the reference: forward is
to_dense() @ spectrum, inverse is to_dense().conj().T @ coefficients.

Run:
    pytest tests/test_projection.py -v
"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from cqkernel.cq import (
    SparseKernel,
    check_all_bins,
    impulse_round_trip,
    project_forward,
    project_inverse,
)
from cqkernel.cq.diagnostics import expected_column
from cqkernel.exceptions import EmptyKernelError


def _random_spectrum(n, seed=0):
    rng = np.random.default_rng(seed)
    return rng.standard_normal(n) + 1j * rng.standard_normal(n)


def _empty_kernel(fft_size=16):
    return SparseKernel(
        origins=np.zeros(0, dtype=np.int64),
        offsets=np.zeros(0, dtype=np.int64),
        lengths=np.zeros(0, dtype=np.int64),
        data=np.zeros(0, dtype=np.complex128),
        fft_size=fft_size,
    )


class TestForward:
    """Spectrum -> constant-Q coefficients."""

    def test_zero_spectrum(self, concrete_kernel):
        out = concrete_kernel.forward(np.zeros(concrete_kernel.fft_size, dtype=np.complex128))
        assert out.shape == (12 * concrete_kernel.atoms_per_frame,)
        assert out.dtype == np.complex128
        assert np.all(out == 0)

    def test_matches_dense(self, small_kernel):
        x = _random_spectrum(small_kernel.fft_size)
        expected = small_kernel.to_dense() @ x
        np.testing.assert_allclose(small_kernel.forward(x), expected, rtol=1e-10, atol=1e-12)

    def test_matches_dense_concrete(self, concrete_kernel):
        x = _random_spectrum(concrete_kernel.fft_size, seed=1)
        expected = concrete_kernel.to_dense() @ x
        error = np.abs(concrete_kernel.forward(x) - expected)

        print(f"\n[Forward vs Dense] Max error: {error.max():.2e}")

        assert error.max() < 1e-9

    def test_longer_spectrum_ignores_tail(self, small_kernel):
        """Only the first fft_size values are read."""
        x = _random_spectrum(small_kernel.fft_size, seed=2)
        padded = np.concatenate([x, 1e6 * np.ones(64)])
        np.testing.assert_array_equal(small_kernel.forward(padded), small_kernel.forward(x))

    def test_real_input_accepted(self, small_kernel):
        x = np.random.default_rng(3).standard_normal(small_kernel.fft_size)
        np.testing.assert_allclose(small_kernel.forward(x), small_kernel.forward(x + 0j))

    def test_short_spectrum_rejected(self, small_kernel):
        with pytest.raises(ValueError):
            small_kernel.forward(np.zeros(small_kernel.fft_size - 1))

    def test_2d_rejected(self, small_kernel):
        with pytest.raises(ValueError):
            small_kernel.forward(np.zeros((2, small_kernel.fft_size)))

    def test_forward_frames(self, small_kernel):
        rng = np.random.default_rng(4)
        frames = rng.standard_normal((5, small_kernel.fft_size)) + 0j
        out = small_kernel.forward_frames(frames)

        assert out.shape == (5, small_kernel.row_count)
        for f in range(5):
            np.testing.assert_array_equal(out[f], small_kernel.forward(frames[f]))

    def test_forward_frames_rejects_bad_shape(self, small_kernel):
        with pytest.raises(ValueError):
            small_kernel.forward_frames(np.zeros(small_kernel.fft_size))
        with pytest.raises(ValueError):
            small_kernel.forward_frames(np.zeros((3, small_kernel.fft_size // 2)))

    def test_linearity(self, small_kernel):
        a = _random_spectrum(small_kernel.fft_size, seed=5)
        b = _random_spectrum(small_kernel.fft_size, seed=6)
        lhs = small_kernel.forward(2.0 * a - 3j * b)
        rhs = 2.0 * small_kernel.forward(a) - 3j * small_kernel.forward(b)
        np.testing.assert_allclose(lhs, rhs, rtol=1e-10, atol=1e-12)


class TestInverse:
    """Constant-Q coefficients -> spectrum."""

    def test_matches_dense(self, small_kernel):
        c = _random_spectrum(small_kernel.row_count, seed=7)
        expected = small_kernel.to_dense().conj().T @ c
        out = small_kernel.inverse(c)

        assert out.shape == (small_kernel.fft_size,)
        np.testing.assert_allclose(out, expected, rtol=1e-10, atol=1e-12)

    def test_adjoint_of_forward(self, concrete_kernel):
        """<forward(x), c> == <x, inverse(c)>"""
        x = _random_spectrum(concrete_kernel.fft_size, seed=8)
        c = _random_spectrum(concrete_kernel.row_count, seed=9)
        lhs = np.vdot(c, concrete_kernel.forward(x))
        rhs = np.vdot(concrete_kernel.inverse(c), x)
        assert lhs == pytest.approx(rhs, rel=1e-9)

    def test_zero_coefficients(self, concrete_kernel):
        out = concrete_kernel.inverse(np.zeros(concrete_kernel.row_count))
        assert np.all(out == 0)

    def test_wrong_length_rejected(self, small_kernel):
        with pytest.raises(ValueError):
            small_kernel.inverse(np.zeros(small_kernel.row_count + 1))


class TestRoundTrip:
    """Impulse forward then inverse."""

    @pytest.mark.parametrize('k', [1, 4, 7, 12])
    def test_impulse_concentrated(self, concrete_kernel, k):
        result = impulse_round_trip(concrete_kernel, k)

        print(f"\n[Round Trip bin {k}] expected column {result['expected_column']}, "
              f"peak {result['peak_column']}, concentration {result['concentration']:.4f} "
              f"(+/- {result['half_width']} bins)")

        assert abs(result['peak_column'] - result['expected_column']) <= 3
        assert result['concentration'] > 0.9

    def test_expected_columns_ascend(self, concrete_kernel):
        cols = [expected_column(concrete_kernel, k) for k in range(1, 13)]
        assert cols == sorted(cols)
        assert cols[0] == round(55.0 * concrete_kernel.fft_size / 44100)

    def test_check_all_bins(self, small_kernel):
        checks = check_all_bins(small_kernel)
        assert [c['bin'] for c in checks] == [1, 2, 3, 4]
        for c in checks:
            assert 0.0 < c['concentration'] <= 1.0 + 1e-12


class TestEmptyKernel:
    """Projections against a kernel without rows."""

    def test_forward_raises(self):
        with pytest.raises(EmptyKernelError) as exc:
            project_forward(_empty_kernel(), np.zeros(16))
        assert exc.value.kind == 'empty_kernel'
        assert isinstance(exc.value, RuntimeError)

    def test_inverse_raises(self):
        with pytest.raises(EmptyKernelError):
            project_inverse(_empty_kernel(), np.zeros(0))

    def test_empty_rows_project_to_zero(self):
        """Rows without coefficients are valid and yield zero."""
        sk = SparseKernel(
            origins=np.array([0, 3], dtype=np.int64),
            offsets=np.array([0, 0], dtype=np.int64),
            lengths=np.array([0, 2], dtype=np.int64),
            data=np.array([1.0, 1j], dtype=np.complex128),
            fft_size=8,
        )
        x = np.arange(8, dtype=np.complex128)
        np.testing.assert_allclose(project_forward(sk, x), [0, 3 + 4j])
        np.testing.assert_allclose(project_inverse(sk, np.array([5.0, 2.0])),
                                   [0, 0, 0, 2, -2j, 0, 0, 0])


class TestConcurrency:
    """A built kernel is shared read-only between threads."""

    def test_parallel_forward_inverse(self, concrete_kernel):
        spectra = [_random_spectrum(concrete_kernel.fft_size, seed=s) for s in range(8)]
        expected = [concrete_kernel.forward(x) for x in spectra]

        def work(x):
            c = concrete_kernel.forward(x)
            return c, concrete_kernel.inverse(c)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(work, spectra))

        for (c, rv), ref in zip(results, expected):
            np.testing.assert_array_equal(c, ref)
            np.testing.assert_array_equal(rv, concrete_kernel.inverse(ref))
