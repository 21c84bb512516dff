"""
Window functions for constant-Q kernel atoms.

Only the square-root Blackman-Harris window is implemented. The other members
of WindowKind are reserved names: asking for them fails at construction time
instead of silently substituting a different window.
"""

from enum import Enum

import numpy as np

from ..exceptions import InvalidWindowLengthError, UnsupportedWindowError

# 4-term Blackman-Harris coefficients
_BH_COEFFS = (0.35875, 0.48829, 0.14128, 0.01168)


class WindowKind(Enum):
    SQRT_BLACKMAN_HARRIS = 'sqrt_blackman_harris'
    SQRT_BLACKMAN = 'sqrt_blackman'
    SQRT_HANN = 'sqrt_hann'
    BLACKMAN_HARRIS = 'blackman_harris'
    BLACKMAN = 'blackman'
    HANN = 'hann'

    @property
    def is_sqrt(self) -> bool:
        return self.value.startswith('sqrt_')


SUPPORTED_WINDOWS = frozenset({WindowKind.SQRT_BLACKMAN_HARRIS})


def window_kind_from_name(name) -> WindowKind:
    """
    Parse a window name such as 'sqrt_blackman_harris' or 'SqrtBlackmanHarris'.

    Accepts WindowKind members unchanged. Matching ignores case, '-' and '_'.
    """
    if isinstance(name, WindowKind):
        return name
    key = str(name).replace('-', '').replace('_', '').lower()
    for kind in WindowKind:
        if kind.value.replace('_', '') == key:
            return kind
    raise UnsupportedWindowError(f"Unknown window type: {name}")


def _blackman_harris(length: int) -> np.ndarray:
    """
    Blackman-Harris over length-1 symmetric samples plus a copy of sample 0.

    The symmetric part uses denominator length-2. A 1-sample window is the
    single value at phase 0.
    """
    m = max(length - 1, 1)
    denom = length - 2
    i = np.arange(m, dtype=np.float64)
    phase = 2.0 * np.pi * i / denom if denom > 0 else np.zeros(m)

    a0, a1, a2, a3 = _BH_COEFFS
    win = (a0
           - a1 * np.cos(phase)
           + a2 * np.cos(2.0 * phase)
           - a3 * np.cos(3.0 * phase))

    if length > 1:
        win = np.append(win, win[0])
    return win


def make_window(kind, length: int) -> np.ndarray:
    """
    Generate the normalized window for one kernel atom.

    Parameters
    ----------
    kind : WindowKind or str
        Window family. Only SQRT_BLACKMAN_HARRIS is accepted.
    length : int
        Number of samples N (> 0)

    Returns
    -------
    np.ndarray
        Real window of length N. The first N-1 samples are symmetric
        (win[i] == win[N-2-i]); the last sample repeats win[0]. Values are
        divided by N, after an element-wise square root for the sqrt family.
    """
    kind = window_kind_from_name(kind)
    length = int(length)
    if length <= 0:
        raise InvalidWindowLengthError(f"Window length must be positive, got {length}")
    if kind not in SUPPORTED_WINDOWS:
        raise UnsupportedWindowError(
            f"Only {WindowKind.SQRT_BLACKMAN_HARRIS.value} is supported, got {kind.value}"
        )

    win = _blackman_harris(length)

    if kind.is_sqrt:
        return np.sqrt(win) / length
    return win / length
