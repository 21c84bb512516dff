"""
Kernel parameters and derived kernel geometry.

KernelParams holds the physical inputs of one constant-Q octave kernel.
derive_geometry() turns them into the integer layout of the kernel: atom
spacing, FFT size, atoms per frame, frame hop and the first/last atom
centres. All lengths, spacings and centres are integers; frequencies and
amplitudes are float64.
"""

import math
from dataclasses import dataclass, field
from typing import List

import numpy as np

from ..dsp_core.fft import next_power_of_two
from ..dsp_core.window import WindowKind, window_kind_from_name
from ..exceptions import InvalidGeometryError, InvalidParameterError
from ..utils.logging import get_logger

logger = get_logger(__name__)

# The atom window has a symmetric part of N-1 samples over denominator N-2,
# so shorter atoms have no well-defined window.
MIN_ATOM_LENGTH = 3


def round_half_up(x: float) -> int:
    """floor(x + 0.5)"""
    return int(math.floor(x + 0.5))


@dataclass(frozen=True)
class KernelParams:
    """
    Physical parameters of a one-octave constant-Q kernel.

    Attributes:
        sample_rate: Sampling rate in Hz
        min_frequency: Lowest bin frequency of the *top* octave in Hz (not the
            lowest frequency of the whole CQ range, see for_range())
        octaves: Number of octaves the driver stacks this kernel over
        bins_per_octave: Bins per octave
        q: Q scaling factor (1.0 = bins just touching)
        atom_hop_factor: Atom hop as a fraction of the shortest atom, in (0, 1]
        threshold: Spectral magnitudes below this are dropped from the kernel
        window: Atom window family
    """
    sample_rate: float
    min_frequency: float
    octaves: int = 1
    bins_per_octave: int = 12
    q: float = 1.0
    atom_hop_factor: float = 0.25
    threshold: float = 0.0005
    window: WindowKind = field(default=WindowKind.SQRT_BLACKMAN_HARRIS)

    def __post_init__(self):
        object.__setattr__(self, 'window', window_kind_from_name(self.window))
        object.__setattr__(self, 'sample_rate', float(self.sample_rate))
        object.__setattr__(self, 'min_frequency', float(self.min_frequency))
        object.__setattr__(self, 'q', float(self.q))
        object.__setattr__(self, 'atom_hop_factor', float(self.atom_hop_factor))
        object.__setattr__(self, 'threshold', float(self.threshold))

        for name in ('octaves', 'bins_per_octave'):
            value = getattr(self, name)
            try:
                is_int = not isinstance(value, bool) and int(value) == value
            except (TypeError, ValueError):
                is_int = False
            if not is_int:
                raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
            object.__setattr__(self, name, int(value))

        if not self.sample_rate > 0:
            raise InvalidParameterError(f"sample_rate must be > 0, got {self.sample_rate}")
        if not self.min_frequency > 0:
            raise InvalidParameterError(f"min_frequency must be > 0, got {self.min_frequency}")
        if self.octaves < 1:
            raise InvalidParameterError(f"octaves must be >= 1, got {self.octaves}")
        if self.bins_per_octave < 1:
            raise InvalidParameterError(f"bins_per_octave must be >= 1, got {self.bins_per_octave}")
        if not self.q > 0:
            raise InvalidParameterError(f"q must be > 0, got {self.q}")
        if not 0 < self.atom_hop_factor <= 1:
            raise InvalidParameterError(
                f"atom_hop_factor must be in (0, 1], got {self.atom_hop_factor}"
            )
        if not self.threshold >= 0:
            raise InvalidParameterError(f"threshold must be >= 0, got {self.threshold}")

    @classmethod
    def for_range(
        cls,
        sample_rate: float,
        min_frequency: float,
        octaves: int,
        bins_per_octave: int = 12,
        **kwargs
    ) -> 'KernelParams':
        """
        Build params from the minimum frequency of the whole CQ range.

        The kernel works on the top octave only; its minimum frequency is
        min_frequency * 2^(octaves - 1 + 1/bins_per_octave).
        """
        if not min_frequency > 0:
            raise InvalidParameterError(f"min_frequency must be > 0, got {min_frequency}")
        if bins_per_octave < 1:
            raise InvalidParameterError(f"bins_per_octave must be >= 1, got {bins_per_octave}")
        top = min_frequency * 2.0 ** (octaves - 1.0 + 1.0 / bins_per_octave)
        return cls(
            sample_rate=sample_rate,
            min_frequency=top,
            octaves=octaves,
            bins_per_octave=bins_per_octave,
            **kwargs
        )

    @classmethod
    def from_config(cls, config) -> 'KernelParams':
        """Build params from a config mapping (see cqkernel.config)."""
        from ..config import kernel_params_from_config
        return kernel_params_from_config(config)


@dataclass(frozen=True)
class DerivedGeometry:
    """Integer layout of the kernel, derived from KernelParams."""
    Q: float
    fft_size: int
    fft_hop: int
    atom_spacing: int
    atoms_per_frame: int
    first_centre: int
    last_centre: int
    max_atom_length: int
    min_atom_length: int

    @property
    def half_max_atom_length(self) -> int:
        return (self.max_atom_length + 1) // 2


def effective_q(q: float, bins_per_octave: int) -> float:
    """Q corrected for bin spacing: q / (2^(1/bpo) - 1)."""
    return q / (2.0 ** (1.0 / bins_per_octave) - 1.0)


def bin_frequencies(params: KernelParams) -> np.ndarray:
    """Centre frequency of each kernel bin, ascending."""
    k = np.arange(params.bins_per_octave, dtype=np.float64)
    return params.min_frequency * 2.0 ** (k / params.bins_per_octave)


def atom_length(params: KernelParams, Q: float, k: int) -> int:
    """Atom length in samples for bin k (1-based)."""
    bpo = params.bins_per_octave
    return round_half_up(
        Q * params.sample_rate / (params.min_frequency * 2.0 ** ((k - 1.0) / bpo))
    )


def atom_lengths(params: KernelParams, Q: float) -> List[int]:
    return [atom_length(params, Q, k) for k in range(1, params.bins_per_octave + 1)]


def derive_geometry(params: KernelParams) -> DerivedGeometry:
    """
    Derive the kernel layout from its physical parameters.

    Raises:
        InvalidGeometryError: if the longest or shortest atom is shorter than
            MIN_ATOM_LENGTH samples (this includes rounding to zero)
    """
    bpo = params.bins_per_octave
    Q = effective_q(params.q, bpo)

    max_nk = atom_length(params, Q, 1)
    min_nk = atom_length(params, Q, bpo)

    if min(max_nk, min_nk) < MIN_ATOM_LENGTH:
        raise InvalidGeometryError(
            f"Atom length too short to build a kernel (max={max_nk}, min={min_nk}, "
            f"need >= {MIN_ATOM_LENGTH}); sample_rate={params.sample_rate}, "
            f"min_frequency={params.min_frequency}, Q={Q:.4f}"
        )

    atom_spacing = round_half_up(min_nk * params.atom_hop_factor + 0.5)
    half_max = (max_nk + 1) // 2

    # Smallest multiple of atom_spacing >= half_max
    first_centre = atom_spacing * (-(-half_max // atom_spacing))
    fft_size = next_power_of_two(first_centre + half_max)
    atoms_per_frame = 1 + (fft_size - half_max - first_centre) // atom_spacing

    last_centre = first_centre + (atoms_per_frame - 1) * atom_spacing
    fft_hop = last_centre + atom_spacing - first_centre

    geometry = DerivedGeometry(
        Q=Q,
        fft_size=fft_size,
        fft_hop=fft_hop,
        atom_spacing=atom_spacing,
        atoms_per_frame=atoms_per_frame,
        first_centre=first_centre,
        last_centre=last_centre,
        max_atom_length=max_nk,
        min_atom_length=min_nk,
    )

    logger.debug(
        f"atoms_per_frame = {atoms_per_frame} (q = {params.q}, Q = {Q}, "
        f"atom_hop_factor = {params.atom_hop_factor}, atom_spacing = {atom_spacing}, "
        f"fft_size = {fft_size}, max_nk = {max_nk}, first_centre = {first_centre})"
    )
    logger.debug(f"fft_hop = {fft_hop}")

    return geometry
