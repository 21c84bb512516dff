"""
Shared fixtures for the cqkernel test suite.

Run:
    pytest tests -v
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
os.environ.setdefault('MPLBACKEND', 'Agg')

import pytest

from cqkernel.cq import CQKernel, KernelParams

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture(scope='session')
def concrete_params():
    """44.1 kHz, top octave from 55 Hz, 12 bins per octave."""
    return KernelParams(
        sample_rate=44100,
        min_frequency=55.0,
        octaves=1,
        bins_per_octave=12,
        q=1.0,
        atom_hop_factor=0.25,
        threshold=0.0005,
        window='sqrt_blackman_harris',
    )


@pytest.fixture(scope='session')
def concrete_kernel(concrete_params):
    return CQKernel(concrete_params)


@pytest.fixture(scope='session')
def small_params():
    """Small kernel: fft_size 128, 4 bins x 3 atoms."""
    return KernelParams(sample_rate=8000, min_frequency=500.0, bins_per_octave=4)


@pytest.fixture(scope='session')
def small_kernel(small_params):
    return CQKernel(small_params)


@pytest.fixture(scope='session')
def default_config_path():
    return os.path.join(PROJECT_ROOT, 'configs', 'default.yaml')
