"""
YAML configuration for kernel construction.

A config file has a ``kernel`` section with the KernelParams fields and an
optional ``logging`` section:

    kernel:
      sample_rate: 44100
      min_frequency: 55.0        # lowest bin of the top octave
      # range_min_frequency: 27.5  # alternative: lowest bin of the whole range
      octaves: 1
      bins_per_octave: 12
      q: 1.0
      atom_hop_factor: 0.25
      threshold: 0.0005
      window: sqrt_blackman_harris
    logging:
      level: INFO
      log_file: null
"""

from typing import Any, Dict

import yaml

from .cq.params import KernelParams
from .exceptions import ConfigurationError

DEFAULTS = {
    'octaves': 1,
    'q': 1.0,
    'atom_hop_factor': 0.25,
    'threshold': 0.0005,
    'window': 'sqrt_blackman_harris',
}

_KEYS = ('sample_rate', 'min_frequency', 'range_min_frequency', 'octaves',
         'bins_per_octave', 'q', 'atom_hop_factor', 'threshold', 'window')


def load_config(config_path: str) -> Dict:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config {config_path} must contain a mapping")
    return config


def kernel_section(config: Dict) -> Dict:
    """The ``kernel`` section of a full config, or the mapping itself."""
    section = config.get('kernel', config)
    if not isinstance(section, dict):
        raise ConfigurationError("'kernel' config section must be a mapping")
    return section


def kernel_params_from_config(config: Dict) -> KernelParams:
    """
    Build KernelParams from a config mapping.

    Accepts either the whole config or just its ``kernel`` section. If
    ``range_min_frequency`` is given instead of ``min_frequency``, the
    top-octave minimum is derived with KernelParams.for_range().
    """
    section = kernel_section(config)
    unknown = sorted(set(section) - set(_KEYS))
    if unknown:
        raise ConfigurationError(f"Unknown kernel config keys: {unknown}")

    values: Dict[str, Any] = dict(DEFAULTS)
    values.update(section)

    for key in ('sample_rate', 'bins_per_octave'):
        if values.get(key) is None:
            raise ConfigurationError(f"Missing required kernel config key: '{key}'")

    has_min = values.get('min_frequency') is not None
    has_range = values.get('range_min_frequency') is not None
    if has_min == has_range:
        raise ConfigurationError(
            "Exactly one of 'min_frequency' or 'range_min_frequency' must be set"
        )

    range_min = values.pop('range_min_frequency', None)
    if has_range:
        values.pop('min_frequency', None)
        return KernelParams.for_range(min_frequency=range_min, **values)
    return KernelParams(**values)
