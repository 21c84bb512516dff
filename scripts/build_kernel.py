#!/usr/bin/env python
"""
Build a constant-Q kernel and report its geometry.

Usage:
    # Default config (55 Hz top octave, 12 bins per octave)
    python scripts/build_kernel.py

    # Override parameters
    python scripts/build_kernel.py --bins-per-octave 24 --q 0.8

    # Run the impulse round-trip self-check and save plots
    python scripts/build_kernel.py --check --plot outputs/kernel
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional

import librosa
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cqkernel.config import load_config, kernel_section, kernel_params_from_config
from cqkernel.cq import CQKernel, check_all_bins
from cqkernel.exceptions import CQKernelError
from cqkernel.utils.logging import setup_logging

console = Console()

# CLI flag -> kernel config key
OVERRIDES = {
    'sample_rate': float,
    'min_frequency': float,
    'range_min_frequency': float,
    'octaves': int,
    'bins_per_octave': int,
    'q': float,
    'atom_hop_factor': float,
    'threshold': float,
    'window': str,
}


def apply_overrides(config: Dict, args: argparse.Namespace) -> Dict:
    """Kernel section of config with any CLI overrides applied."""
    section = dict(kernel_section(config))
    for key in OVERRIDES:
        value = getattr(args, key)
        if value is None:
            continue
        section[key] = value
        # The two frequency keys are alternatives
        if key == 'min_frequency':
            section.pop('range_min_frequency', None)
        elif key == 'range_min_frequency':
            section.pop('min_frequency', None)
    return section


def print_geometry(kernel: CQKernel):
    summary = kernel.summary()
    table = Table(title="Kernel Geometry", box=box.ROUNDED)
    table.add_column("Property", style="bold")
    table.add_column("Value", justify="right")
    for key, value in summary.items():
        if isinstance(value, float):
            table.add_row(key, f"{value:.6g}")
        else:
            table.add_row(key, str(value))
    console.print(table)


def print_bins(kernel: CQKernel, checks: Optional[List[Dict]] = None):
    freqs = kernel.bin_frequencies
    notes = librosa.hz_to_note(freqs)

    table = Table(title="Kernel Bins", box=box.ROUNDED)
    table.add_column("Bin", justify="right")
    table.add_column("Freq (Hz)", justify="right")
    table.add_column("Note", justify="center")
    table.add_column("Rows", justify="center")
    table.add_column("Stored coeffs", justify="right")
    if checks is not None:
        table.add_column("Peak / expected", justify="center")
        table.add_column("Concentration", justify="right")

    n_atoms = kernel.atoms_per_frame
    sparse = kernel.sparse
    for b in range(kernel.params.bins_per_octave):
        rows = range(b * n_atoms, (b + 1) * n_atoms)
        stored = int(sum(sparse.lengths[r] for r in rows))
        cells = [str(b + 1), f"{freqs[b]:.2f}", notes[b], f"{rows.start}-{rows.stop - 1}", str(stored)]
        if checks is not None:
            c = checks[b]
            ok = abs(c['peak_column'] - c['expected_column']) <= c['half_width']
            mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
            cells += [f"{c['peak_column']} / {c['expected_column']} {mark}",
                      f"{c['concentration']:.3f}"]
        table.add_row(*cells)
    console.print(table)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Build a constant-Q kernel")
    parser.add_argument(
        '--config',
        type=str,
        default=str(PROJECT_ROOT / 'configs' / 'default.yaml'),
        help='Path to configuration file'
    )
    for key, typ in OVERRIDES.items():
        parser.add_argument(f"--{key.replace('_', '-')}", dest=key, type=typ, default=None,
                            help=f"Override kernel.{key}")
    parser.add_argument('--check', action='store_true',
                        help='Run the impulse round-trip check for every bin')
    parser.add_argument('--plot', type=str, default=None,
                        help='Directory to save kernel plots')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = load_config(args.config)

    log_cfg = config.get('logging', {}) or {}
    level = logging.DEBUG if args.verbose else getattr(logging, str(log_cfg.get('level', 'INFO')).upper())
    setup_logging(log_file=args.log_file or log_cfg.get('log_file'), level=level,
                  console_level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        params = kernel_params_from_config(apply_overrides(config, args))
        with console.status("[bold]Building kernel...[/bold]"):
            kernel = CQKernel(params)
    except CQKernelError as e:
        console.print(f"[bold red]Error ({e.kind}): {e}[/bold red]")
        return 1

    print_geometry(kernel)
    checks = check_all_bins(kernel) if args.check else None
    print_bins(kernel, checks)

    if args.plot:
        from cqkernel.utils.plot import plot_kernel_magnitude, plot_bin_responses
        plot_kernel_magnitude(kernel, args.plot)
        plot_bin_responses(kernel, args.plot)

    console.print(Panel.fit(
        f"[bold green]Kernel built:[/bold green] {kernel.row_count} rows, "
        f"{kernel.sparse.nnz} stored coefficients",
        border_style="green"
    ))
    return 0


if __name__ == '__main__':
    sys.exit(main())
