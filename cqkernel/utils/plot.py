import os
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns


def kernel_column_range(dense):
    """Columns [lo, hi) that hold any nonzero kernel entry."""
    cols = np.flatnonzero(np.any(dense != 0, axis=0))
    if len(cols) == 0:
        return 0, dense.shape[1]
    return int(cols[0]), int(cols[-1]) + 1


def plot_kernel_magnitude(kernel, save_dir, filename='kernel_magnitude.png'):
    """Heatmap of |kernel| (rows x FFT bins), cropped to the nonzero columns."""
    dense = np.abs(kernel.to_dense())
    lo, hi = kernel_column_range(dense)

    plt.figure(figsize=(14, 8))
    sns.heatmap(dense[:, lo:hi], cmap='magma', xticklabels=max((hi - lo) // 10, 1),
                yticklabels=kernel.atoms_per_frame)
    plt.title(f'CQ Kernel Magnitude (fft_size={kernel.fft_size})')
    plt.ylabel('Row (bin x atom)')
    plt.xlabel(f'FFT bin (offset {lo})')
    os.makedirs(save_dir, exist_ok=True)
    save_path = os.path.join(save_dir, filename)
    plt.savefig(save_path, dpi=150)
    print(f"Kernel heatmap saved to {save_path}")
    plt.close()
    return save_path


def plot_bin_responses(kernel, save_dir, filename='bin_responses.png'):
    """Magnitude response of the first atom of every bin."""
    dense = np.abs(kernel.to_dense())
    lo, hi = kernel_column_range(dense)

    plt.figure(figsize=(10, 6))
    for b in range(kernel.params.bins_per_octave):
        row = dense[b * kernel.atoms_per_frame]
        plt.plot(np.arange(lo, hi), row[lo:hi], label=f'{kernel.bin_frequencies[b]:.1f} Hz')
    plt.title('Bin Responses')
    plt.xlabel('FFT bin')
    plt.ylabel('|coefficient|')
    plt.legend(fontsize='small', ncol=2)
    plt.grid(True)
    os.makedirs(save_dir, exist_ok=True)
    save_path = os.path.join(save_dir, filename)
    plt.savefig(save_path, dpi=150)
    print(f"Bin responses saved to {save_path}")
    plt.close()
    return save_path
