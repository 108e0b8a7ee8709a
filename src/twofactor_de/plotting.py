"""Static figures for the pipeline: sample MDS plot and per-contrast volcano plots."""

from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

TEXT_COLOR = '#2c3e50'  # Dark blue-gray
GROUP_PALETTE = {
    'CC': '#2980b9',
    'CT': '#27ae60',
    'TC': '#e67e22',
    'TT': '#c0392b',
}


def _style_axes(ax, text_color: str = TEXT_COLOR) -> None:
    for spine in ax.spines.values():
        spine.set_color(text_color)
        spine.set_linewidth(1.5)
    ax.grid(True, alpha=0.2, linestyle=':', linewidth=0.8)
    ax.set_axisbelow(True)
    ax.tick_params(colors=text_color, labelsize=11, width=1.5, length=6)


def mds_plot(
    mds,
    samples: pd.DataFrame,
    hue: str = "group",
    figsize: tuple = (8, 7),
    title: str = "MDS of log-CPM",
    save_path: Optional[str] = None,
    dpi: int = 300,
) -> plt.Figure:
    """
    Scatter the samples on the first two MDS dimensions.

    Args:
        mds: MDSResult from ``twofactor_de.limma.plot_mds``.
        samples: Sample table indexed by sample label (see design.sample_table).
        hue: Sample-table column used for colors. Default: "group".
        figsize: Figure size tuple.
        title: Plot title.
        save_path: Path to save figure (optional).
        dpi: DPI for saved figure.

    Returns:
        matplotlib.figure.Figure: The figure object
    """
    coords = mds.coordinates.join(samples[[hue]].astype(str), how="left")
    if coords[hue].isna().any():
        missing = list(coords.index[coords[hue].isna()])
        raise KeyError(f"Samples missing from the sample table: {missing}")

    palette = GROUP_PALETTE if set(coords[hue]) <= set(GROUP_PALETTE) else None

    fig, ax = plt.subplots(figsize=figsize, dpi=100)
    sns.scatterplot(
        data=coords,
        x="dim1",
        y="dim2",
        hue=hue,
        palette=palette,
        s=120,
        edgecolor='white',
        linewidth=1,
        ax=ax,
    )

    # Label each point with its sample name
    for sample, row in coords.iterrows():
        ax.annotate(
            sample,
            (row["dim1"], row["dim2"]),
            xytext=(6, 6),
            textcoords='offset points',
            fontsize=9,
            color=TEXT_COLOR,
        )

    ax.set_xlabel(mds.axis_label(1), fontsize=13, fontweight='bold', color=TEXT_COLOR)
    ax.set_ylabel(mds.axis_label(2), fontsize=13, fontweight='bold', color=TEXT_COLOR)
    ax.set_title(title, fontsize=15, fontweight='bold', color=TEXT_COLOR, pad=20)
    _style_axes(ax)
    ax.legend(title=hue, loc='best', frameon=True, fontsize=10, framealpha=0.95)

    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=dpi, bbox_inches='tight', facecolor='white')
        print(f"Figure saved to: {save_path}")

    return fig


def volcano_plot(
    results: pd.DataFrame,
    logfc_col: str = "logFC",
    fdr_col: str = "FDR",
    fdr_threshold: float = 0.05,
    logfc_threshold: float = 1.0,
    figsize: tuple = (10, 8),
    title: str = "Volcano Plot",
    xlabel: str = "log₂(Fold Change)",
    ylabel: str = "-log₁₀(Adjusted p-value)",
    save_path: Optional[str] = None,
    **kwargs
) -> plt.Figure:
    """
    Create a publication-quality volcano plot.

    Genes are highlighted when ``FDR < fdr_threshold`` and
    ``|logFC| >= logfc_threshold``, the same rule as results.filter_degs().

    Args:
        results: DataFrame with differential expression results
        logfc_col: Column name for log fold change (default: "logFC")
        fdr_col: Column name for adjusted p-value/FDR (default: "FDR")
        fdr_threshold: FDR significance threshold (default: 0.05)
        logfc_threshold: Log fold change threshold for highlighting (default: 1.0)
        figsize: Figure size tuple (default: (10, 8))
        title: Plot title
        xlabel: X-axis label
        ylabel: Y-axis label
        save_path: Path to save figure (optional)
        **kwargs: Additional arguments for customization
            - point_size: Size of points (default: 20)
            - sig_color: Color for significant points (default: '#e74c3c' - red)
            - nonsig_color: Color for non-significant points (default: '#95a5a6' - gray)
            - alpha: Transparency (default: 0.7)
            - dpi: DPI for saved figure (default: 300)

    Returns:
        matplotlib.figure.Figure: The figure object

    Examples:
        >>> fig = volcano_plot(results, title="Maternal treatment")
        >>> fig = volcano_plot(results, save_path="maternal_volcano.png")
    """
    point_size = kwargs.get('point_size', 20)
    sig_color = kwargs.get('sig_color', '#e74c3c')  # Red
    nonsig_color = kwargs.get('nonsig_color', '#95a5a6')  # Gray
    alpha = kwargs.get('alpha', 0.7)
    dpi = kwargs.get('dpi', 300)

    df = results.copy()

    # FDR can underflow to 0; clip to the smallest positive value for the log
    fdr = df[fdr_col].astype(float)
    positive = fdr[fdr > 0]
    floor = positive.min() if len(positive) else 1e-300
    df['-log10(FDR)'] = -np.log10(fdr.clip(lower=floor))

    sig_mask = (df[fdr_col] < fdr_threshold) & (np.abs(df[logfc_col]) >= logfc_threshold)

    fig, ax = plt.subplots(figsize=figsize, dpi=100)

    # Non-significant points first so they sit behind
    non_sig = df[~sig_mask]
    ax.scatter(
        non_sig[logfc_col],
        non_sig['-log10(FDR)'],
        s=point_size,
        color=nonsig_color,
        alpha=alpha * 0.5,
        edgecolors='none',
        linewidth=0.5,
        label='Not significant',
        zorder=1
    )

    sig = df[sig_mask]
    ax.scatter(
        sig[logfc_col],
        sig['-log10(FDR)'],
        s=point_size * 1.3,
        color=sig_color,
        alpha=alpha,
        edgecolors='white',
        linewidth=0.5,
        label=f'FDR < {fdr_threshold}, |logFC| ≥ {logfc_threshold}',
        zorder=2
    )

    ax.axvline(-logfc_threshold, color='#34495e', linestyle='--', linewidth=1.5, alpha=0.6, zorder=0)
    ax.axvline(logfc_threshold, color='#34495e', linestyle='--', linewidth=1.5, alpha=0.6, zorder=0)
    ax.axhline(-np.log10(fdr_threshold), color='#34495e', linestyle='--', linewidth=1.5, alpha=0.6, zorder=0)

    ax.set_xlabel(xlabel, fontsize=13, fontweight='bold', color=TEXT_COLOR)
    ax.set_ylabel(ylabel, fontsize=13, fontweight='bold', color=TEXT_COLOR)
    ax.set_title(title, fontsize=15, fontweight='bold', color=TEXT_COLOR, pad=20)
    _style_axes(ax)

    ax.legend(
        loc='upper right',
        frameon=True,
        fancybox=True,
        shadow=True,
        fontsize=10,
        framealpha=0.95
    )

    n_sig = int(sig_mask.sum())
    stats_text = f'Significant: {n_sig}/{len(df)}\n'
    stats_text += f'Up-regulated: {int((sig_mask & (df[logfc_col] > 0)).sum())}\n'
    stats_text += f'Down-regulated: {int((sig_mask & (df[logfc_col] < 0)).sum())}'

    ax.text(
        0.02, 0.98,
        stats_text,
        transform=ax.transAxes,
        fontsize=10,
        verticalalignment='top',
        bbox=dict(boxstyle='round', facecolor='white', alpha=0.85, edgecolor=TEXT_COLOR, linewidth=1.5),
        family='monospace',
        color=TEXT_COLOR
    )

    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=dpi, bbox_inches='tight', facecolor='white')
        print(f"Figure saved to: {save_path}")

    return fig
