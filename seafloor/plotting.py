"""
Summary statistics and visualization functions.

This module contains functions for:
- Quantile-based colour scaling of maps
- Mapping grid bands with depth contours and mask outlines
- Violin plots of values by habitat
- Habitat summary statistics and Kruskal-Wallis tests
"""

import geopandas as gpd
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from pathlib import Path
from scipy import stats

from seafloor.config import COLOR_QUANTILES, CONTOUR_DEPTHS, HABITAT_ORDER, FIGURE_DPI
from seafloor.habitat import depth_magnitude


def quantile_limits(values, quantiles=COLOR_QUANTILES):
    """
    Colour-scale limits from quantiles of the finite values.

    Parameters
    ----------
    values : array-like
        Values to scale; NaN is ignored.
    quantiles : tuple of (float, float), optional
        Lower and upper quantile. Default (0.01, 0.99).

    Returns
    -------
    tuple of (float, float)
        (vmin, vmax), or (nan, nan) when there are no finite values.
    """
    v = np.asarray(values, dtype=np.float64)
    v = v[np.isfinite(v)]
    if v.size == 0:
        return (np.nan, np.nan)
    lo, hi = np.quantile(v, quantiles)
    return (float(lo), float(hi))


def plot_grid(grid, band, ax=None, depth=None, contours=CONTOUR_DEPTHS, masks=None,
              cmap='viridis', quantiles=COLOR_QUANTILES, title=None):
    """
    Map one band of a grid.

    Parameters
    ----------
    grid : Grid
        Grid to plot.
    band : str or int
        Band to plot.
    ax : matplotlib Axes, optional
        Axes to draw on. A new figure is created if None.
    depth : Grid, optional
        Bathymetry grid on the same lattice; drawn as depth contours.
    contours : sequence of float, optional
        Depth magnitudes (m) of the contour lines. Default (200, 4000).
    masks : dict of Mask, optional
        Mask outlines drawn on top of the map.
    cmap : str, optional
        Matplotlib colormap name.
    quantiles : tuple of (float, float), optional
        Colour scale clipping quantiles.
    title : str, optional
        Axes title. Defaults to the band name.

    Returns
    -------
    matplotlib Axes
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 6))

    data = grid.band(band)
    vmin, vmax = quantile_limits(data, quantiles)
    if np.isnan(vmin):
        # all missing: blank map on a unit scale
        vmin, vmax = 0.0, 1.0
    mesh = ax.pcolormesh(grid.x, grid.y, np.ma.masked_invalid(data), shading='nearest',
                         cmap=cmap, vmin=vmin, vmax=vmax)
    plt.colorbar(mesh, ax=ax, shrink=0.8, label=grid.names[grid.index(band)])

    if depth is not None and contours:
        ax.contour(depth.x, depth.y, depth_magnitude(depth.band(0)), levels=list(contours),
                   colors='black', linewidths=0.6)

    if masks:
        for name, mask in masks.items():
            gpd.GeoSeries([mask.region]).boundary.plot(ax=ax, linewidth=0.8, label=name)
        ax.legend(loc='lower right', fontsize=8)

    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title(title or grid.names[grid.index(band)])
    ax.set_aspect('equal')
    return ax


def save_grid_map(grid, band, output_path, **kwargs):
    """Plot one band with plot_grid() and save the figure."""
    fig, ax = plt.subplots(figsize=(8, 6))
    plot_grid(grid, band, ax=ax, **kwargs)
    plt.tight_layout()
    plt.savefig(output_path, dpi=FIGURE_DPI, bbox_inches='tight')
    plt.close(fig)

    print(f"Map saved to {output_path}")


def plot_habitat_violins(table, output_path, title=None):
    """
    Create violin plots of values by habitat, one panel per variable.

    Parameters
    ----------
    table : DataFrame
        Long habitat table from seafloor.habitat.mask_habitat().
    output_path : str or Path
        Output file path for figure
    title : str, optional
        Figure title.

    Returns
    -------
    None
        Saves figure to file
    """
    order = [h for h in HABITAT_ORDER if h in set(table['habitat'])]
    g = sns.catplot(data=table, x='habitat', y='value', col='variable', kind='violin',
                    order=order, sharey=False, cut=0, inner='quartile', height=4, aspect=1)
    g.set_axis_labels('', 'Value')
    g.set_titles('{col_name}')
    if title:
        g.figure.suptitle(title, y=1.03)

    g.savefig(output_path, dpi=FIGURE_DPI, bbox_inches='tight')
    plt.close(g.figure)

    print(f"Violin plots saved to {output_path}")


def habitat_summary(table):
    """
    Count, mean, median and standard deviation per variable and habitat.

    Returns
    -------
    DataFrame
        One row per (variable, habitat), habitats in HABITAT_ORDER.
    """
    summary = (
        table
        .groupby(['variable', 'habitat'], sort=False)['value']
        .agg(['count', 'mean', 'median', 'std'])
        .reset_index()
    )
    rank = {h: i for i, h in enumerate(HABITAT_ORDER)}
    summary['_rank'] = summary['habitat'].map(rank)
    summary = summary.sort_values(['variable', '_rank'], kind='stable')
    return summary.drop(columns='_rank').reset_index(drop=True)


def habitat_tests(table):
    """
    Kruskal-Wallis test of differences between habitats for each variable.

    Returns
    -------
    DataFrame
        Columns variable, n_habitats, statistic, p_value. Variables with
        fewer than two habitats get missing statistic and p_value.
    """
    rows = []
    for variable, sub in table.groupby('variable', sort=False):
        samples = [g['value'].to_numpy() for _, g in sub.groupby('habitat', sort=False)]
        # kruskal() is undefined for one group or all-tied values
        if len(samples) < 2 or np.ptp(sub['value'].to_numpy()) == 0:
            rows.append({'variable': variable, 'n_habitats': len(samples),
                         'statistic': np.nan, 'p_value': np.nan})
            continue
        statistic, p_value = stats.kruskal(*samples)
        rows.append({'variable': variable, 'n_habitats': len(samples),
                     'statistic': statistic, 'p_value': p_value})
    return pd.DataFrame(rows, columns=['variable', 'n_habitats', 'statistic', 'p_value'])


def save_summary_statistics(table, output_path, title):
    """
    Compute and save habitat summary statistics.

    Parameters
    ----------
    table : DataFrame
        Long habitat table from seafloor.habitat.mask_habitat().
    output_path : str or Path
        Output file path for statistics text file
    title : str
        Heading for the report

    Returns
    -------
    None
        Writes statistics to text file
    """
    output_path = Path(output_path)
    summary = habitat_summary(table)
    tests = habitat_tests(table)

    with open(output_path, 'w') as f:
        f.write(f"Summary Statistics for {title}\n")
        f.write("="*80 + "\n\n")

        for variable, sub in summary.groupby('variable', sort=False):
            f.write(f"{variable}:\n")
            for _, row in sub.iterrows():
                f.write(f"  {row['habitat']}: n={int(row['count'])} "
                        f"mean={row['mean']:.4f} median={row['median']:.4f} "
                        f"std={row['std']:.4f}\n")
            test = tests[tests['variable'] == variable].iloc[0]
            f.write(f"  Kruskal-Wallis: H={test['statistic']:.4f} p={test['p_value']:.4g}\n\n")

        f.write("Cells by Habitat:\n")
        counts = table.drop_duplicates(['x', 'y', 'habitat'])['habitat'].value_counts()
        for habitat in HABITAT_ORDER:
            if habitat in counts:
                f.write(f"  {habitat}: {counts[habitat]}\n")

    print(f"Summary statistics saved to {output_path}")
