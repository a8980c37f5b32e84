import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from matplotlib.lines import Line2D

VIEW_NAMES = ["Z (collection)", "U", "V"]

# ----------------------------------------------------------
# 1. Hits per view
# ----------------------------------------------------------

def plot_view_hits(
    hits,
    dirs=None,
    vertex=None,
    show_vertex=True
):
    """
    Scatter the hits of each view in its (z, x) plane.

    One subplot per view; marker size follows hit energy. If a 3D vertex
    and the view directions are given, its projection is drawn as a star
    in every view.

    Parameters
    ----------
    hits : iterable of Hit
        Hits of all three views.
    dirs : sequence of three (x, y, z) vectors, optional
        View directions, needed to project the vertex.
    vertex : array_like of shape (3,), optional
        (x, y, z) vertex to overlay.
    show_vertex : bool, optional
        Draw the vertex when available. Default is True.

    Returns
    -------
    fig : matplotlib.figure.Figure
    axs : numpy.ndarray of matplotlib.axes.Axes
        One axis per view.
    """

    fig, axs = plt.subplots(nrows=1, ncols=3, figsize=(18, 6))

    hits = list(hits)
    for view in range(3):
        ax = axs[view]
        zs = np.array([h.z for h in hits if h.view == view])
        xs = np.array([h.x for h in hits if h.view == view])
        es = np.array([h.energy for h in hits if h.view == view])

        if len(zs):
            sizes = 10 + 40 * es / es.max() if es.max() > 0 else 20
            ax.scatter(zs, xs, s=sizes, alpha=0.6)

        if show_vertex and vertex is not None and dirs is not None:
            d = np.asarray(dirs[view], float)
            z0 = vertex[1] * d[1] + vertex[2] * d[2]
            ax.scatter(z0, vertex[0], marker="*", s=250, c="red", zorder=5)

        ax.set_title(f"View {view}: {VIEW_NAMES[view]}")
        ax.set_xlabel("transverse position")
        ax.set_ylabel("drift x")
        ax.grid(True)

    legend_handles = [
        Line2D([0], [0], marker="o", color="w", markerfacecolor="C0",
               markersize=8, alpha=0.6, label="Hit"),
        Line2D([0], [0], marker="*", color="w", markerfacecolor="red",
               markersize=14, label="Vertex"),
    ]
    fig.legend(handles=legend_handles, loc="upper right", frameon=True)

    plt.tight_layout()

    return fig, axs


# ----------------------------------------------------------
# 2. Heat maps
# ----------------------------------------------------------

def plot_heat_maps(
    maps,
    dirs=None,
    vertex=None,
    title="",
    log_scale=False
):
    """
    Draw the three per-view heat maps side by side.

    Parameters
    ----------
    maps : sequence of HeatMap
        One map per view (coarse or zoom pass).
    dirs : sequence of three (x, y, z) vectors, optional
        View directions, needed to project the vertex.
    vertex : array_like of shape (3,), optional
        (x, y, z) vertex drawn as a cross on each map.
    title : str, optional
        Figure title.
    log_scale : bool, optional
        Show log(1 + weight) rather than the raw weight.

    Returns
    -------
    fig : matplotlib.figure.Figure
    axs : numpy.ndarray of matplotlib.axes.Axes

    Notes
    -----
    - The transverse coordinate runs horizontally, drift vertically.
    - This function does not call `plt.show()`.
    """

    fig, axs = plt.subplots(nrows=1, ncols=len(maps), figsize=(6 * len(maps), 5),
                            squeeze=False)
    axs = axs[0]

    for view, hm in enumerate(maps):
        ax = axs[view]
        w = np.log1p(hm.map) if log_scale else hm.map

        im = ax.imshow(
            w.T,
            origin="lower",
            aspect="auto",
            extent=(hm.minz, hm.maxz, hm.minx, hm.maxx),
            cmap="viridis"
        )
        fig.colorbar(im, ax=ax, label="log(1 + votes)" if log_scale else "votes")

        if vertex is not None and dirs is not None:
            d = np.asarray(dirs[view], float)
            z0 = vertex[1] * d[1] + vertex[2] * d[2]
            ax.plot([z0], [vertex[0]], marker="x", markersize=12,
                    color="red", mew=2)

        name = VIEW_NAMES[view] if view < len(VIEW_NAMES) else str(view)
        ax.set_title(f"View {view}: {name}")
        ax.set_xlabel("transverse position")
        ax.set_ylabel("drift x")

    if title:
        fig.suptitle(title)

    plt.tight_layout()

    return fig, axs


# ----------------------------------------------------------
# 3. Resolution
# ----------------------------------------------------------

def plot_vertex_residuals(
    residuals: pd.DataFrame,
    bins: int = 40
):
    """
    Histogram the reco - truth vertex residuals per coordinate.

    Parameters
    ----------
    residuals : pd.DataFrame
        Output of vertex_residuals, with columns dx, dy, dz, dr.
    bins : int, optional
        Number of histogram bins.

    Returns
    -------
    fig, axs
    """

    fig, axs = plt.subplots(nrows=1, ncols=4, figsize=(20, 5))

    for ax, col in zip(axs, ["dx", "dy", "dz", "dr"]):
        values = residuals[col].dropna().to_numpy()
        ax.hist(values, bins=bins, alpha=0.8)
        if len(values):
            ax.axvline(np.median(values), color="red", linestyle="--",
                       label=f"median {np.median(values):.3g}")
            ax.legend(fontsize="small")
        ax.set_xlabel(f"{col} (reco - true)")
        ax.set_ylabel("events")
        ax.grid(True)

    plt.tight_layout()

    return fig, axs
