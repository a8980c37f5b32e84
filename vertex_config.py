# vertex_config.py
from dataclasses import dataclass
from typing import Optional

# --- DEFAULTS ---
MAX_LINES = 10 * 1000 * 1000   # ~150MB of lines
MAX_PTS = 10 * 1000 * 1000     # driven by runtime
CLOSE_ANGLE_DEG = 10.0


@dataclass(frozen=True)
class VertexConfig:
    """
    Tunables of the vertex search. Units are those of the input hits
    (cm for a typical LArTPC).

    Attributes:
        max_lines       : cap on candidate lines per view
        max_pts         : cap on line-pair intersections per view
        close_angle_deg : line pairs closer than this in angle are not voted
        coarse_bin_size : bin width of the coarse heat maps
        view_padding    : padding on each view's transverse range
        drift_padding   : padding on the shared drift range
        view0_quantile  : view 0's upper transverse bound is this quantile
                          of its hits (None disables the cutoff)
        zoom_radius     : half-width of the zoom window around the coarse vertex
        zoom_bins       : bins per axis of the zoom heat maps
        seed            : seed for the per-view point shuffle
        keep_maps       : keep the heat maps on the result for plotting
    """
    max_lines: int = MAX_LINES
    max_pts: int = MAX_PTS
    close_angle_deg: float = CLOSE_ANGLE_DEG
    coarse_bin_size: float = 1.0
    view_padding: float = 100.0
    drift_padding: float = 20.0
    view0_quantile: Optional[float] = 0.25
    zoom_radius: float = 2.5
    zoom_bins: int = 50
    seed: int = 0
    keep_maps: bool = False
