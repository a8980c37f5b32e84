# ---------------------------------------------------------------------
# vertex_finder.py
# Two-pass (coarse, then zoomed) 3D vertex search from three 2D views
# ---------------------------------------------------------------------

from __future__ import annotations
import logging
import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from hit import Hit, Pt2D
from heat_map import HeatMap, map_from_lines
from line_finder import lines_from_points
from peak_finder import find_peak_3d, is_singular
from vertex_config import VertexConfig

logger = logging.getLogger(__name__)

N_VIEWS = 3


class SearchState(Enum):
    INIT = "init"
    COARSE_SCAN = "coarse_scan"
    ZOOM_SCAN = "zoom_scan"
    DONE = "done"
    FAILED = "failed"


@dataclass
class VertexResult:
    """
    Outcome of one vertex search.

    Attributes:
        state       : DONE if a vertex was found, FAILED otherwise
        vertex      : final (x, y, z), None unless DONE
        coarse      : (x, y, z) from the coarse pass, if it got that far
        failure     : why the search stopped, None unless FAILED
        failed_in   : state the search was in when it failed
        coarse_maps : per-view coarse heat maps (only with keep_maps)
        zoom_maps   : per-view zoom heat maps (only with keep_maps)
    """
    state: SearchState
    vertex: Optional[np.ndarray] = None
    coarse: Optional[np.ndarray] = None
    failure: Optional[str] = None
    failed_in: Optional[SearchState] = None
    coarse_maps: List[HeatMap] = field(default_factory=list)
    zoom_maps: List[HeatMap] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.state is SearchState.DONE


# =====================================================================
#                            Input handling
# =====================================================================

def split_views(hits: Iterable[Hit],
                rng: Optional[np.random.Generator] = None) -> List[List[Pt2D]]:
    """
    Partition hits into per-view point lists.

    Each view is put in z order and then permuted with rng, so that any
    subsampling later on is spread evenly and does not depend on the order
    the hits arrived in.
    """
    pts: List[List[Pt2D]] = [[] for _ in range(N_VIEWS)]
    for h in hits:
        if h.view not in range(N_VIEWS):
            raise ValueError(f"hit view must be 0, 1 or 2, got {h.view!r}")
        pts[h.view].append(Pt2D.from_hit(h))

    for view in range(N_VIEWS):
        pts[view].sort()
        if rng is not None and len(pts[view]) > 1:
            perm = rng.permutation(len(pts[view]))
            pts[view] = [pts[view][k] for k in perm]
    return pts


def project(r: np.ndarray, direction) -> float:
    """Transverse coordinate of the 3D point r in the view along direction."""
    d = np.asarray(direction, float)
    return float(r[1] * d[1] + r[2] * d[2])


# =====================================================================
#                               Passes
# =====================================================================

def coarse_maps(pts: Sequence[Sequence[Pt2D]],
                config: VertexConfig) -> Optional[List[HeatMap]]:
    """
    Empty coarse heat maps covering all hits, or None if a view's window
    collapses.
    """
    xs = np.array([p.x for view in pts for p in view], float)
    minx = xs.min() - config.drift_padding
    maxx = xs.max() + config.drift_padding

    maps = []
    for view in range(N_VIEWS):
        zs = np.array([p.z for p in pts[view]], float)
        minz = zs.min() - config.view_padding
        maxz = zs.max() + config.view_padding

        # Don't allow the vertex further downstream in view 0 than the
        # given fraction of its hits
        if view == 0 and config.view0_quantile is not None:
            k = int(len(zs) * config.view0_quantile)
            if k < len(zs):
                maxz = float(np.partition(zs, k)[k])

        if not (maxz > minz and maxx > minx):
            logger.debug("View %d has an empty search window", view)
            return None

        nz = max(1, int((maxz - minz) / config.coarse_bin_size))
        nx = max(1, int((maxx - minx) / config.coarse_bin_size))
        maps.append(HeatMap(nz, minz, maxz, nx, minx, maxx))
    return maps


def _fail(reason: str, state: SearchState, result: VertexResult) -> VertexResult:
    logger.debug("Vertex search failed during %s: %s", state.value, reason)
    result.state = SearchState.FAILED
    result.failed_in = state
    result.failure = reason
    return result


def find_vertex(hits: Iterable[Hit],
                dirs: Sequence,
                config: Optional[VertexConfig] = None,
                rng: Optional[np.random.Generator] = None) -> VertexResult:
    """
    Find the single 3D vertex best explaining the hits of three views.

    The coarse pass votes line-pair intersections of all hits into ~1 unit
    heat maps and fuses the three views. The zoom pass repeats this using
    only lines passing near the coarse vertex, on fine maps around it.

    Parameters
    ----------
    hits : iterable of Hit
        Hits of all three views.
    dirs : sequence of three (x, y, z) unit vectors
        Transverse direction of each view in the plane perpendicular to drift.
    config : VertexConfig, optional
        Search tunables; defaults to VertexConfig().
    rng : numpy.random.Generator, optional
        Source of the per-view shuffle. Defaults to one seeded with
        config.seed, so repeated calls give the same vertex.

    Returns
    -------
    VertexResult
        found is False (state FAILED) when a view has no hits or no lines,
        the view directions are degenerate, or no peak is found.
    """
    if config is None:
        config = VertexConfig()
    if len(dirs) != N_VIEWS:
        raise ValueError(f"expected {N_VIEWS} view directions, got {len(dirs)}")
    if rng is None:
        rng = np.random.default_rng(config.seed)

    result = VertexResult(state=SearchState.INIT)

    # -----------------------------------------------------------------
    # INIT
    # -----------------------------------------------------------------
    pts = split_views(hits, rng)
    for view in range(N_VIEWS):
        if not pts[view]:
            return _fail(f"view {view} has no hits", SearchState.COARSE_SCAN, result)

    if is_singular(dirs):
        return _fail("view directions are degenerate", SearchState.COARSE_SCAN, result)

    # -----------------------------------------------------------------
    # COARSE_SCAN
    # -----------------------------------------------------------------
    result.state = SearchState.COARSE_SCAN

    maps = coarse_maps(pts, config)
    if maps is None:
        return _fail("empty coarse search window", result.state, result)

    for view in range(N_VIEWS):
        lines = lines_from_points(pts[view], max_lines=config.max_lines)
        if len(lines) == 0:
            return _fail(f"view {view} made no lines", result.state, result)
        map_from_lines(lines, maps[view], max_pts=config.max_pts,
                       angle_deg=config.close_angle_deg)

    if config.keep_maps:
        result.coarse_maps = maps

    coarse = find_peak_3d(maps, dirs)
    if coarse is None:
        return _fail("no coarse peak", result.state, result)
    result.coarse = coarse
    logger.debug("Coarse vertex %s", coarse)

    # -----------------------------------------------------------------
    # ZOOM_SCAN
    # -----------------------------------------------------------------
    result.state = SearchState.ZOOM_SCAN

    R = config.zoom_radius
    x0 = float(coarse[0])
    maps = []
    for view in range(N_VIEWS):
        z0 = project(coarse, dirs[view])

        lines = lines_from_points(pts[view], circle=(z0, x0, R),
                                  max_lines=config.max_lines)
        if len(lines) == 0:
            return _fail(f"view {view} made no lines near the coarse vertex",
                         result.state, result)

        hm = HeatMap(config.zoom_bins, z0 - R, z0 + R,
                     config.zoom_bins, x0 - R, x0 + R)
        map_from_lines(lines, hm, max_pts=config.max_pts,
                       angle_deg=config.close_angle_deg)
        maps.append(hm)

    if config.keep_maps:
        result.zoom_maps = maps

    vertex = find_peak_3d(maps, dirs)
    if vertex is None:
        return _fail("no zoom peak", result.state, result)

    # -----------------------------------------------------------------
    # DONE
    # -----------------------------------------------------------------
    result.state = SearchState.DONE
    result.vertex = vertex
    logger.debug("Vertex %s", vertex)
    return result
