# ---------------------------------------------------------------------
# heat_map.py
# Weighted (z, x) histogram and line-intersection voting
# ---------------------------------------------------------------------

from __future__ import annotations
import logging
import math
import numpy as np
import pandas as pd
from typing import Iterator, Tuple

from line_finder import LineSet
from vertex_config import CLOSE_ANGLE_DEG, MAX_PTS

logger = logging.getLogger(__name__)


# =====================================================================
#                              HeatMap
# =====================================================================

class HeatMap:
    """
    Fixed-resolution 2D histogram over (z, x).

    The weights live in a dense (nz, nx) array; row iz holds all drift bins
    of transverse bin iz. Bin lookups return -1 for anything outside the
    map, and filling such a point is a no-op.

    Attributes:
        nz, minz, maxz : transverse binning
        nx, minx, maxx : drift binning
        map            : (nz, nx) float array of accumulated weight
    """

    def __init__(self, nz: int, minz: float, maxz: float,
                 nx: int, minx: float, maxx: float) -> None:
        if nz < 1 or nx < 1:
            raise ValueError(f"HeatMap needs at least one bin, got {nz}x{nx}")
        if not (maxz > minz and maxx > minx):
            raise ValueError("HeatMap bounds must have positive width")

        self.nz = int(nz)
        self.minz = float(minz)
        self.maxz = float(maxz)
        self.nx = int(nx)
        self.minx = float(minx)
        self.maxx = float(maxx)
        self.map = np.zeros((self.nz, self.nx), float)

    # ---------------------------------------------------------
    # Bin index <-> coordinate
    # ---------------------------------------------------------
    @staticmethod
    def _to_bins(v, lo: float, hi: float, n: int) -> np.ndarray:
        v = np.asarray(v, float)
        with np.errstate(invalid="ignore", over="ignore"):
            f = np.floor((v - lo) / (hi - lo) * n)
        ok = np.isfinite(f) & (f >= 0) & (f < n)
        return np.where(ok, f, -1).astype(np.int64)

    def z_to_bin(self, z: float) -> int:
        return int(self._to_bins(z, self.minz, self.maxz, self.nz))

    def x_to_bin(self, x: float) -> int:
        return int(self._to_bins(x, self.minx, self.maxx, self.nx))

    def z_to_bins(self, zs) -> np.ndarray:
        return self._to_bins(zs, self.minz, self.maxz, self.nz)

    def x_to_bins(self, xs) -> np.ndarray:
        return self._to_bins(xs, self.minx, self.maxx, self.nx)

    def z_bin_center(self, iz) -> float:
        return self.minz + (self.maxz - self.minz) * (iz + 0.5) / self.nz

    def x_bin_center(self, ix) -> float:
        return self.minx + (self.maxx - self.minx) * (ix + 0.5) / self.nx

    # ---------------------------------------------------------
    # Accumulation
    # ---------------------------------------------------------
    def fill(self, z: float, x: float, w: float = 1.0) -> bool:
        """Add w at (z, x). Returns False if the point is off the map."""
        iz = self.z_to_bin(z)
        ix = self.x_to_bin(x)
        if iz < 0 or ix < 0:
            return False
        self.map[iz, ix] += w
        return True

    def fill_many(self, zs, xs, w: float = 1.0) -> int:
        """Vectorised fill; returns how many points landed on the map."""
        iz = self.z_to_bins(zs)
        ix = self.x_to_bins(xs)
        ok = (iz >= 0) & (ix >= 0)
        np.add.at(self.map, (iz[ok], ix[ok]), w)
        return int(ok.sum())

    def row_max(self) -> np.ndarray:
        """Largest weight in each transverse row."""
        return self.map.max(axis=1)

    def total(self) -> float:
        return float(self.map.sum())

    def to_frame(self) -> pd.DataFrame:
        """Long-format table of bin centres and weights."""
        zc = self.z_bin_center(np.arange(self.nz))
        xc = self.x_bin_center(np.arange(self.nx))
        Z, X = np.meshgrid(zc, xc, indexing="ij")
        return pd.DataFrame({
            "z": Z.ravel(),
            "x": X.ravel(),
            "weight": self.map.ravel(),
        })

    def __repr__(self) -> str:
        return (f"HeatMap(nz={self.nz}, z=[{self.minz:g}, {self.maxz:g}], "
                f"nx={self.nx}, x=[{self.minx:g}, {self.maxx:g}])")


# =====================================================================
#                        Intersection voting
# =====================================================================

def close_angles(ma: float, mb: float,
                 angle_deg: float = CLOSE_ANGLE_DEG) -> bool:
    """True if directions (1, ma) and (1, mb) are within angle_deg."""
    cos_crit = math.cos(math.radians(angle_deg))
    dot = 1 + ma * mb  # (1, ma).(1, mb)
    return dot * dot > (1 + ma * ma) * (1 + mb * mb) * cos_crit * cos_crit


def _partner_windows(m: np.ndarray,
                     angle_deg: float) -> Iterator[Tuple[int, int, int]]:
    # Yields (i, j0, jmax): [j0, jmax) are the lines after i that are not
    # close in angle to it. Both pointers only ever move forward, so a full
    # pass is linear in the number of lines and stores nothing.
    n = len(m)
    j0 = 0
    jmax = 0
    for i in range(n - 1):
        a = float(m[i])

        j0 = max(j0, i + 1)
        while j0 < n and close_angles(a, float(m[j0]), angle_deg):
            j0 += 1
        jmax = max(jmax, j0)
        while jmax < n and not close_angles(a, float(m[jmax]), angle_deg):
            jmax += 1

        yield i, j0, jmax


def count_admissible_pairs(lines: LineSet,
                           angle_deg: float = CLOSE_ANGLE_DEG) -> int:
    """Number of line pairs that are far enough apart in angle to vote."""
    return sum(hi - lo for _, lo, hi in _partner_windows(lines.m, angle_deg))


def map_from_lines(lines: LineSet, hm: HeatMap,
                   max_pts: int = MAX_PTS,
                   angle_deg: float = CLOSE_ANGLE_DEG) -> int:
    """
    Vote at the intersection of every admissible pair of lines.

    Lines must be sorted by slope. Pairs close in angle are skipped, and
    an intersection lying within either line's own z-extent casts no vote.
    When more than max_pts pairs are admissible, every stride-th partner
    is used and each vote is weighted by stride.

    Returns
    -------
    int
        The stride used.
    """
    # Two passes over the windows: count, then vote
    npts = count_admissible_pairs(lines, angle_deg)

    stride = npts // max_pts + 1

    product = len(lines) * (len(lines) - 1) // 2
    logger.debug("Combining lines to points with stride %d (%d of %d pairs)",
                 stride, npts, product)

    m, c, minz, maxz = lines.m, lines.c, lines.minz, lines.maxz

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        for i, j0, jmax in _partner_windows(m, angle_deg):
            if j0 >= jmax:
                continue
            js = slice(j0, jmax, stride)
            mi, ci = float(m[i]), float(c[i])
            mj = m[js].astype(float)
            cj = c[js].astype(float)

            # x = mA * z + cA = mB * z + cB
            z = (cj - ci) / (mi - mj)
            x = mi * z + ci

            # No solutions within a line
            outside = (((z < minz[i]) | (z > maxz[i])) &
                       ((z < minz[js]) | (z > maxz[js])))
            if np.any(outside):
                hm.fill_many(z[outside], x[outside], stride)

    return stride
