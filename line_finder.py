# ---------------------------------------------------------------------
# line_finder.py
# Candidate lines through pairs of 2D points in one view
# ---------------------------------------------------------------------

from __future__ import annotations
import logging
import math
import numpy as np
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from hit import Pt2D
from vertex_config import MAX_LINES

logger = logging.getLogger(__name__)


# =====================================================================
#                              Line2D
# =====================================================================

@dataclass(frozen=True)
class Line2D:
    """
    Line x = m*z + c through two points, remembering the z-extent of the
    segment between them.
    """
    m: float
    c: float
    minz: float
    maxz: float

    @classmethod
    def from_points(cls, a: Pt2D, b: Pt2D) -> Optional["Line2D"]:
        """Line through a and b, or None when the slope is not finite."""
        dz = b.z - a.z
        if dz == 0:
            return None
        m = (b.x - a.x) / dz
        c = b.x - m * b.z
        if not (math.isfinite(m) and math.isfinite(c)):
            return None
        return cls(m, c, min(a.z, b.z), max(a.z, b.z))


# 16 bytes per line, so the default cap of 10M lines stays near 150MB
LINE_DTYPE = np.dtype([("m", np.float32), ("c", np.float32),
                       ("minz", np.float32), ("maxz", np.float32)])


class LineSet:
    """
    Slope-sorted collection of lines stored as one float32 record array.

    Indexing returns Line2D values; the column views (m, c, minz, maxz) are
    what the intersection pass works on.
    """

    def __init__(self, m, c, minz, maxz, stride: int = 1) -> None:
        rec = np.empty(len(m), LINE_DTYPE)
        rec["m"] = m
        rec["c"] = c
        rec["minz"] = minz
        rec["maxz"] = maxz
        self._adopt(rec, stride)

    @classmethod
    def from_records(cls, rec: np.ndarray, stride: int = 1) -> "LineSet":
        """Wrap a LINE_DTYPE array without copying. It is sorted in place."""
        lines = cls.__new__(cls)
        lines._adopt(rec, stride)
        return lines

    def _adopt(self, rec: np.ndarray, stride: int) -> None:
        # equal slopes are ordered by the remaining fields
        rec.sort(order="m")
        self.records = rec
        self.m = rec["m"]
        self.c = rec["c"]
        self.minz = rec["minz"]
        self.maxz = rec["maxz"]
        self.stride = stride

    @classmethod
    def empty(cls) -> "LineSet":
        return cls([], [], [], [])

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, i: int) -> Line2D:
        return Line2D(float(self.m[i]), float(self.c[i]),
                      float(self.minz[i]), float(self.maxz[i]))

    def __iter__(self) -> Iterator[Line2D]:
        for i in range(len(self)):
            yield self[i]


# =====================================================================
#                          Circle pre-filter
# =====================================================================

def intersects_circle(m: float, c: float, z0: float, x0: float,
                      R: float) -> Optional[Tuple[float, float]]:
    """
    Abscissas (z1, z2) where x = m*z + c crosses the circle of radius R
    centred on (z0, x0), or None if it misses.
    """
    z1, z2, ok = _circle_crossings(np.array([m], float), np.array([c], float),
                                   z0, x0, R)
    if not ok[0]:
        return None
    return float(z1[0]), float(z2[0])


def _circle_crossings(m, c, z0, x0, R):
    # Change to the frame where (z0, x0) = (0, 0)
    c = c + m * z0 - x0

    # z^2 + (m*z+c)^2 = R^2
    A = 1 + m * m
    B = 2 * m * c
    C = c * c - R * R

    desc = B * B - 4 * A * C
    ok = desc >= 0
    root = np.sqrt(np.where(ok, desc, 0.0))

    z1 = (-B - root) / (2 * A) + z0
    z2 = (-B + root) / (2 * A) + z0
    return z1, z2, ok


# =====================================================================
#                          Line generation
# =====================================================================

def lines_from_points(pts: Sequence[Pt2D],
                      circle: Optional[Tuple[float, float, float]] = None,
                      max_lines: int = MAX_LINES) -> LineSet:
    """
    Build the lines through pairs of points, sorted by slope.

    If there are more pairs than max_lines, pairs (i, i+offset+1+k*stride)
    are taken for offset in [0, stride) so the kept lines are spread over
    the whole pair space rather than a prefix of it. Generation stops once
    max_lines lines have been kept.

    Parameters
    ----------
    pts : sequence of Pt2D
        Points of a single view.
    circle : (z0, x0, R), optional
        Keep only lines crossing this circle whose segment does not span it.
    max_lines : int
        Cap on the number of lines returned.

    Returns
    -------
    LineSet
        Lines sorted ascending by slope. Empty if fewer than two points.
    """
    n = len(pts)
    if n < 2 or max_lines <= 0:
        return LineSet.empty()

    zs = np.array([p.z for p in pts], float)
    xs = np.array([p.x for p in pts], float)

    product = n * (n - 1) // 2
    stride = product // max_lines + 1

    rec = np.empty(min(product, max_lines), LINE_DTYPE)
    kept = 0

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        for offset in range(stride):
            for i in range(n):
                js = np.arange(i + offset + 1, n, stride)
                if len(js) == 0:
                    continue

                m = (xs[js] - xs[i]) / (zs[js] - zs[i])
                c = xs[js] - m * zs[js]
                minz = np.minimum(zs[i], zs[js])
                maxz = np.maximum(zs[i], zs[js])

                # finite once narrowed to the stored precision
                keep = (np.isfinite(m.astype(np.float32)) &
                        np.isfinite(c.astype(np.float32)))

                if circle is not None:
                    z0, x0, R = circle
                    z1, z2, hit = _circle_crossings(m, c, z0, x0, R)
                    spans = ((minz < z1) & (minz < z2) &
                             (maxz > z1) & (maxz > z2))
                    keep &= hit & ~spans

                if not np.any(keep):
                    continue

                take = np.flatnonzero(keep)[:len(rec) - kept]
                out = rec[kept:kept + len(take)]
                out["m"] = m[take]
                out["c"] = c[take]
                out["minz"] = minz[take]
                out["maxz"] = maxz[take]
                kept += len(take)

                if kept >= len(rec):
                    break
            if kept >= len(rec):
                break

    if kept == 0:
        logger.debug("No lines from %d points (stride %d)", n, stride)
        return LineSet.empty()

    lines = LineSet.from_records(rec[:kept], stride=stride)

    logger.debug("Made %d lines using stride %d to fit under cap of %d",
                 len(lines), stride, max_lines)
    return lines
